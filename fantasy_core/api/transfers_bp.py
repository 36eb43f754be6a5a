"""Transfers blueprint — view entitlement, make a transfer, history."""

from flask import Blueprint, jsonify, request

from fantasy_core.api.helpers import (
    get_manager,
    json_body,
    require_fields,
    require_int,
    require_user_id,
)
from fantasy_core.logging_config import get_logger

log = get_logger(__name__)

transfers_bp = Blueprint("transfers", __name__)


@transfers_bp.route("/transfers")
def api_get_transfers():
    """Current transfer record; stale penalties and rollovers are applied and saved."""
    user_id, err = require_user_id(request.args)
    if err:
        return jsonify(err[0]), err[1]

    result = get_manager().get_transfer_state(user_id)
    requested = request.args.get("gameweek_id")
    if requested is not None:
        result["requested_gameweek_id"] = requested
    return jsonify(result)


@transfers_bp.route("/transfers", methods=["POST"])
def api_make_transfer():
    body = json_body()
    err = require_fields(body, "user_id", "player_out_id", "player_in_id", "gameweek_id")
    if err:
        return jsonify(err[0]), err[1]

    user_id, err = require_user_id(body)
    if err:
        return jsonify(err[0]), err[1]
    gameweek_id, err = require_int(body, "gameweek_id")
    if err:
        return jsonify(err[0]), err[1]

    player_out_id = str(body["player_out_id"])
    player_in_id = str(body["player_in_id"])
    if player_out_id == player_in_id:
        return jsonify({"error": "player_out_id and player_in_id must differ."}), 400

    result = get_manager().make_transfer(user_id, player_out_id, player_in_id, gameweek_id)
    return jsonify(result)


@transfers_bp.route("/transfers/history")
def api_transfer_history():
    user_id, err = require_user_id(request.args)
    if err:
        return jsonify(err[0]), err[1]
    limit = request.args.get("limit", 100, type=int)

    history = get_manager().transfer_history(user_id, limit=max(1, min(limit, 500)))
    return jsonify({"user_id": user_id, "transfers": history})
