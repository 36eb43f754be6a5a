"""Chips blueprint — view the chip board and play a chip."""

from flask import Blueprint, jsonify, request

from fantasy_core.api.helpers import get_manager, json_body, require_int, require_user_id
from fantasy_core.schemas.fpl_rules import ChipSlot, parse_chip_slot

chips_bp = Blueprint("chips", __name__)

_VALID_CHIPS = ", ".join(s.value for s in ChipSlot)


@chips_bp.route("/chips")
def api_get_chips():
    user_id, err = require_user_id(request.args)
    if err:
        return jsonify(err[0]), err[1]
    return jsonify(get_manager().get_chips(user_id))


@chips_bp.route("/chips", methods=["PATCH"])
def api_activate_chip():
    body = json_body()
    user_id, err = require_user_id(body)
    if err:
        return jsonify(err[0]), err[1]

    slot = parse_chip_slot(body.get("chip_type"))
    if slot is None:
        return jsonify({"error": f"chip_type must be one of: {_VALID_CHIPS}."}), 400

    current_gameweek, err = require_int(body, "current_gameweek")
    if err:
        return jsonify(err[0]), err[1]

    activate = body.get("activate")
    if activate is False:
        return jsonify({"error": "Chips cannot be deactivated once played."}), 400
    if activate is not True:
        return jsonify({"error": "activate must be true."}), 400

    result = get_manager().activate_chip(user_id, slot, current_gameweek)
    if "error" in result:
        return jsonify(result), 400
    return jsonify(result)
