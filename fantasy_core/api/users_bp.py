"""Users blueprint — registration and first-squad-save notification."""

from flask import Blueprint, jsonify

from fantasy_core.api.helpers import get_manager, json_body, require_int, require_user_id

users_bp = Blueprint("users", __name__)


@users_bp.route("/users", methods=["POST"])
def api_register_user():
    body = json_body()
    user_id, err = require_user_id(body)
    if err:
        return jsonify(err[0]), err[1]

    created = get_manager().register_user(user_id)
    return jsonify({"user_id": user_id, "created": created}), 201 if created else 200


@users_bp.route("/squads/saved", methods=["POST"])
def api_squad_saved():
    """Called by the squad service after a successful roster save."""
    body = json_body()
    user_id, err = require_user_id(body)
    if err:
        return jsonify(err[0]), err[1]
    gameweek_id, err = require_int(body, "gameweek_id")
    if err:
        return jsonify(err[0]), err[1]

    return jsonify(get_manager().record_squad_save(user_id, gameweek_id))
