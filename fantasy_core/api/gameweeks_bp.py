"""Gameweeks blueprint — the schedule the clock reads."""

from flask import Blueprint, jsonify

from fantasy_core.api.helpers import get_manager, json_body
from fantasy_core.config import season_cfg
from fantasy_core.season.clock import parse_deadline

gameweeks_bp = Blueprint("gameweeks", __name__)


@gameweeks_bp.route("/gameweeks/current")
def api_current_gameweek():
    open_gw = get_manager().clock.current_open_gameweek()
    return jsonify({"open_gameweek": open_gw.to_api() if open_gw else None})


@gameweeks_bp.route("/gameweeks/<int:gameweek>", methods=["PUT"])
def api_set_gameweek(gameweek):
    if not season_cfg.first_gameweek <= gameweek <= season_cfg.total_gameweeks:
        return jsonify({
            "error": f"gameweek must be between {season_cfg.first_gameweek} "
                     f"and {season_cfg.total_gameweeks}."
        }), 400

    body = json_body()
    deadline = body.get("deadline")
    if not deadline or not isinstance(deadline, str):
        return jsonify({"error": "deadline is required."}), 400
    try:
        parsed = parse_deadline(deadline)
    except ValueError:
        return jsonify({"error": "deadline must be an ISO 8601 timestamp."}), 400

    is_open = body.get("is_open", False)
    if not isinstance(is_open, bool):
        return jsonify({"error": "is_open must be a boolean."}), 400

    get_manager().set_gameweek(gameweek, parsed.isoformat(), is_open)
    return jsonify({"gameweek": gameweek, "deadline": parsed.isoformat(), "is_open": is_open})
