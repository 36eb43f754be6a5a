"""Shared helpers for API blueprints."""

from flask import current_app, request

from fantasy_core.season.manager import TransferManager


def get_manager() -> TransferManager:
    return current_app.extensions["transfer_manager"]


def require_user_id(args_or_body):
    """Extract and validate user_id. Returns (str, None) or (None, error_tuple)."""
    user_id = args_or_body.get("user_id")
    if user_id is None or isinstance(user_id, bool) or not str(user_id).strip():
        return None, ({"error": "user_id is required."}, 400)
    if not isinstance(user_id, (str, int)):
        return None, ({"error": "user_id must be a string."}, 400)
    return str(user_id).strip(), None


def require_int(args_or_body, field, minimum=1):
    """Extract a required integer field. Returns (int, None) or (None, error_tuple)."""
    value = args_or_body.get(field)
    if value is None or value == "":
        return None, ({"error": f"{field} is required."}, 400)
    if isinstance(value, bool):
        return None, ({"error": f"{field} must be an integer."}, 400)
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return None, ({"error": f"{field} must be an integer."}, 400)
    if isinstance(value, float) and value != number:
        return None, ({"error": f"{field} must be an integer."}, 400)
    if number < minimum:
        return None, ({"error": f"{field} must be >= {minimum}."}, 400)
    return number, None


def require_fields(body, *fields):
    """Return an error tuple naming the missing fields, or None."""
    missing = [f for f in fields if body.get(f) in (None, "")]
    if missing:
        return {"error": f"Missing required field(s): {', '.join(missing)}."}, 400
    return None


def json_body() -> dict:
    """Request JSON object, or {} when the body is missing, malformed or not an object."""
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}
