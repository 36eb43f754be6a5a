"""Flask middleware — no-cache headers and JSON error handlers."""

from flask import Flask, jsonify, request

from fantasy_core.db.connection import StoreError
from fantasy_core.logging_config import get_logger
from fantasy_core.season.manager import GameweekNotOpenError, UserNotFoundError

log = get_logger(__name__)


def register_middleware(app: Flask) -> None:
    """Register middleware on the Flask app."""

    @app.after_request
    def add_no_cache_headers(response):
        if request.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"
        return response

    @app.errorhandler(UserNotFoundError)
    def user_not_found(exc):
        return jsonify({"error": "User not found"}), 404

    @app.errorhandler(GameweekNotOpenError)
    def gameweek_not_open(exc):
        return jsonify({"error": str(exc)}), 409

    @app.errorhandler(StoreError)
    def store_unavailable(exc):
        log.error("Store failure on %s %s: %s", request.method, request.path, exc)
        return jsonify({"error": "Storage temporarily unavailable. Nothing was changed."}), 503

    @app.errorhandler(404)
    def not_found(_):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def internal_error(_):
        return jsonify({"error": "Internal server error"}), 500
