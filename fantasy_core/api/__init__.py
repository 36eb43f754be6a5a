"""Flask application factory."""

from pathlib import Path

from flask import Flask

from fantasy_core.season.clock import GameweekClock


def create_app(db_path: Path | None = None, clock: GameweekClock | None = None) -> Flask:
    """Create and configure the Flask application.

    The :class:`TransferManager` lives in ``app.extensions`` so each app
    (and each test) gets its own database and lock registry.
    """
    app = Flask(__name__)

    from fantasy_core.season.manager import TransferManager
    app.extensions["transfer_manager"] = TransferManager(db_path=db_path, clock=clock)

    from fantasy_core.api.middleware import register_middleware
    register_middleware(app)

    from fantasy_core.api.transfers_bp import transfers_bp
    from fantasy_core.api.chips_bp import chips_bp
    from fantasy_core.api.users_bp import users_bp
    from fantasy_core.api.gameweeks_bp import gameweeks_bp

    app.register_blueprint(transfers_bp, url_prefix="/api")
    app.register_blueprint(chips_bp, url_prefix="/api")
    app.register_blueprint(users_bp, url_prefix="/api")
    app.register_blueprint(gameweeks_bp, url_prefix="/api")

    return app
