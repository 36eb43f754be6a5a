"""Shared test fixtures for fantasy_core."""

import pytest

from fantasy_core.schemas.chips import ChipBoard, ChipUsage
from fantasy_core.season.clock import GameweekClock, OpenGameweek

FUTURE_DEADLINE = "2099-08-16T10:00:00Z"
PAST_DEADLINE = "2000-08-16T10:00:00Z"


class FakeClock(GameweekClock):
    """In-memory schedule: one open gameweek (or none), earlier ones closed."""

    def __init__(self, gameweek=2, deadline=FUTURE_DEADLINE):
        self.open = None
        if gameweek is not None:
            self.open_gameweek(gameweek, deadline)

    def open_gameweek(self, gameweek, deadline=FUTURE_DEADLINE):
        self.open = OpenGameweek(gameweek=gameweek, deadline=deadline)

    def close_all(self):
        self.open = None

    def current_open_gameweek(self):
        return self.open

    def is_any_open_in_range(self, lo, hi):
        return self.open is not None and lo <= self.open.gameweek <= hi

    def is_closed(self, gameweek):
        return self.open is None or gameweek < self.open.gameweek


@pytest.fixture
def tmp_db(tmp_path):
    """Temporary database path for DB tests."""
    return tmp_path / "test_fantasy.db"


@pytest.fixture
def clock():
    return FakeClock(gameweek=2)


@pytest.fixture
def manager(tmp_db, clock):
    from fantasy_core.season.manager import TransferManager
    return TransferManager(db_path=tmp_db, clock=clock)


@pytest.fixture
def saved_user(manager):
    """A registered user who saved their first squad in GW2 (bank Limited(1))."""
    manager.register_user("u1")
    manager.record_squad_save("u1", 2)
    return "u1"


@pytest.fixture
def app(tmp_db, clock):
    from fantasy_core.api import create_app
    app = create_app(db_path=tmp_db, clock=clock)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def board_with(**slots):
    """ChipBoard with the given slots set, e.g. ``board_with(wildcard1=(5, True))``."""
    usages = {
        name: ChipUsage(used=True, pinned_gameweek=gw, is_active=active)
        for name, (gw, active) in slots.items()
    }
    return ChipBoard(**usages)
