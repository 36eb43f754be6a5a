"""Season orchestration — gameweek clock, request pipeline and audit."""

from fantasy_core.season.clock import GameweekClock, OpenGameweek, SqliteGameweekClock
from fantasy_core.season.manager import GameweekNotOpenError, TransferManager, UserNotFoundError

__all__ = [
    "GameweekClock",
    "OpenGameweek",
    "SqliteGameweekClock",
    "TransferManager",
    "GameweekNotOpenError",
    "UserNotFoundError",
]
