"""Gameweek schedule lookups.

The engine never decides which gameweek is open; it asks a clock.  The
SQLite-backed clock reads the ``gameweek`` table, which an operator (or
the ``PUT /api/gameweeks/<gw>`` route) keeps current.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from fantasy_core.db.connection import connect
from fantasy_core.db.repositories import GameweekRepository
from fantasy_core.paths import DB_PATH


def parse_deadline(value: str | datetime) -> datetime:
    """Parse an ISO deadline ("2025-08-16T10:00:00Z"); naive times are UTC."""
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class OpenGameweek(BaseModel):
    gameweek: int = Field(..., ge=1)
    deadline: datetime
    is_open: bool = True

    @field_validator("deadline", mode="before")
    @classmethod
    def _parse_deadline(cls, value):
        return parse_deadline(value)

    def deadline_passed(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now > self.deadline

    def to_api(self) -> dict:
        return {
            "gameweek": self.gameweek,
            "deadline": self.deadline.isoformat(),
            "is_open": self.is_open,
            "deadline_passed": self.deadline_passed(),
        }

    @classmethod
    def from_row(cls, row: dict) -> "OpenGameweek":
        return cls(
            gameweek=row["gameweek"],
            deadline=row["deadline"],
            is_open=bool(row["is_open"]),
        )


class GameweekClock(ABC):
    """Read-only view of the schedule.  Reads take no lock."""

    @abstractmethod
    def current_open_gameweek(self) -> OpenGameweek | None: ...

    @abstractmethod
    def is_any_open_in_range(self, lo: int, hi: int) -> bool: ...

    @abstractmethod
    def is_closed(self, gameweek: int) -> bool: ...


class SqliteGameweekClock(GameweekClock):
    """Clock backed by the ``gameweek`` table of the fantasy database."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or DB_PATH

    def current_open_gameweek(self) -> OpenGameweek | None:
        with connect(self.db_path) as conn:
            row = GameweekRepository(conn).get_open_gameweek()
        return OpenGameweek.from_row(row) if row else None

    def is_any_open_in_range(self, lo: int, hi: int) -> bool:
        with connect(self.db_path) as conn:
            return GameweekRepository(conn).any_open_in_range(lo, hi)

    def is_closed(self, gameweek: int) -> bool:
        """A gameweek is closed once it is marked not open.

        Gameweeks missing from the table count as closed when a later
        one is open.
        """
        with connect(self.db_path) as conn:
            repo = GameweekRepository(conn)
            row = repo.get_gameweek(gameweek)
            if row is not None:
                return not row["is_open"]
            open_row = repo.get_open_gameweek()
        return open_row is not None and open_row["gameweek"] > gameweek
