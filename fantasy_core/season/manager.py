"""Transfer manager — the request pipeline shared by every HTTP verb.

Each call runs the same sequence for one user:

    reconcile -> advance -> (apply transfer | validate chip) -> persist

under a per-user lock and inside one ``BEGIN IMMEDIATE`` transaction, so
the transfer record and the chip board are always written together and
two requests for the same user never interleave.
"""

from __future__ import annotations

import sqlite3
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Generator

from fantasy_core.db.connection import connect, transaction
from fantasy_core.db.migrations import apply_migrations
from fantasy_core.db.repositories import (
    ChipBoardRepository,
    GameweekRepository,
    TransferLogRepository,
    TransferStateRepository,
    UserRepository,
)
from fantasy_core.logging_config import get_logger
from fantasy_core.paths import DB_PATH
from fantasy_core.rules import (
    activate_chip,
    advance,
    apply_transfer,
    can_activate,
    default_transfer_state,
    reconcile,
    record_squad_save,
    transfer_message,
)
from fantasy_core.schemas.chips import ChipBoard
from fantasy_core.schemas.fpl_rules import HIT_COST, ChipSlot
from fantasy_core.schemas.transfer_state import TransferState
from fantasy_core.season.clock import GameweekClock, OpenGameweek, SqliteGameweekClock

logger = get_logger(__name__)


class UserNotFoundError(LookupError):
    """No user with this id has been registered."""


class GameweekNotOpenError(RuntimeError):
    """The request targets a gameweek that is not currently open for changes."""


class _UserLock:
    """Per-user mutex; weak-referenceable so idle users drop out of the registry."""

    __slots__ = ("_lock", "__weakref__")

    def __init__(self):
        self._lock = threading.Lock()

    def __enter__(self):
        self._lock.acquire()
        return self

    def __exit__(self, *exc_info):
        self._lock.release()


@dataclass
class _Session:
    """Both records of one user, loaded and corrected, awaiting persist."""

    conn: sqlite3.Connection
    user: dict
    state: TransferState
    board: ChipBoard


class TransferManager:
    """Entry point for reading and mutating a user's transfer entitlement.

    Parameters
    ----------
    db_path:
        SQLite database file.  Defaults to ``DB_PATH``.
    clock:
        Schedule source.  Defaults to the SQLite-backed clock reading the
        same database.
    """

    def __init__(self, db_path: Path | None = None, clock: GameweekClock | None = None):
        self.db_path = db_path or DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with connect(self.db_path) as conn:
            apply_migrations(conn)

        self.clock = clock or SqliteGameweekClock(self.db_path)
        self._locks: weakref.WeakValueDictionary[str, _UserLock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _user_lock(self, user_id: str) -> _UserLock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = _UserLock()
            return lock

    def _prepare(
        self,
        user: dict,
        state: TransferState,
        board: ChipBoard,
        gameweek: int | None,
    ) -> tuple[TransferState, ChipBoard]:
        """Run the corrections every request needs before it reads or writes.

        With no open gameweek, or one behind the record, the record stays on
        its own anchor: stale penalties are still cleared but nothing is
        advanced.
        """
        current = state.last_gameweek_processed
        if gameweek is not None and gameweek > current:
            current = gameweek
        state = reconcile(state, current, self.clock.is_closed, board)
        if gameweek is not None:
            state, board = advance(state, board, gameweek)
        if user["has_ever_saved_squad"] and state.is_unlimited:
            logger.warning("User %s saved a squad but was still unlimited; collapsing", user["user_id"])
            state = record_squad_save(state)
        return state, board

    @contextmanager
    def _session(
        self, user_id: str, gameweek: int | None, write: bool = False,
    ) -> Generator[_Session, None, None]:
        """Lock *user_id*, load and correct both records, persist them on exit.

        A *write* targeting a gameweek older than the record's anchor (the
        schedule went backwards) raises :class:`GameweekNotOpenError`.  Any
        exception rolls back every write made in the block.
        """
        with self._user_lock(user_id), transaction(self.db_path) as conn:
            user = UserRepository(conn).get_user(user_id)
            if user is None:
                raise UserNotFoundError(f"Unknown user: {user_id}")

            states = TransferStateRepository(conn)
            chips = ChipBoardRepository(conn)
            state = states.get(user_id)
            if state is None:
                state = default_transfer_state(
                    gameweek or 1, bool(user["has_ever_saved_squad"]),
                )
            board = chips.get(user_id) or ChipBoard()

            state, board = self._prepare(user, state, board, gameweek)
            if write and gameweek is not None and gameweek < state.last_gameweek_processed:
                raise GameweekNotOpenError(
                    f"GW{gameweek} is behind this record (already at GW{state.last_gameweek_processed})"
                )
            session = _Session(conn=conn, user=user, state=state, board=board)
            yield session

            states.put(user_id, session.state)
            chips.put(user_id, session.board)

    def _require_open(self, gameweek: int) -> OpenGameweek:
        open_gw = self.clock.current_open_gameweek()
        if open_gw is None:
            raise GameweekNotOpenError("No gameweek is currently open")
        if open_gw.gameweek != gameweek:
            raise GameweekNotOpenError(
                f"GW{gameweek} is not open (current open gameweek is GW{open_gw.gameweek})"
            )
        return open_gw

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_transfer_state(self, user_id: str) -> dict:
        """Current transfer record, corrected and persisted."""
        open_gw = self.clock.current_open_gameweek()
        with self._session(user_id, open_gw.gameweek if open_gw else None) as s:
            pass
        return {
            "transfer_state": s.state.to_api(),
            "gameweek_id": s.state.last_gameweek_processed,
            "open_gameweek": open_gw.to_api() if open_gw else None,
        }

    def get_chips(self, user_id: str) -> dict:
        open_gw = self.clock.current_open_gameweek()
        with self._session(user_id, open_gw.gameweek if open_gw else None) as s:
            pass
        gameweek = s.state.last_gameweek_processed
        active = s.board.active_slots(gameweek)
        return {
            "chips": s.board.to_api(),
            "active_chip": active[0].value if active else None,
            "gameweek_id": gameweek,
        }

    def transfer_history(self, user_id: str, limit: int = 100) -> list[dict]:
        with connect(self.db_path) as conn:
            if UserRepository(conn).get_user(user_id) is None:
                raise UserNotFoundError(f"Unknown user: {user_id}")
            return TransferLogRepository(conn).get_history(user_id, limit)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def make_transfer(
        self,
        user_id: str,
        player_out_id: str,
        player_in_id: str,
        gameweek_id: int,
    ) -> dict:
        """Charge one transfer in *gameweek_id* and log it.

        Raises :class:`GameweekNotOpenError` when *gameweek_id* is not the
        open gameweek or its deadline has passed.
        """
        open_gw = self._require_open(gameweek_id)
        if open_gw.deadline_passed():
            raise GameweekNotOpenError(f"The GW{gameweek_id} deadline has passed")

        with self._session(user_id, gameweek_id, write=True) as s:
            s.state, summary = apply_transfer(s.state, s.board, gameweek_id)
            TransferLogRepository(s.conn).add_transfer(
                user_id, gameweek_id, player_out_id, player_in_id,
                summary.paid_transfers * HIT_COST,
            )

        logger.info(
            "User %s GW%d transfer %s -> %s (bank %s, %d point(s) this week)",
            user_id, gameweek_id, player_out_id, player_in_id,
            s.state.free_transfers_label, s.state.points_deducted_this_week,
        )
        return {
            "transfer_state": s.state.to_api(),
            "summary": summary.model_dump(),
            "message": transfer_message(summary, gameweek_id),
        }

    def activate_chip(self, user_id: str, slot: ChipSlot, current_gameweek: int) -> dict:
        """Play *slot* in *current_gameweek*.

        Returns ``{"error", "reason"}`` when the chip may not be played;
        the corrections made by the pipeline are persisted either way.
        """
        open_gw = self._require_open(current_gameweek)

        with self._session(user_id, current_gameweek, write=True) as s:
            rejection = can_activate(
                slot, s.board, current_gameweek,
                open_gw.deadline_passed(), self.clock.is_any_open_in_range,
            )
            if rejection is None:
                s.board, s.state = activate_chip(slot, s.board, s.state, current_gameweek)

        if rejection is not None:
            logger.info(
                "User %s: %s rejected in GW%d (%s)",
                user_id, slot.value, current_gameweek, rejection.value,
            )
            return {"error": rejection.message, "reason": rejection.value}

        logger.info("User %s played %s in GW%d", user_id, slot.label, current_gameweek)
        return {
            "chips": s.board.to_api(),
            "transfer_state": s.state.to_api(),
            "message": f"{slot.label} activated for Gameweek {current_gameweek}",
        }

    def record_squad_save(self, user_id: str, gameweek_id: int) -> dict:
        """Mark the user's roster as saved; an unlimited bank collapses to one."""
        self._require_open(gameweek_id)

        with self._session(user_id, gameweek_id, write=True) as s:
            UserRepository(s.conn).mark_squad_saved(user_id, gameweek_id)
            s.state = record_squad_save(s.state)

        return {"transfer_state": s.state.to_api()}

    def register_user(self, user_id: str) -> bool:
        """Create *user_id*; returns False if it already existed."""
        with transaction(self.db_path) as conn:
            created = UserRepository(conn).create_user(user_id)
        if created:
            logger.info("Registered user %s", user_id)
        return created

    # ------------------------------------------------------------------
    # Schedule
    # ------------------------------------------------------------------

    def set_gameweek(self, gameweek: int, deadline: str, is_open: bool) -> None:
        """Store a gameweek's deadline and open flag (opening one closes the rest)."""
        with transaction(self.db_path) as conn:
            GameweekRepository(conn).save_gameweek(gameweek, deadline, is_open)
        logger.info("GW%d saved (deadline %s, open=%s)", gameweek, deadline, is_open)
