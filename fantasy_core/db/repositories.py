"""Repository classes — one per database table.

Each repository wraps an open connection so that several of them can
take part in one transaction (see :func:`fantasy_core.db.connection.transaction`).
None of them commit; the caller owns the transaction.
"""

from __future__ import annotations

import sqlite3

from fantasy_core.schemas.chips import ChipBoard
from fantasy_core.schemas.fpl_rules import LEGACY_UNLIMITED_THRESHOLD, parse_chip_slot
from fantasy_core.schemas.transfer_state import Limited, TransferState, Unlimited


# ---------------------------------------------------------------------------
# UserRepository
# ---------------------------------------------------------------------------

class UserRepository:
    """CRUD for the ``users`` table."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def create_user(self, user_id: str) -> bool:
        """Insert *user_id*; return False if it already existed."""
        cur = self.conn.execute(
            "INSERT INTO users (user_id) VALUES (?) ON CONFLICT(user_id) DO NOTHING",
            (user_id,),
        )
        return cur.rowcount > 0

    def get_user(self, user_id: str) -> dict | None:
        row = self.conn.execute(
            "SELECT * FROM users WHERE user_id=?", (user_id,),
        ).fetchone()
        return dict(row) if row else None

    def mark_squad_saved(self, user_id: str, gameweek: int) -> None:
        self.conn.execute(
            """UPDATE users SET
                 has_ever_saved_squad=1,
                 first_saved_gameweek=COALESCE(first_saved_gameweek, ?)
               WHERE user_id=?""",
            (gameweek, user_id),
        )

    def list_user_ids(self) -> list[str]:
        rows = self.conn.execute("SELECT user_id FROM users ORDER BY user_id").fetchall()
        return [r[0] for r in rows]


# ---------------------------------------------------------------------------
# GameweekRepository
# ---------------------------------------------------------------------------

class GameweekRepository:
    """CRUD for the ``gameweek`` schedule table."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def save_gameweek(self, gameweek: int, deadline: str, is_open: bool) -> None:
        """Upsert *gameweek*.  Opening it closes every other gameweek."""
        if is_open:
            self.conn.execute(
                "UPDATE gameweek SET is_open=0, updated_at=datetime('now') "
                "WHERE gameweek != ? AND is_open=1",
                (gameweek,),
            )
        self.conn.execute(
            """INSERT INTO gameweek (gameweek, deadline, is_open)
               VALUES (?, ?, ?)
               ON CONFLICT(gameweek) DO UPDATE SET
                 deadline=excluded.deadline,
                 is_open=excluded.is_open,
                 updated_at=datetime('now')""",
            (gameweek, deadline, int(is_open)),
        )

    def get_gameweek(self, gameweek: int) -> dict | None:
        row = self.conn.execute(
            "SELECT * FROM gameweek WHERE gameweek=?", (gameweek,),
        ).fetchone()
        return dict(row) if row else None

    def get_open_gameweek(self) -> dict | None:
        row = self.conn.execute(
            "SELECT * FROM gameweek WHERE is_open=1 ORDER BY gameweek LIMIT 1"
        ).fetchone()
        return dict(row) if row else None

    def any_open_in_range(self, lo: int, hi: int) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM gameweek WHERE is_open=1 AND gameweek BETWEEN ? AND ? LIMIT 1",
            (lo, hi),
        ).fetchone()
        return row is not None


# ---------------------------------------------------------------------------
# TransferStateRepository
# ---------------------------------------------------------------------------

class TransferStateRepository:
    """Record store for :class:`TransferState` (``transfer_state`` table)."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @staticmethod
    def _from_row(row: sqlite3.Row) -> TransferState:
        # Old rows carry the 999/9999 sentinel in bank_count with no kind;
        # TransferState heals both shapes.
        kind = row["bank_kind"]
        bank = {"kind": kind, "count": row["bank_count"]} if kind else row["bank_count"]
        return TransferState.model_validate({
            "free_transfer_bank": bank,
            "paid_transfers_this_week": row["paid_transfers"],
            "points_deducted_this_week": row["points_deducted"],
            "last_gameweek_processed": row["last_gameweek_processed"],
            "wildcard_active_this_week": row["wildcard_active"],
            "free_hit_active_this_week": row["free_hit_active"],
        })

    def get(self, user_id: str) -> TransferState | None:
        row = self.conn.execute(
            "SELECT * FROM transfer_state WHERE user_id=?", (user_id,),
        ).fetchone()
        return self._from_row(row) if row else None

    def put(self, user_id: str, state: TransferState) -> None:
        bank = state.free_transfer_bank
        bank_count = bank.count if isinstance(bank, Limited) else None
        self.conn.execute(
            """INSERT INTO transfer_state
               (user_id, bank_kind, bank_count, paid_transfers, points_deducted,
                last_gameweek_processed, wildcard_active, free_hit_active)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(user_id) DO UPDATE SET
                 bank_kind=excluded.bank_kind,
                 bank_count=excluded.bank_count,
                 paid_transfers=excluded.paid_transfers,
                 points_deducted=excluded.points_deducted,
                 last_gameweek_processed=excluded.last_gameweek_processed,
                 wildcard_active=excluded.wildcard_active,
                 free_hit_active=excluded.free_hit_active,
                 updated_at=datetime('now')""",
            (
                user_id,
                bank.kind,
                bank_count,
                state.paid_transfers_this_week,
                state.points_deducted_this_week,
                state.last_gameweek_processed,
                int(state.wildcard_active_this_week),
                int(state.free_hit_active_this_week),
            ),
        )

    def count_unlimited(self) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) FROM transfer_state "
            "WHERE bank_kind=? OR (bank_kind IS NULL AND bank_count >= ?)",
            (Unlimited().kind, LEGACY_UNLIMITED_THRESHOLD),
        ).fetchone()
        return row[0]


# ---------------------------------------------------------------------------
# ChipBoardRepository
# ---------------------------------------------------------------------------

class ChipBoardRepository:
    """Record store for :class:`ChipBoard` (``chip_usage`` table, one row per slot)."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get(self, user_id: str) -> ChipBoard | None:
        rows = self.conn.execute(
            "SELECT slot, used, pinned_gameweek, is_active FROM chip_usage WHERE user_id=?",
            (user_id,),
        ).fetchall()
        if not rows:
            return None
        # Unknown slot names are ignored and missing slots take defaults.
        return ChipBoard.model_validate({
            r["slot"]: {
                "used": r["used"],
                "pinned_gameweek": r["pinned_gameweek"],
                "is_active": r["is_active"],
            }
            for r in rows
            if parse_chip_slot(r["slot"]) is not None
        })

    def put(self, user_id: str, board: ChipBoard) -> None:
        self.conn.executemany(
            """INSERT INTO chip_usage (user_id, slot, used, pinned_gameweek, is_active)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(user_id, slot) DO UPDATE SET
                 used=excluded.used,
                 pinned_gameweek=excluded.pinned_gameweek,
                 is_active=excluded.is_active,
                 updated_at=datetime('now')""",
            [
                (user_id, slot.value, int(u.used), u.pinned_gameweek, int(u.is_active))
                for slot, u in board.items()
            ],
        )


# ---------------------------------------------------------------------------
# TransferLogRepository
# ---------------------------------------------------------------------------

class TransferLogRepository:
    """Append-only log for the ``transfer_log`` table."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def add_transfer(
        self,
        user_id: str,
        gameweek: int,
        player_out_id: str,
        player_in_id: str,
        transfer_cost: int,
    ) -> int:
        cur = self.conn.execute(
            """INSERT INTO transfer_log
               (user_id, gameweek, player_out_id, player_in_id, transfer_cost)
               VALUES (?, ?, ?, ?, ?)""",
            (user_id, gameweek, player_out_id, player_in_id, transfer_cost),
        )
        return cur.lastrowid

    def get_history(self, user_id: str, limit: int = 100) -> list[dict]:
        rows = self.conn.execute(
            """SELECT gameweek, player_out_id, player_in_id, transfer_cost, created_at
               FROM transfer_log WHERE user_id=?
               ORDER BY id DESC LIMIT ?""",
            (user_id, limit),
        ).fetchall()
        return [dict(r) for r in rows]
