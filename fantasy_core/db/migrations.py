"""Versioned database migration system.

A ``schema_version`` table records how far the database has been
migrated; numbered migration functions bring it up to date.
"""

from __future__ import annotations

import sqlite3
from typing import Callable

from fantasy_core.db.schema import init_schema
from fantasy_core.logging_config import get_logger

logger = get_logger(__name__)

# ── Version tracking table ─────────────────────────────────────────────

_VERSION_DDL = """\
CREATE TABLE IF NOT EXISTS schema_version (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    version INTEGER NOT NULL DEFAULT 0
);
"""


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    """Create the ``schema_version`` table if it does not exist."""
    conn.executescript(_VERSION_DDL)
    # Seed row if empty
    row = conn.execute("SELECT version FROM schema_version WHERE id = 1").fetchone()
    if row is None:
        conn.execute("INSERT INTO schema_version (id, version) VALUES (1, 0)")
        conn.commit()


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the current schema version (0 means brand-new database)."""
    _ensure_version_table(conn)
    row = conn.execute("SELECT version FROM schema_version WHERE id = 1").fetchone()
    return row[0] if row else 0


def _set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Update the stored schema version."""
    conn.execute(
        "UPDATE schema_version SET version = ? WHERE id = 1", (version,)
    )
    conn.commit()


# ── Migrations ─────────────────────────────────────────────────────────

def _migration_001_initial_schema(conn: sqlite3.Connection) -> None:
    """Migration 1: create users, gameweek, transfer_state and chip_usage."""
    init_schema(conn)


def _migration_002_transfer_log(conn: sqlite3.Connection) -> None:
    """Add the transfer_log table (one row per completed transfer)."""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS transfer_log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
            gameweek INTEGER NOT NULL,
            player_out_id TEXT NOT NULL,
            player_in_id TEXT NOT NULL,
            transfer_cost INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_transfer_log_user ON transfer_log(user_id, gameweek)"
    )
    conn.commit()


# Registry: version number -> migration function.
# Each migration brings the DB from (version - 1) to (version).
_MIGRATIONS: dict[int, Callable[[sqlite3.Connection], None]] = {
    1: _migration_001_initial_schema,
    2: _migration_002_transfer_log,
}

LATEST_VERSION: int = max(_MIGRATIONS)


# ── Public API ─────────────────────────────────────────────────────────

def apply_migrations(conn: sqlite3.Connection) -> None:
    """Apply any pending migrations to bring the database up to date.

    Safe to call on every startup; already-applied migrations are
    skipped.
    """
    current = get_schema_version(conn)

    if current >= LATEST_VERSION:
        return

    for version in range(current + 1, LATEST_VERSION + 1):
        migration_fn = _MIGRATIONS.get(version)
        if migration_fn is None:
            raise RuntimeError(
                f"Missing migration function for version {version}"
            )
        logger.info("Applying migration %d: %s", version, migration_fn.__doc__.strip().split('\n')[0])
        migration_fn(conn)
        _set_schema_version(conn, version)

    logger.info("Database schema is now at version %d", LATEST_VERSION)
