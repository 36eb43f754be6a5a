"""Database schema — all CREATE TABLE statements."""

from __future__ import annotations

import sqlite3

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS users (
    user_id TEXT PRIMARY KEY,
    has_ever_saved_squad INTEGER NOT NULL DEFAULT 0,
    first_saved_gameweek INTEGER,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS gameweek (
    gameweek INTEGER PRIMARY KEY,
    deadline TEXT NOT NULL,
    is_open INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS transfer_state (
    user_id TEXT PRIMARY KEY REFERENCES users(user_id) ON DELETE CASCADE,
    bank_kind TEXT,
    bank_count INTEGER,
    paid_transfers INTEGER,
    points_deducted INTEGER,
    last_gameweek_processed INTEGER,
    wildcard_active INTEGER,
    free_hit_active INTEGER,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS chip_usage (
    user_id TEXT NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
    slot TEXT NOT NULL,
    used INTEGER NOT NULL DEFAULT 0,
    pinned_gameweek INTEGER,
    is_active INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (user_id, slot)
);
"""


def init_schema(conn: sqlite3.Connection) -> None:
    """Execute the full schema DDL on *conn*."""
    conn.executescript(SCHEMA_SQL)
