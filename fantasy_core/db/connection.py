"""SQLite connection manager with WAL mode and foreign keys."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from fantasy_core.config import server_cfg
from fantasy_core.paths import DB_PATH


class StoreError(RuntimeError):
    """A record-store read or write failed; the whole request was rolled back."""


def _ensure_schema(conn: sqlite3.Connection) -> None:
    """Create tables if missing (handles mid-run DB deletion)."""
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='transfer_log'"
    ).fetchone()
    if row is None:
        from fantasy_core.db.migrations import apply_migrations
        apply_migrations(conn)


def get_connection(db_path: Path | None = None) -> sqlite3.Connection:
    """Open a SQLite connection with WAL journal mode, FKs, and Row factory.

    Parameters
    ----------
    db_path:
        Path to the database file.  Defaults to ``DB_PATH`` from
        :mod:`fantasy_core.paths`.
    """
    db = db_path or DB_PATH
    db.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db), timeout=server_cfg.sqlite_timeout)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    _ensure_schema(conn)
    return conn


@contextmanager
def connect(db_path: Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Context manager that yields a connection and closes it on exit.

    Usage::

        with connect() as conn:
            conn.execute("SELECT ...")
    """
    conn = get_connection(db_path)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(db_path: Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Yield a connection inside ``BEGIN IMMEDIATE``; commit on success.

    The write lock is taken up front, so two read-modify-write sequences
    on the same database never interleave.  Any failure rolls back every
    write made through the connection; SQLite errors surface as
    :class:`StoreError`.
    """
    try:
        conn = get_connection(db_path)
    except sqlite3.Error as exc:
        raise StoreError(f"Could not open database: {exc}") from exc
    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except sqlite3.Error as exc:
        conn.rollback()
        raise StoreError(str(exc)) from exc
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()
