"""Database layer — connection, schema, migrations, and repositories."""

from fantasy_core.db.connection import StoreError, connect, get_connection, transaction
from fantasy_core.db.migrations import apply_migrations, get_schema_version
from fantasy_core.db.repositories import (
    ChipBoardRepository,
    GameweekRepository,
    TransferLogRepository,
    TransferStateRepository,
    UserRepository,
)
from fantasy_core.db.schema import SCHEMA_SQL, init_schema

__all__ = [
    "StoreError",
    "connect",
    "get_connection",
    "transaction",
    "apply_migrations",
    "get_schema_version",
    "init_schema",
    "SCHEMA_SQL",
    "UserRepository",
    "GameweekRepository",
    "TransferStateRepository",
    "ChipBoardRepository",
    "TransferLogRepository",
]
