"""Central configuration — every rule constant in one place."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Transfers
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class TransferRulesConfig:
    hit_cost: int = 4  # Points deducted per paid transfer
    max_banked_free_transfers: int = 2
    free_transfers_per_gameweek: int = 1
    free_transfers_after_first_save: int = 1
    unlimited_gameweek: int = 1  # Every transfer in this GW is free
    legacy_unlimited_threshold: int = 999  # Old records stored 999/9999 for "unlimited"


# ---------------------------------------------------------------------------
# Chips
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ChipRulesConfig:
    # Inclusive gameweek windows for the two wildcards
    wildcard1_window: tuple[int, int] = (2, 13)
    wildcard2_window: tuple[int, int] = (14, 27)
    # Slots that may not be played in gameweek 1
    blocked_in_gameweek_one: tuple[str, ...] = ("wildcard1", "wildcard2", "freeHit")
    slot_labels: dict[str, str] = field(default_factory=lambda: {
        "wildcard1": "Wildcard 1",
        "wildcard2": "Wildcard 2",
        "benchBoost": "Bench Boost",
        "tripleCaptain": "Triple Captain",
        "freeHit": "Free Hit",
    })


# ---------------------------------------------------------------------------
# Season
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SeasonConfig:
    total_gameweeks: int = 38
    first_gameweek: int = 1


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ServerConfig:
    host: str = os.environ.get("FANTASY_HOST", "127.0.0.1")
    port: int = int(os.environ.get("FANTASY_PORT", "9875"))
    sqlite_timeout: float = 10.0  # Seconds to wait on a locked database


transfer_cfg = TransferRulesConfig()
chip_cfg = ChipRulesConfig()
season_cfg = SeasonConfig()
server_cfg = ServerConfig()
