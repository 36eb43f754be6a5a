"""League rule constants and chip slot definitions.

Encodes the transfer and chip rules of the league as constants, used by the
rule engine, the request pipeline and the audit tooling.
"""

from __future__ import annotations

from enum import Enum

from fantasy_core.config import chip_cfg, transfer_cfg


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Transfers
HIT_COST = transfer_cfg.hit_cost  # Points deducted per paid transfer
MAX_BANKED_FREE_TRANSFERS = transfer_cfg.max_banked_free_transfers
FREE_TRANSFERS_PER_GAMEWEEK = transfer_cfg.free_transfers_per_gameweek
UNLIMITED_GAMEWEEK = transfer_cfg.unlimited_gameweek
LEGACY_UNLIMITED_THRESHOLD = transfer_cfg.legacy_unlimited_threshold

# Wildcard windows (inclusive)
WILDCARD1_WINDOW = chip_cfg.wildcard1_window
WILDCARD2_WINDOW = chip_cfg.wildcard2_window


# ---------------------------------------------------------------------------
# Chip definitions
# ---------------------------------------------------------------------------

class ChipSlot(str, Enum):
    WILDCARD_1 = "wildcard1"
    WILDCARD_2 = "wildcard2"
    BENCH_BOOST = "benchBoost"
    TRIPLE_CAPTAIN = "tripleCaptain"
    FREE_HIT = "freeHit"

    @property
    def label(self) -> str:
        return chip_cfg.slot_labels[self.value]


WILDCARD_SLOTS = (ChipSlot.WILDCARD_1, ChipSlot.WILDCARD_2)

# Chips that make every transfer of their gameweek free
UNLIMITED_TRANSFER_CHIPS = {ChipSlot.WILDCARD_1, ChipSlot.WILDCARD_2, ChipSlot.FREE_HIT}

# Chips that cannot be played in gameweek 1
GAMEWEEK_ONE_BLOCKED_CHIPS = {ChipSlot(s) for s in chip_cfg.blocked_in_gameweek_one}

# Slot -> inclusive gameweek window
CHIP_WINDOWS: dict[ChipSlot, tuple[int, int]] = {
    ChipSlot.WILDCARD_1: WILDCARD1_WINDOW,
    ChipSlot.WILDCARD_2: WILDCARD2_WINDOW,
}


def parse_chip_slot(value: str | None) -> ChipSlot | None:
    """Return the ChipSlot for *value*, or None if it names no slot."""
    if not value:
        return None
    try:
        return ChipSlot(value)
    except ValueError:
        return None


def in_window(gameweek: int, window: tuple[int, int]) -> bool:
    """Return True if *gameweek* lies inside the inclusive *window*."""
    lo, hi = window
    return lo <= gameweek <= hi
