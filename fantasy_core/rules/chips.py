"""Chip eligibility and activation.

The chip board is the single source of truth for whether a wildcard or
free hit is in play.  "Active now" is always re-derived as
``is_active and pinned_gameweek == current_gameweek``; a stale ``True``
left over from an earlier gameweek never counts.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable

from fantasy_core.logging_config import get_logger
from fantasy_core.schemas.chips import ChipBoard, ChipUsage
from fantasy_core.schemas.fpl_rules import (
    CHIP_WINDOWS,
    GAMEWEEK_ONE_BLOCKED_CHIPS,
    UNLIMITED_TRANSFER_CHIPS,
    WILDCARD_SLOTS,
    ChipSlot,
    in_window,
)
from fantasy_core.schemas.transfer_state import TransferState

logger = get_logger(__name__)


class ChipRejection(str, Enum):
    """Why a chip may not be turned on (checked in this order)."""

    ALREADY_USED = "already_used"
    DEADLINE_PASSED = "deadline_passed"
    ANOTHER_CHIP_ACTIVE = "another_chip_active"
    WILDCARD1_UNAVAILABLE = "wildcard1_unavailable"
    WILDCARD2_UNAVAILABLE = "wildcard2_unavailable"
    NOT_IN_GAMEWEEK_ONE = "not_in_gameweek_one"

    @property
    def message(self) -> str:
        return _REJECTION_MESSAGES[self]


_REJECTION_MESSAGES = {
    ChipRejection.ALREADY_USED: "Chip already used this season",
    ChipRejection.DEADLINE_PASSED: "Deadline has passed",
    ChipRejection.ANOTHER_CHIP_ACTIVE: "Another chip is already active this gameweek",
    ChipRejection.WILDCARD1_UNAVAILABLE: "Wildcard 1 can only be used in gameweeks 2-13",
    ChipRejection.WILDCARD2_UNAVAILABLE: "Wildcard 2 can only be used in gameweeks 14-27",
    ChipRejection.NOT_IN_GAMEWEEK_ONE: "This chip cannot be used in Gameweek 1",
}

_WINDOW_REJECTIONS = {
    ChipSlot.WILDCARD_1: ChipRejection.WILDCARD1_UNAVAILABLE,
    ChipSlot.WILDCARD_2: ChipRejection.WILDCARD2_UNAVAILABLE,
}


# ---------------------------------------------------------------------------
# Effective status
# ---------------------------------------------------------------------------

def effective_wildcard(board: ChipBoard, current_gameweek: int) -> bool:
    """True if either wildcard is pinned to and active in *current_gameweek*."""
    return any(board.get(slot).is_active_in(current_gameweek) for slot in WILDCARD_SLOTS)


def effective_free_hit(board: ChipBoard, current_gameweek: int) -> bool:
    return board.get(ChipSlot.FREE_HIT).is_active_in(current_gameweek)


def sync_chip_cache(state: TransferState, board: ChipBoard, current_gameweek: int) -> TransferState:
    """Refresh the cached chip flags on *state* from the board."""
    wildcard = effective_wildcard(board, current_gameweek)
    free_hit = effective_free_hit(board, current_gameweek)
    if (
        state.wildcard_active_this_week == wildcard
        and state.free_hit_active_this_week == free_hit
    ):
        return state
    logger.info(
        "Chip cache out of sync for GW%d (wildcard %s -> %s, free hit %s -> %s)",
        current_gameweek,
        state.wildcard_active_this_week, wildcard,
        state.free_hit_active_this_week, free_hit,
    )
    return state.model_copy(update={
        "wildcard_active_this_week": wildcard,
        "free_hit_active_this_week": free_hit,
    })


def expire_stale_chips(board: ChipBoard, current_gameweek: int) -> ChipBoard:
    """Clear ``is_active`` on every slot pinned before *current_gameweek*.

    ``used`` and the pinned gameweek are kept: the chip has been played.
    """
    for slot, usage in board.items():
        if (
            usage.is_active
            and usage.pinned_gameweek is not None
            and usage.pinned_gameweek < current_gameweek
        ):
            logger.info(
                "Expiring %s (pinned to GW%d, now GW%d)",
                slot.value, usage.pinned_gameweek, current_gameweek,
            )
            board = board.with_slot(slot, usage.model_copy(update={"is_active": False}))
    return board


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------

def can_activate(
    slot: ChipSlot,
    board: ChipBoard,
    current_gameweek: int,
    deadline_passed: bool,
    is_any_open_in_range: Callable[[int, int], bool] | None = None,
) -> ChipRejection | None:
    """Return the first reason *slot* cannot be turned on, or None if it can.

    *is_any_open_in_range* answers whether any gameweek in an inclusive
    range is still open; without it only *current_gameweek* is checked
    against the wildcard windows.
    """
    if board.get(slot).used:
        return ChipRejection.ALREADY_USED

    if deadline_passed:
        return ChipRejection.DEADLINE_PASSED

    if any(other != slot for other in board.active_slots(current_gameweek)):
        return ChipRejection.ANOTHER_CHIP_ACTIVE

    window = CHIP_WINDOWS.get(slot)
    if window is not None:
        window_open = is_any_open_in_range(*window) if is_any_open_in_range else True
        if not in_window(current_gameweek, window) or not window_open:
            return _WINDOW_REJECTIONS[slot]

    if current_gameweek == 1 and slot in GAMEWEEK_ONE_BLOCKED_CHIPS:
        return ChipRejection.NOT_IN_GAMEWEEK_ONE

    return None


def activate_chip(
    slot: ChipSlot,
    board: ChipBoard,
    state: TransferState,
    current_gameweek: int,
) -> tuple[ChipBoard, TransferState]:
    """Play *slot* in *current_gameweek*.

    Callers must have checked :func:`can_activate`.  Returns the new board
    and the state with its cached flags refreshed; both must be persisted
    together.  Playing a wildcard or free hit makes the whole gameweek
    free, so hits already taken this week are refunded.
    """
    board = expire_stale_chips(board, current_gameweek)
    board = board.with_slot(
        slot,
        ChipUsage(used=True, pinned_gameweek=current_gameweek, is_active=True),
    )

    if slot in UNLIMITED_TRANSFER_CHIPS:
        if state.paid_transfers_this_week:
            logger.info(
                "%s played in GW%d: refunding %d point(s) of hits",
                slot.label, current_gameweek, state.points_deducted_this_week,
            )
        state = state.model_copy(update={
            "paid_transfers_this_week": 0,
            "points_deducted_this_week": 0,
        })

    state = sync_chip_cache(state, board, current_gameweek)
    return board, state
