"""Gameweek rollover for a transfer record.

A record anchored to an earlier gameweek gains one free transfer (capped
at two), loses its weekly counters, and is re-anchored.  An unlimited
bank is left alone so a first-time user keeps it until their first save.
"""

from __future__ import annotations

from fantasy_core.logging_config import get_logger
from fantasy_core.rules.chips import expire_stale_chips, sync_chip_cache
from fantasy_core.schemas.chips import ChipBoard
from fantasy_core.schemas.transfer_state import Limited, TransferState

logger = get_logger(__name__)


def needs_transition(state: TransferState, current_gameweek: int) -> bool:
    return current_gameweek > state.last_gameweek_processed


def advance(
    state: TransferState,
    board: ChipBoard,
    current_gameweek: int,
) -> tuple[TransferState, ChipBoard]:
    """Move *state* (and the chip board) forward to *current_gameweek*.

    No-op when already anchored there.  A *current_gameweek* earlier than
    the anchor is a stale clock read and is ignored as well.
    """
    if current_gameweek == state.last_gameweek_processed:
        return state, board
    if current_gameweek < state.last_gameweek_processed:
        logger.warning(
            "Ignoring transition to GW%d: record already anchored to GW%d",
            current_gameweek, state.last_gameweek_processed,
        )
        return state, board

    bank = state.free_transfer_bank
    if isinstance(bank, Limited):
        bank = bank.accrue()

    new_state = state.model_copy(update={
        "free_transfer_bank": bank,
        "paid_transfers_this_week": 0,
        "points_deducted_this_week": 0,
        "last_gameweek_processed": current_gameweek,
    })
    new_board = expire_stale_chips(board, current_gameweek)
    new_state = sync_chip_cache(new_state, new_board, current_gameweek)

    logger.info(
        "Transfer record advanced GW%d -> GW%d (free transfers %s -> %s)",
        state.last_gameweek_processed, current_gameweek,
        state.free_transfers_label, new_state.free_transfers_label,
    )
    return new_state, new_board
