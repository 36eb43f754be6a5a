"""Stale-penalty reconciliation.

Hits belong to the gameweek they were taken in.  Once that gameweek has
closed they have been applied to its score, so a record still showing
them is wiped before anything else reads or writes it.
"""

from __future__ import annotations

from typing import Callable

from fantasy_core.logging_config import get_logger
from fantasy_core.rules.chips import sync_chip_cache
from fantasy_core.schemas.chips import ChipBoard
from fantasy_core.schemas.transfer_state import TransferState

logger = get_logger(__name__)


def reconcile(
    state: TransferState,
    current_gameweek: int,
    gameweek_is_closed: Callable[[int], bool],
    board: ChipBoard | None = None,
) -> TransferState:
    """Clear penalties that outlived their gameweek.

    With *board*, the cached chip flags are also refreshed from it for
    *current_gameweek*.  Idempotent.
    """
    if state.points_deducted_this_week > 0 and gameweek_is_closed(state.last_gameweek_processed):
        logger.info(
            "Clearing %d stale penalty point(s): GW%d is closed",
            state.points_deducted_this_week, state.last_gameweek_processed,
        )
        state = state.model_copy(update={
            "paid_transfers_this_week": 0,
            "points_deducted_this_week": 0,
        })

    if board is not None:
        state = sync_chip_cache(state, board, current_gameweek)
    return state
