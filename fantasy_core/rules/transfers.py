"""Transfer cost calculation.

Running-counter model: the bank is decremented as free transfers are
spent and every transfer beyond it adds one paid transfer.  Nothing is
reconstructed from "what the user had at the start of the week".
"""

from __future__ import annotations

from fantasy_core.config import transfer_cfg
from fantasy_core.logging_config import get_logger
from fantasy_core.rules.chips import effective_free_hit, effective_wildcard
from fantasy_core.schemas.chips import ChipBoard
from fantasy_core.schemas.fpl_rules import HIT_COST, UNLIMITED_GAMEWEEK
from fantasy_core.schemas.transfer_state import Limited, TransferState, TransferSummary, Unlimited

logger = get_logger(__name__)

FREE_TRANSFERS_AFTER_FIRST_SAVE = transfer_cfg.free_transfers_after_first_save


class StaleTransferStateError(ValueError):
    """The state is anchored to another gameweek; run the transition first."""


def apply_transfer(
    state: TransferState,
    board: ChipBoard,
    current_gameweek: int,
) -> tuple[TransferState, TransferSummary]:
    """Charge one transfer against *state*.

    Free when it is gameweek 1, a wildcard or free hit is active now, or
    the bank is unlimited.  Otherwise a banked free transfer is spent if
    one is left, else the transfer is paid (4 points each).
    """
    if current_gameweek != state.last_gameweek_processed:
        raise StaleTransferStateError(
            f"Transfer state is anchored to GW{state.last_gameweek_processed}, "
            f"not GW{current_gameweek}"
        )

    wildcard = effective_wildcard(board, current_gameweek)
    free_hit = effective_free_hit(board, current_gameweek)
    unlimited = state.is_unlimited
    paid_before = state.paid_transfers_this_week

    if current_gameweek == UNLIMITED_GAMEWEEK or wildcard or free_hit or unlimited:
        summary = TransferSummary(
            paid_transfers=0,
            points_deducted=state.points_deducted_this_week,
            wildcard_used=wildcard,
            free_hit_used=free_hit,
            unlimited=unlimited or current_gameweek == UNLIMITED_GAMEWEEK,
        )
        return state, summary

    bank = state.free_transfer_bank
    paid = paid_before
    free_used = False
    if isinstance(bank, Limited) and bank.count > 0:
        bank = bank.consume()
        free_used = True
    else:
        paid += 1

    new_state = state.model_copy(update={
        "free_transfer_bank": bank,
        "paid_transfers_this_week": paid,
        "points_deducted_this_week": paid * HIT_COST,
    })
    summary = TransferSummary(
        paid_transfers=paid - paid_before,
        points_deducted=new_state.points_deducted_this_week,
        free_transfer_used=free_used,
    )
    logger.debug(
        "GW%d transfer: bank %s -> %s, paid %d, points %d",
        current_gameweek, state.free_transfers_label, new_state.free_transfers_label,
        paid, new_state.points_deducted_this_week,
    )
    return new_state, summary


def transfer_message(summary: TransferSummary, gameweek: int) -> str:
    """User-facing confirmation for one transfer."""
    if gameweek == UNLIMITED_GAMEWEEK:
        return "Transfer completed! (GW1 - Unlimited free transfers)"
    if summary.wildcard_used:
        return "Transfer completed! (Wildcard active - No cost)"
    if summary.free_hit_used:
        return "Transfer completed! (Free Hit active - No cost)"
    if summary.unlimited:
        return "Transfer completed! (Unlimited transfers while building your first squad)"
    if summary.paid_transfers > 0:
        return f"Transfer completed! This will cost {summary.points_deducted} points."
    return "Transfer completed! Free transfer used."


def default_transfer_state(current_gameweek: int, has_saved_squad: bool) -> TransferState:
    """Fresh record for a user seen for the first time.

    Users who have never saved a squad build it with unlimited transfers.
    """
    bank = Limited(count=FREE_TRANSFERS_AFTER_FIRST_SAVE) if has_saved_squad else Unlimited()
    return TransferState(
        free_transfer_bank=bank,
        last_gameweek_processed=current_gameweek,
    )


def record_squad_save(state: TransferState) -> TransferState:
    """Collapse an unlimited bank once the user's first squad is saved."""
    if not state.is_unlimited:
        return state
    logger.info(
        "First squad saved in GW%d: unlimited bank collapses to %d free transfer(s)",
        state.last_gameweek_processed, FREE_TRANSFERS_AFTER_FIRST_SAVE,
    )
    return state.model_copy(update={
        "free_transfer_bank": Limited(count=FREE_TRANSFERS_AFTER_FIRST_SAVE),
    })
