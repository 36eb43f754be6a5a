"""Forensic sweep over every stored transfer record.

Reports records the request pipeline would correct on the user's next
visit, plus corruption it cannot (more than one chip active at once).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from fantasy_core.db.connection import connect, transaction
from fantasy_core.db.repositories import (
    ChipBoardRepository,
    TransferStateRepository,
    UserRepository,
)
from fantasy_core.logging_config import get_logger
from fantasy_core.rules import effective_free_hit, effective_wildcard, sync_chip_cache
from fantasy_core.schemas.chips import ChipBoard
from fantasy_core.schemas.fpl_rules import MAX_BANKED_FREE_TRANSFERS
from fantasy_core.schemas.transfer_state import Limited, TransferState
from fantasy_core.season.manager import TransferManager

logger = get_logger(__name__)

UNLIMITED_AFTER_SAVE = "unlimited_after_save"
STALE_PENALTY = "stale_penalty"
CHIP_CACHE_DESYNC = "chip_cache_desync"
MULTIPLE_ACTIVE_CHIPS = "multiple_active_chips"
STALE_ACTIVE_CHIP = "stale_active_chip"


@dataclass
class Anomaly:
    user_id: str
    kind: str
    detail: str

    def to_dict(self) -> dict:
        return asdict(self)


def _check_user(
    user: dict,
    state: TransferState,
    board: ChipBoard,
    current_gameweek: int,
    is_closed,
) -> list[Anomaly]:
    user_id = user["user_id"]
    anchor = state.last_gameweek_processed
    found: list[Anomaly] = []

    if user["has_ever_saved_squad"] and state.is_unlimited:
        found.append(Anomaly(
            user_id, UNLIMITED_AFTER_SAVE,
            f"unlimited free transfers after saving a squad (first save GW{user['first_saved_gameweek']})",
        ))

    if state.points_deducted_this_week > 0 and is_closed(anchor):
        found.append(Anomaly(
            user_id, STALE_PENALTY,
            f"{state.points_deducted_this_week} point(s) still charged for closed GW{anchor}",
        ))

    wildcard = effective_wildcard(board, anchor)
    free_hit = effective_free_hit(board, anchor)
    if (state.wildcard_active_this_week, state.free_hit_active_this_week) != (wildcard, free_hit):
        found.append(Anomaly(
            user_id, CHIP_CACHE_DESYNC,
            f"cached wildcard={state.wildcard_active_this_week} free_hit={state.free_hit_active_this_week}, "
            f"board says wildcard={wildcard} free_hit={free_hit}",
        ))

    active = board.active_slots(anchor)
    if len(active) > 1:
        found.append(Anomaly(
            user_id, MULTIPLE_ACTIVE_CHIPS,
            f"{', '.join(s.value for s in active)} all active in GW{anchor}",
        ))

    for slot, usage in board.items():
        if usage.is_active and usage.pinned_gameweek < current_gameweek:
            found.append(Anomaly(
                user_id, STALE_ACTIVE_CHIP,
                f"{slot.value} pinned to GW{usage.pinned_gameweek} still active in GW{current_gameweek}",
            ))
    return found


def find_anomalies(manager: TransferManager) -> list[Anomaly]:
    """Scan every user without modifying anything."""
    open_gw = manager.clock.current_open_gameweek()
    anomalies: list[Anomaly] = []

    with connect(manager.db_path) as conn:
        users = UserRepository(conn)
        states = TransferStateRepository(conn)
        chips = ChipBoardRepository(conn)
        for user_id in users.list_user_ids():
            state = states.get(user_id)
            if state is None:
                continue
            board = chips.get(user_id) or ChipBoard()
            current = open_gw.gameweek if open_gw else state.last_gameweek_processed
            anomalies.extend(_check_user(
                users.get_user(user_id), state, board, current, manager.clock.is_closed,
            ))
        unlimited = states.count_unlimited()

    logger.info(
        "Audit found %d anomal%s (%d record(s) on unlimited transfers)",
        len(anomalies), "y" if len(anomalies) == 1 else "ies", unlimited,
    )
    return anomalies


def repair_all(manager: TransferManager) -> int:
    """Push every user with a stored record through the request pipeline.

    Returns the number of users processed.
    """
    with connect(manager.db_path) as conn:
        user_ids = [
            uid for uid in UserRepository(conn).list_user_ids()
            if TransferStateRepository(conn).get(uid) is not None
        ]
    for user_id in user_ids:
        manager.get_transfer_state(user_id)
    logger.info("Repaired %d transfer record(s)", len(user_ids))
    return len(user_ids)


def reset_all_transfer_states(manager: TransferManager, target_gameweek: int) -> int:
    """Bulk reset: every user gets a full bank anchored to *target_gameweek*.

    Chip boards are left untouched; the cached flags are re-derived from
    them.  Runs as one transaction.
    """
    with transaction(manager.db_path) as conn:
        states = TransferStateRepository(conn)
        chips = ChipBoardRepository(conn)
        user_ids = UserRepository(conn).list_user_ids()
        for user_id in user_ids:
            board = chips.get(user_id) or ChipBoard()
            state = TransferState(
                free_transfer_bank=Limited(count=MAX_BANKED_FREE_TRANSFERS),
                last_gameweek_processed=target_gameweek,
            )
            states.put(user_id, sync_chip_cache(state, board, target_gameweek))

    logger.warning("Reset transfer records of %d user(s) to GW%d", len(user_ids), target_gameweek)
    return len(user_ids)
