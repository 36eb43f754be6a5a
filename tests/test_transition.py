"""Tests for gameweek rollover and stale-penalty reconciliation."""

from conftest import board_with
from fantasy_core.rules.reconcile import reconcile
from fantasy_core.rules.transition import advance, needs_transition
from fantasy_core.schemas.chips import ChipBoard
from fantasy_core.schemas.fpl_rules import ChipSlot
from fantasy_core.schemas.transfer_state import Limited, TransferState, Unlimited


def _state(bank=None, gw=3, paid=0, **flags):
    return TransferState(
        free_transfer_bank=bank or Limited(count=1),
        paid_transfers_this_week=paid,
        last_gameweek_processed=gw,
        **flags,
    )


# ---------------------------------------------------------------------------
# advance
# ---------------------------------------------------------------------------

class TestAdvance:
    def test_same_gameweek_is_noop(self):
        state, board = _state(paid=2), ChipBoard()
        assert advance(state, board, 3) == (state, board)

    def test_idempotent(self):
        once = advance(_state(Limited(count=0), paid=3), ChipBoard(), 4)
        twice = advance(*once, 4)
        assert once == twice

    def test_bank_accrues_one(self):
        for start in range(3):
            state, _ = advance(_state(Limited(count=start)), ChipBoard(), 4)
            assert state.free_transfer_bank == Limited(count=min(2, start + 1))

    def test_gap_of_several_gameweeks_accrues_once(self):
        state, _ = advance(_state(Limited(count=0), gw=3), ChipBoard(), 9)
        assert state.free_transfer_bank == Limited(count=1)
        assert state.last_gameweek_processed == 9

    def test_counters_reset(self):
        state, _ = advance(_state(Limited(count=0), paid=3), ChipBoard(), 4)
        assert state.paid_transfers_this_week == 0
        assert state.points_deducted_this_week == 0
        assert state.last_gameweek_processed == 4

    def test_unlimited_bank_untouched(self):
        state, _ = advance(_state(Unlimited(), gw=3), ChipBoard(), 4)
        assert state.is_unlimited
        assert state.last_gameweek_processed == 4

    def test_earlier_gameweek_is_ignored(self):
        state, board = _state(Limited(count=0), gw=6, paid=1), ChipBoard()
        assert advance(state, board, 5) == (state, board)

    def test_needs_transition(self):
        assert needs_transition(_state(gw=3), 4) is True
        assert needs_transition(_state(gw=3), 3) is False
        assert needs_transition(_state(gw=3), 2) is False


class TestAdvanceChips:
    def test_expires_chip_from_previous_gameweek(self):
        board = board_with(wildcard1=(3, True))
        state = _state(gw=3, wildcard_active_this_week=True)

        state, board = advance(state, board, 4)

        usage = board.get(ChipSlot.WILDCARD_1)
        assert usage.is_active is False
        assert usage.used is True
        assert usage.pinned_gameweek == 3
        assert state.wildcard_active_this_week is False

    def test_expires_every_slot(self):
        board = board_with(benchBoost=(3, True), tripleCaptain=(2, True))
        _, board = advance(_state(gw=3), board, 4)
        assert board.active_slots(4) == []
        assert not any(u.is_active for _, u in board.items())

    def test_chip_pinned_to_new_gameweek_survives(self):
        board = board_with(freeHit=(4, True))
        state, board = advance(_state(gw=3), board, 4)
        assert board.get(ChipSlot.FREE_HIT).is_active is True
        assert state.free_hit_active_this_week is True

    def test_used_never_reverts(self):
        board = board_with(wildcard2=(15, True), benchBoost=(10, False))
        _, board = advance(_state(gw=15), board, 16)
        assert board.get(ChipSlot.WILDCARD_2).used is True
        assert board.get(ChipSlot.BENCH_BOOST).used is True


# ---------------------------------------------------------------------------
# reconcile
# ---------------------------------------------------------------------------

class TestReconcile:
    def test_clears_penalty_of_closed_gameweek(self):
        state = reconcile(_state(gw=4, paid=2), 4, lambda gw: True)
        assert state.points_deducted_this_week == 0
        assert state.paid_transfers_this_week == 0
        assert state.last_gameweek_processed == 4

    def test_keeps_penalty_of_open_gameweek(self):
        state = _state(gw=4, paid=2)
        assert reconcile(state, 4, lambda gw: False) == state

    def test_asks_about_anchored_gameweek(self):
        asked = []
        reconcile(_state(gw=4, paid=1), 6, lambda gw: asked.append(gw) or False)
        assert asked == [4]

    def test_no_penalty_skips_clock(self):
        asked = []
        reconcile(_state(gw=4), 4, lambda gw: asked.append(gw) or True)
        assert asked == []

    def test_idempotent(self):
        once = reconcile(_state(gw=4, paid=3), 4, lambda gw: True)
        assert reconcile(once, 4, lambda gw: True) == once

    def test_repairs_chip_cache_from_board(self):
        state = _state(gw=5, wildcard_active_this_week=True)
        state = reconcile(state, 5, lambda gw: False, ChipBoard())
        assert state.wildcard_active_this_week is False

        state = reconcile(state, 5, lambda gw: False, board_with(freeHit=(5, True)))
        assert state.free_hit_active_this_week is True
