"""Tests for the SQLite layer: migrations, repositories, transactions."""

import sqlite3

import pytest

from fantasy_core.db import (
    ChipBoardRepository,
    GameweekRepository,
    StoreError,
    TransferLogRepository,
    TransferStateRepository,
    UserRepository,
    connect,
    get_schema_version,
    transaction,
)
from fantasy_core.db.migrations import LATEST_VERSION
from fantasy_core.schemas.chips import ChipBoard, ChipUsage
from fantasy_core.schemas.fpl_rules import ChipSlot
from fantasy_core.schemas.transfer_state import Limited, TransferState, Unlimited


@pytest.fixture
def conn(tmp_db):
    with connect(tmp_db) as c:
        UserRepository(c).create_user("u1")
        c.commit()
        yield c


class TestSchema:
    def test_tables_created(self, tmp_db):
        with connect(tmp_db) as c:
            tables = {
                r[0] for r in c.execute("SELECT name FROM sqlite_master WHERE type='table'")
            }
        assert {"users", "gameweek", "transfer_state", "chip_usage", "transfer_log"} <= tables

    def test_schema_at_latest_version(self, tmp_db):
        with connect(tmp_db) as c:
            assert get_schema_version(c) == LATEST_VERSION


class TestUserRepository:
    def test_create_is_idempotent(self, conn):
        users = UserRepository(conn)
        assert users.create_user("u2") is True
        assert users.create_user("u2") is False
        assert users.list_user_ids() == ["u1", "u2"]

    def test_mark_squad_saved_keeps_first_gameweek(self, conn):
        users = UserRepository(conn)
        users.mark_squad_saved("u1", 3)
        users.mark_squad_saved("u1", 7)
        user = users.get_user("u1")
        assert user["has_ever_saved_squad"] == 1
        assert user["first_saved_gameweek"] == 3

    def test_unknown_user(self, conn):
        assert UserRepository(conn).get_user("nobody") is None


class TestGameweekRepository:
    def test_opening_one_closes_the_rest(self, conn):
        gws = GameweekRepository(conn)
        gws.save_gameweek(3, "2025-08-30T10:00:00+00:00", True)
        gws.save_gameweek(4, "2025-09-06T10:00:00+00:00", True)
        assert gws.get_open_gameweek()["gameweek"] == 4
        assert gws.get_gameweek(3)["is_open"] == 0

    def test_any_open_in_range(self, conn):
        gws = GameweekRepository(conn)
        gws.save_gameweek(15, "2025-12-06T10:00:00+00:00", True)
        assert gws.any_open_in_range(14, 27) is True
        assert gws.any_open_in_range(2, 13) is False


class TestTransferStateRepository:
    def test_missing_record(self, conn):
        assert TransferStateRepository(conn).get("u1") is None

    def test_unlimited_stored_without_sentinel(self, conn):
        repo = TransferStateRepository(conn)
        repo.put("u1", TransferState(free_transfer_bank=Unlimited(), last_gameweek_processed=2))
        row = conn.execute("SELECT bank_kind, bank_count FROM transfer_state").fetchone()
        assert (row["bank_kind"], row["bank_count"]) == ("unlimited", None)
        assert repo.get("u1").is_unlimited

    def test_limited_record(self, conn):
        repo = TransferStateRepository(conn)
        state = TransferState(
            free_transfer_bank=Limited(count=0),
            paid_transfers_this_week=2,
            last_gameweek_processed=6,
            free_hit_active_this_week=True,
        )
        repo.put("u1", state)
        assert repo.get("u1") == state

    def test_legacy_sentinel_row_healed(self, conn):
        conn.execute(
            """INSERT INTO transfer_state
               (user_id, bank_kind, bank_count, paid_transfers, points_deducted,
                last_gameweek_processed, wildcard_active, free_hit_active)
               VALUES ('u1', NULL, 9999, NULL, 8, 4, NULL, NULL)"""
        )
        state = TransferStateRepository(conn).get("u1")
        assert state.is_unlimited
        assert state.paid_transfers_this_week == 2
        assert state.points_deducted_this_week == 8
        assert state.wildcard_active_this_week is False

    def test_count_unlimited_includes_legacy_rows(self, conn):
        UserRepository(conn).create_user("u2")
        conn.execute(
            "INSERT INTO transfer_state (user_id, bank_count) VALUES ('u1', 999)"
        )
        TransferStateRepository(conn).put("u2", TransferState(free_transfer_bank=Unlimited()))
        assert TransferStateRepository(conn).count_unlimited() == 2


class TestChipBoardRepository:
    def test_missing_board(self, conn):
        assert ChipBoardRepository(conn).get("u1") is None

    def test_one_row_per_slot(self, conn):
        repo = ChipBoardRepository(conn)
        board = ChipBoard().with_slot(
            ChipSlot.FREE_HIT, ChipUsage(used=True, pinned_gameweek=9, is_active=True),
        )
        repo.put("u1", board)
        count = conn.execute("SELECT COUNT(*) FROM chip_usage WHERE user_id='u1'").fetchone()[0]
        assert count == len(ChipSlot)
        assert repo.get("u1") == board

    def test_partial_and_unknown_rows(self, conn):
        conn.execute(
            "INSERT INTO chip_usage (user_id, slot, used) VALUES ('u1', 'benchBoost', 1)"
        )
        conn.execute(
            "INSERT INTO chip_usage (user_id, slot, used) VALUES ('u1', 'wildcard', 1)"
        )
        board = ChipBoardRepository(conn).get("u1")
        assert board.get(ChipSlot.BENCH_BOOST).used is True
        assert board.get(ChipSlot.WILDCARD_1).used is False


class TestTransferLogRepository:
    def test_history_newest_first(self, conn):
        log = TransferLogRepository(conn)
        log.add_transfer("u1", 3, "p1", "p2", 0)
        log.add_transfer("u1", 3, "p3", "p4", 4)
        history = log.get_history("u1")
        assert [h["player_in_id"] for h in history] == ["p4", "p2"]
        assert history[0]["transfer_cost"] == 4

    def test_history_limit(self, conn):
        log = TransferLogRepository(conn)
        for i in range(5):
            log.add_transfer("u1", 2, f"out{i}", f"in{i}", 0)
        assert len(log.get_history("u1", limit=2)) == 2


class TestTransaction:
    def test_commits_on_success(self, tmp_db):
        with transaction(tmp_db) as c:
            UserRepository(c).create_user("u9")
        with connect(tmp_db) as c:
            assert UserRepository(c).get_user("u9") is not None

    def test_rolls_back_on_exception(self, tmp_db):
        with pytest.raises(ValueError):
            with transaction(tmp_db) as c:
                UserRepository(c).create_user("u9")
                raise ValueError("boom")
        with connect(tmp_db) as c:
            assert UserRepository(c).get_user("u9") is None

    def test_sqlite_error_becomes_store_error(self, tmp_db):
        with pytest.raises(StoreError):
            with transaction(tmp_db) as c:
                UserRepository(c).create_user("u9")
                c.execute("INSERT INTO no_such_table VALUES (1)")
        with connect(tmp_db) as c:
            assert UserRepository(c).get_user("u9") is None

    def test_store_error_chains_sqlite_error(self, tmp_db):
        with pytest.raises(StoreError) as info:
            with transaction(tmp_db) as c:
                c.execute("SELECT * FROM no_such_table")
        assert isinstance(info.value.__cause__, sqlite3.Error)
