"""Tests for recency tracking, daily assignment and endless mode."""

import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from wordchains.database import DailyLedgerStore, PuzzlePoolStore, StoreError
from wordchains.models.puzzles import PuzzleMode
from wordchains.models.validation import BannedSet
from wordchains.scheduling import (
    DailyScheduler,
    RecencyTracker,
    SIMILARITY_GUARD_FALLBACK,
    collect_banned,
    day_index,
    day_number_from_key,
    next_endless_puzzle,
    recent_date_keys,
    rotate,
    select_daily,
)

from conftest import FakeLedger, make_entry


# 2024-03-01 is day 19783 since the epoch, so a ten-entry pool starts at index 3.
TARGET_DATE = "2024-03-01"


@pytest.fixture
def pool():
    return [make_entry(puzzle_id) for puzzle_id in range(1, 11)]


def scheduler_for(pool, ledger, launch_date_key=""):
    pool_store = Mock(spec=PuzzlePoolStore)
    pool_store.list_approved_puzzles.return_value = pool
    pool_store.get_puzzle.side_effect = lambda puzzle_id: next((e for e in pool if e.id == puzzle_id), None)
    return DailyScheduler(pool_store=pool_store, ledger=ledger, window_days=30, launch_date_key=launch_date_key)


class TestDates:
    """Tests for date-key helpers."""

    def test_day_index(self):
        """Test day numbering from the epoch."""
        assert day_index("1970-01-01") == 0
        assert day_index("1970-01-02") == 1
        assert day_index(TARGET_DATE) == 19783
        assert day_index(TARGET_DATE) % 10 == 3

    @pytest.mark.parametrize("bad_key", ["2024-02-30", "not-a-date", "2024/03/01", "", "20240301"])
    def test_invalid_date_keys(self, bad_key):
        """Test that malformed keys raise ValueError."""
        with pytest.raises(ValueError):
            day_index(bad_key)

    def test_recent_date_keys(self):
        """Test the window of dates before a target."""
        assert recent_date_keys(TARGET_DATE, 2) == ["2024-02-29", "2024-02-28"]
        assert len(recent_date_keys(TARGET_DATE, 30)) == 30
        assert TARGET_DATE not in recent_date_keys(TARGET_DATE, 30)

    def test_day_number(self):
        """Test the player-facing day number."""
        assert day_number_from_key("2024-03-01", "2024-03-01") == 1
        assert day_number_from_key("2024-03-10", "2024-03-01") == 10
        assert day_number_from_key("2024-02-01", "2024-03-01") == 1
        assert day_number_from_key("2024-03-10", None) is None
        assert day_number_from_key("2024-03-10", "  ") is None

    def test_day_number_is_monotonic(self):
        """Test that day numbers never decrease and stay >= 1."""
        start = datetime(2023, 12, 1)
        keys = [(start + timedelta(days=offset)).date().isoformat() for offset in range(120)]
        numbers = [day_number_from_key(key, "2024-01-15") for key in keys]

        assert all(number >= 1 for number in numbers)
        assert numbers == sorted(numbers)


class TestRecencyTracker:
    """Tests for banned-set derivation."""

    def test_pool_history_window(self, fixed_now):
        """Test that only rows in [now - window, now) count."""
        inside = make_entry(1, created_at=fixed_now - timedelta(days=5))
        too_old = make_entry(2, created_at=fixed_now - timedelta(days=20))
        at_now = make_entry(3, created_at=fixed_now)
        undated = make_entry(4)

        banned = RecencyTracker().from_pool_history([inside, too_old, at_now, undated], window_days=14, now=fixed_now)

        assert banned.links == {f"link 1 {idx}" for idx in range(7)}
        assert banned.endpoints == {"word1x0", "word1x7"}
        assert "word1x3" in banned.words
        assert not any(word.startswith("word2") for word in banned.words)

    def test_naive_now_is_treated_as_utc(self, fixed_now):
        """Test that a naive timestamp does not break the comparison."""
        entry = make_entry(1, created_at=fixed_now - timedelta(hours=1))
        banned = RecencyTracker().from_pool_history([entry], window_days=1, now=fixed_now.replace(tzinfo=None))
        assert banned.links

    def test_words_truncated_but_links_kept(self):
        """Test the soft-avoid sample cap."""
        entries = [make_entry(puzzle_id) for puzzle_id in range(1, 4)]
        banned = collect_banned(entries, avoid_word_limit=5)

        all_words = sorted(word.lower() for entry in entries for word in entry.chain)
        assert sorted(banned.words) == all_words[:5]
        assert len(banned.links) == 21
        assert len(banned.endpoints) == 6

    def test_legacy_rows_without_links(self):
        """Test that rows without links still contribute endpoints."""
        entry = make_entry(1, links=[])
        banned = collect_banned([entry])

        assert banned.links == set()
        assert banned.endpoints == {"word1x0", "word1x7"}

    def test_daily_history(self, pool):
        """Test that the ledger window resolves to pool entries."""
        ledger = FakeLedger({"2024-02-29": 5, "2024-01-30": 6, TARGET_DATE: 7})
        banned = RecencyTracker(ledger=ledger).from_daily_history(TARGET_DATE, pool, window_days=30)

        assert banned.endpoints == {"word5x0", "word5x7"}

    def test_daily_history_requires_ledger(self, pool):
        """Test the missing-ledger guard."""
        with pytest.raises(ValueError):
            RecencyTracker().from_daily_history(TARGET_DATE, pool)


class TestSelection:
    """Tests for rotation and the similarity guard."""

    def test_rotate(self, pool):
        """Test wrap-around rotation."""
        ordered = rotate(pool, 13)
        assert [entry.id for entry in ordered] == [4, 5, 6, 7, 8, 9, 10, 1, 2, 3]
        assert rotate([], 5) == []

    def test_select_first_clean_entry(self, pool):
        """Test that the rotated head wins when it has no conflict."""
        selected, used_fallback = select_daily(pool, 3, BannedSet())
        assert selected.id == 4
        assert used_fallback is False

    def test_select_skips_endpoint_conflict(self, pool):
        """Test that an endpoint collision skips an entry."""
        selected, used_fallback = select_daily(pool, 3, BannedSet(endpoints={"word4x7"}))
        assert selected.id == 5
        assert used_fallback is False

    def test_select_falls_back(self, pool):
        """Test fallback when every entry conflicts."""
        banned = BannedSet(links={f"link {puzzle_id} 0" for puzzle_id in range(1, 11)})
        selected, used_fallback = select_daily(pool, 3, banned)
        assert selected.id == 4
        assert used_fallback is True

    def test_select_empty_pool(self):
        """Test that selection refuses an empty pool."""
        with pytest.raises(ValueError):
            select_daily([], 0, BannedSet())


class TestDailyScheduler:
    """Tests for the daily assignment state machine."""

    def test_rotation_skips_recent_conflict(self, pool):
        """Test pool[3] conflicting with yesterday's puzzle yields pool[4]."""
        pool[3] = make_entry(4, links=["link 10 2"] + [f"link 4 {idx}" for idx in range(1, 7)])
        ledger = FakeLedger({"2024-02-29": 10})

        result = scheduler_for(pool, ledger).assign(TARGET_DATE, pool)

        assert result.puzzle_id == pool[4].id
        assert result.used_fallback is False
        assert result.created is True
        assert ledger.rows[TARGET_DATE] == pool[4].id

    def test_conflict_outside_window_is_ignored(self, pool):
        """Test that assignments older than the window do not ban anything."""
        pool[3] = make_entry(4, links=["link 10 2"] + [f"link 4 {idx}" for idx in range(1, 7)])
        ledger = FakeLedger({"2024-01-30": 10})

        result = scheduler_for(pool, ledger).assign(TARGET_DATE, pool)

        assert result.puzzle_id == pool[3].id

    def test_fallback_when_pool_too_small(self):
        """Test liveness when every entry was used recently."""
        pool = [make_entry(1), make_entry(2)]
        ledger = FakeLedger({"2024-02-29": 1, "2024-02-28": 2})

        result = scheduler_for(pool, ledger).assign(TARGET_DATE, pool)

        # 19783 % 2 == 1, so the rotated order starts at puzzle 2
        assert result.puzzle_id == 2
        assert result.used_fallback is True
        assert ledger.rows[TARGET_DATE] == 2

    def test_existing_assignment_fast_path(self, pool):
        """Test that an assigned date is returned without recomputation."""
        ledger = FakeLedger({TARGET_DATE: 8})
        tracker = Mock(spec=RecencyTracker)
        scheduler = scheduler_for(pool, ledger)
        scheduler.tracker = tracker

        result = scheduler.assign(TARGET_DATE)

        assert result.puzzle_id == 8
        assert result.created is False
        tracker.from_daily_history.assert_not_called()
        scheduler.pool_store.list_approved_puzzles.assert_not_called()
        assert ledger.insert_calls == 0

    def test_lost_race_returns_committed_value(self, pool):
        """Test that a concurrent writer's committed row wins."""
        ledger = Mock(spec=DailyLedgerStore)
        ledger.get_assignment.return_value = None
        ledger.get_assignments.return_value = []
        ledger.insert_if_absent.return_value = 9

        result = scheduler_for(pool, ledger).assign(TARGET_DATE, pool)

        ledger.insert_if_absent.assert_called_once_with(TARGET_DATE, 4)
        assert result.puzzle_id == 9
        assert result.created is False
        assert result.used_fallback is False

    def test_store_without_committed_value_is_reread(self, pool):
        """Test the read-after-conflict path."""
        ledger = Mock(spec=DailyLedgerStore)
        ledger.get_assignment.side_effect = [None, 6]
        ledger.get_assignments.return_value = []
        ledger.insert_if_absent.return_value = None

        result = scheduler_for(pool, ledger).assign(TARGET_DATE, pool)

        assert result.puzzle_id == 6
        assert ledger.get_assignment.call_count == 2

    def test_concurrent_first_requests_agree(self, pool):
        """Test that racing callers all observe one puzzle and one row."""
        ledger = FakeLedger()
        scheduler = scheduler_for(pool, ledger)
        barrier = threading.Barrier(8)
        results = []

        def worker():
            barrier.wait()
            results.append(scheduler.assign(TARGET_DATE, pool).puzzle_id)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert len(set(results)) == 1
        assert list(ledger.rows) == [TARGET_DATE]
        assert ledger.rows[TARGET_DATE] == results[0]

    def test_empty_pool_returns_none(self):
        """Test that an empty pool is an explicit empty result."""
        ledger = FakeLedger()
        assert scheduler_for([], ledger).assign(TARGET_DATE) is None
        assert ledger.rows == {}

    def test_invalid_date_raises(self, pool):
        """Test that a malformed date key is rejected before any I/O."""
        ledger = Mock(spec=DailyLedgerStore)
        with pytest.raises(ValueError):
            scheduler_for(pool, ledger).assign("2024-13-01", pool)
        ledger.get_assignment.assert_not_called()

    def test_padded_date_key_shares_one_row(self, pool):
        """Test that surrounding whitespace does not create a second binding."""
        ledger = FakeLedger()
        scheduler = scheduler_for(pool, ledger)

        first = scheduler.assign("2024-03-05", pool)
        second = scheduler.assign(" 2024-03-05 ", pool)

        assert list(ledger.rows) == ["2024-03-05"]
        assert second.puzzle_id == first.puzzle_id
        assert second.date_key == "2024-03-05"
        assert second.created is False

    def test_padded_date_key_on_daily_puzzle(self, pool):
        """Test that the view path uses the normalised key too."""
        ledger = FakeLedger()
        scheduler = scheduler_for(pool, ledger)

        scheduler.daily_puzzle("\t2024-03-05")

        assert list(ledger.rows) == ["2024-03-05"]

    def test_history_read_failure_blocks_assignment(self, pool):
        """Test that an unreadable history window never commits a row."""
        pool[3] = make_entry(4, links=["link 10 2"] + [f"link 4 {idx}" for idx in range(1, 7)])
        ledger = Mock(spec=DailyLedgerStore)
        ledger.get_assignment.return_value = None
        ledger.get_assignments.side_effect = StoreError("connection refused")

        with pytest.raises(StoreError):
            scheduler_for(pool, ledger).assign(TARGET_DATE, pool)
        ledger.insert_if_absent.assert_not_called()

    def test_pool_read_failure_is_not_an_empty_pool(self, pool):
        """Test that a store outage surfaces instead of returning None."""
        ledger = FakeLedger()
        scheduler = scheduler_for(pool, ledger)
        scheduler.pool_store.list_approved_puzzles.side_effect = StoreError("connection refused")

        with pytest.raises(StoreError):
            scheduler.assign(TARGET_DATE)
        assert ledger.rows == {}

    def test_daily_puzzle_view(self, pool):
        """Test the presentation record for a daily puzzle."""
        ledger = FakeLedger()
        view = scheduler_for(pool, ledger, launch_date_key="2024-02-01").daily_puzzle(TARGET_DATE)

        assert view.id == "4"
        assert view.mode == PuzzleMode.DAILY.value
        assert view.puzzle_number == 30
        assert view.warning is None
        assert sorted(view.word_bank) == sorted(view.words_1_to_8 + view.dummy_words)

    def test_daily_puzzle_without_launch_date_uses_id(self, pool):
        """Test the puzzle number fallback."""
        view = scheduler_for(pool, FakeLedger()).daily_puzzle(TARGET_DATE)
        assert view.puzzle_number == 4

    def test_daily_puzzle_fallback_warning(self):
        """Test that the fallback is surfaced on the view."""
        pool = [make_entry(1), make_entry(2)]
        ledger = FakeLedger({"2024-02-29": 1, "2024-02-28": 2})

        view = scheduler_for(pool, ledger).daily_puzzle(TARGET_DATE)

        assert view.warning == SIMILARITY_GUARD_FALLBACK

    def test_daily_puzzle_empty_pool(self):
        """Test that no view is produced for an empty pool."""
        assert scheduler_for([], FakeLedger()).daily_puzzle(TARGET_DATE) is None

    def test_archive_puzzle(self, pool):
        """Test archive lookup by id."""
        scheduler = scheduler_for(pool, FakeLedger())

        view = scheduler.archive_puzzle(7)
        assert view.mode == PuzzleMode.ARCHIVE.value
        assert view.puzzle_number == 7
        assert scheduler.archive_puzzle(99) is None


class TestEndlessMode:
    """Tests for per-player ordering."""

    def test_same_user_same_order(self, pool):
        """Test that a user gets a stable next puzzle."""
        first = next_endless_puzzle("user-1", pool, [])
        second = next_endless_puzzle("user-1", pool, [])

        assert first.has_next is True
        assert first.puzzle.id == second.puzzle.id
        assert first.puzzle.mode == PuzzleMode.ENDLESS.value

    def test_played_puzzles_are_skipped(self, pool):
        """Test that played ids are never offered again."""
        played = []
        for _ in range(len(pool)):
            pick = next_endless_puzzle("user-1", pool, played)
            assert int(pick.puzzle.id) not in played
            played.append(int(pick.puzzle.id))

        assert sorted(played) == [entry.id for entry in pool]

    def test_exhausted_pool(self, pool):
        """Test the explicit empty result."""
        pick = next_endless_puzzle("user-1", pool, [entry.id for entry in pool])

        assert pick.puzzle is None
        assert pick.has_next is False

    def test_user_id_required(self, pool):
        """Test the missing-user guard."""
        with pytest.raises(ValueError):
            next_endless_puzzle("", pool, [])
