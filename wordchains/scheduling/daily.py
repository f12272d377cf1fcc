"""Daily puzzle assignment.

A date moves from unassigned to assigned exactly once. Selection is a pure
function of the date, the pool and the recent history; the ledger's
insert-if-absent write decides the winner when several requests race on the
first visit of the day.
"""

import logging
from typing import List, Optional, Tuple

from ..config import settings
from ..models.puzzles import AssignmentResult, PuzzleMode, PuzzlePoolEntry, PuzzleView
from ..models.validation import BannedSet
from ..rules.normalize import normalize_word, normalized_links
from .dates import day_index, day_number_from_key, parse_date_key
from .recency import RecencyTracker

logger = logging.getLogger(__name__)

SIMILARITY_GUARD_FALLBACK = "similarity_guard_fallback"


def rotate(pool: List[PuzzlePoolEntry], start: int) -> List[PuzzlePoolEntry]:
    """Pool order starting at ``pool[start % len(pool)]`` and wrapping around."""
    if not pool:
        return []
    start %= len(pool)
    return pool[start:] + pool[:start]


def conflicts_with(entry: PuzzlePoolEntry, banned: BannedSet) -> bool:
    """True when the entry shares a link or an endpoint with ``banned``."""
    if any(link in banned.links for link in normalized_links(entry.links)):
        return True
    return any(normalize_word(word) in banned.endpoints for word in entry.endpoints)


def select_daily(pool: List[PuzzlePoolEntry], index: int, banned: BannedSet) -> Tuple[PuzzlePoolEntry, bool]:
    """Pick the first rotated entry that passes the similarity guard.

    Returns ``(entry, used_fallback)``. When nothing passes, the first rotated
    entry is used anyway so that a date is never left without a puzzle.
    """
    ordered = rotate(pool, index)
    if not ordered:
        raise ValueError("Cannot select from an empty pool")

    for candidate in ordered:
        if not conflicts_with(candidate, banned):
            return candidate, False
    return ordered[0], True


class DailyScheduler:
    """Binds one pool entry to each calendar date."""

    def __init__(self, pool_store, ledger, tracker: Optional[RecencyTracker] = None,
                 window_days: Optional[int] = None, launch_date_key: Optional[str] = None):
        """Initialize the scheduler with its pool and ledger collaborators."""
        self.pool_store = pool_store
        self.ledger = ledger
        self.tracker = tracker or RecencyTracker(ledger=ledger)
        self.window_days = settings.daily_window_days if window_days is None else window_days
        self.launch_date_key = launch_date_key if launch_date_key is not None else settings.launch_date_key

    def assign(self, date_key: str, pool: Optional[List[PuzzlePoolEntry]] = None) -> Optional[AssignmentResult]:
        """Return the puzzle bound to ``date_key``, creating the binding if needed.

        The key is normalised to ``YYYY-MM-DD`` before any ledger access. Returns
        None when there is nothing to assign (empty pool).
        """
        date_key = parse_date_key(date_key).isoformat()
        index = day_index(date_key)

        existing = self.ledger.get_assignment(date_key)
        if existing is not None:
            return AssignmentResult(date_key=date_key, puzzle_id=existing)

        if pool is None:
            pool = self.pool_store.list_approved_puzzles()
        if not pool:
            logger.warning(f"No puzzles available to assign for {date_key}")
            return None

        banned = self.tracker.from_daily_history(date_key, pool, self.window_days)
        selected, used_fallback = select_daily(pool, index, banned)
        if used_fallback:
            logger.warning(
                f"Every puzzle conflicts with the last {self.window_days} days; "
                f"falling back to puzzle {selected.id} for {date_key}"
            )

        committed = self.ledger.insert_if_absent(date_key, selected.id)
        if committed is None:
            committed = self.ledger.get_assignment(date_key)

        if committed != selected.id:
            logger.info(
                f"Assignment for {date_key} already committed as puzzle {committed}; "
                f"discarding local choice {selected.id}"
            )
            return AssignmentResult(date_key=date_key, puzzle_id=committed)

        logger.info(f"Assigned puzzle {selected.id} to {date_key}")
        return AssignmentResult(
            date_key=date_key,
            puzzle_id=selected.id,
            used_fallback=used_fallback,
            created=True,
        )

    def day_number(self, date_key: str) -> Optional[int]:
        return day_number_from_key(date_key, self.launch_date_key)

    def daily_puzzle(self, date_key: str) -> Optional[PuzzleView]:
        """The daily puzzle for ``date_key`` ready for presentation, or None."""
        date_key = parse_date_key(date_key).isoformat()
        pool = self.pool_store.list_approved_puzzles()
        result = self.assign(date_key, pool)
        if result is None:
            return None

        entry = next((item for item in pool if item.id == result.puzzle_id), None)
        if entry is None:
            entry = self.pool_store.get_puzzle(result.puzzle_id)
        if entry is None:
            logger.error(f"Puzzle {result.puzzle_id} assigned to {date_key} is missing from the pool")
            return None

        return PuzzleView.from_entry(
            entry,
            mode=PuzzleMode.DAILY,
            puzzle_number=self.day_number(date_key),
            warning=SIMILARITY_GUARD_FALLBACK if result.used_fallback else None,
        )

    def archive_puzzle(self, puzzle_id: int) -> Optional[PuzzleView]:
        """A past puzzle by id, numbered by its id."""
        entry = self.pool_store.get_puzzle(puzzle_id)
        if entry is None:
            return None
        return PuzzleView.from_entry(entry, mode=PuzzleMode.ARCHIVE)
