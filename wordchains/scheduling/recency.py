"""Anti-repetition tracking over recent puzzles.

Links and endpoints feed hard constraints and are always returned in full.
Words only feed a soft "try to avoid" list, so they are capped at a sorted
sample to keep prompts small.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from ..config import settings
from ..models.puzzles import PuzzlePoolEntry
from ..models.validation import BannedSet
from ..rules.normalize import normalize_word, normalized_links
from .dates import recent_date_keys

logger = logging.getLogger(__name__)


def collect_banned(entries: Iterable[PuzzlePoolEntry], avoid_word_limit: Optional[int] = None) -> BannedSet:
    """Union of normalised links, endpoints and chain words of ``entries``."""
    limit = settings.avoid_word_limit if avoid_word_limit is None else avoid_word_limit
    links, endpoints, words = set(), set(), set()

    for entry in entries:
        links.update(normalized_links(entry.links))
        for endpoint in entry.endpoints:
            normalized = normalize_word(endpoint)
            if normalized:
                endpoints.add(normalized)
        words.update(word for word in (normalize_word(w) for w in entry.chain) if word)

    return BannedSet(links=links, endpoints=endpoints, words=set(sorted(words)[:limit]))


class RecencyTracker:
    """Derives banned sets from pool creation history or the daily ledger."""

    def __init__(self, ledger=None, avoid_word_limit: Optional[int] = None):
        """Initialize the tracker; ``ledger`` is only needed for daily history."""
        self.ledger = ledger
        self.avoid_word_limit = settings.avoid_word_limit if avoid_word_limit is None else avoid_word_limit

    def from_pool_history(
        self,
        pool: Iterable[PuzzlePoolEntry],
        window_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> BannedSet:
        """Banned set from rows created in ``[now - window_days, now)``."""
        window_days = settings.variety_days if window_days is None else window_days
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        cutoff = now - timedelta(days=window_days)

        recent = [
            entry for entry in pool
            if entry.created_at is not None and cutoff <= entry.created_at < now
        ]
        logger.info(f"{len(recent)} puzzles created in the last {window_days} days")
        return collect_banned(recent, self.avoid_word_limit)

    def from_daily_history(
        self,
        date_key: str,
        pool: List[PuzzlePoolEntry],
        window_days: Optional[int] = None,
    ) -> BannedSet:
        """Banned set from puzzles assigned to the ``window_days`` dates before ``date_key``."""
        if self.ledger is None:
            raise ValueError("Daily history requires a ledger store")

        window_days = settings.daily_window_days if window_days is None else window_days
        assignments = self.ledger.get_assignments(recent_date_keys(date_key, window_days))
        recent_ids = {assignment.puzzle_id for assignment in assignments}

        recent = [entry for entry in pool if entry.id in recent_ids]
        if len(recent) < len(recent_ids):
            logger.warning(
                f"{len(recent_ids) - len(recent)} recently assigned puzzles are no longer in the pool"
            )
        return collect_banned(recent, self.avoid_word_limit)
