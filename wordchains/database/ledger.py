"""Daily assignment ledger on Redis.

Each date key maps to exactly one puzzle id. Rows are written with
``SET NX`` and never expire, so the first writer for a date wins and every
later writer reads the committed value back.
"""

import logging
from typing import Iterable, List, Optional

import redis

from ..models.puzzles import DailyAssignment
from .redis_store import RedisStore, StoreError

logger = logging.getLogger(__name__)

DAILY_KEY = "daily:{date_key}"


class DailyLedgerStore(RedisStore):
    """Insert-if-absent ledger of date -> puzzle id bindings."""

    def get_assignment(self, date_key: str) -> Optional[int]:
        """Return the puzzle id assigned to ``date_key``, or None."""
        try:
            value = self.redis_client.get(DAILY_KEY.format(date_key=date_key))
        except redis.RedisError as e:
            raise StoreError(f"Could not read assignment for {date_key}: {e}") from e
        return int(value) if value is not None else None

    def insert_if_absent(self, date_key: str, puzzle_id: int) -> int:
        """Bind ``puzzle_id`` to ``date_key`` unless a binding exists.

        Returns the id actually stored, which is another writer's choice when
        that writer got there first.
        """
        key = DAILY_KEY.format(date_key=date_key)
        try:
            created = self.redis_client.set(key, str(puzzle_id), nx=True)
            if created:
                return puzzle_id
            committed = self.redis_client.get(key)
        except redis.RedisError as e:
            raise StoreError(f"Could not write assignment for {date_key}: {e}") from e

        if committed is None:
            raise StoreError(f"Assignment for {date_key} was rejected but is not readable")
        return int(committed)

    def get_assignments(self, date_keys: Iterable[str]) -> List[DailyAssignment]:
        """Return the bindings that exist among ``date_keys``, in the given order.

        Raises StoreError when the window cannot be read, since an incomplete
        history would let a recent puzzle be assigned again.
        """
        date_keys = list(date_keys)
        if not date_keys:
            return []
        try:
            values = self.redis_client.mget([DAILY_KEY.format(date_key=key) for key in date_keys])
        except redis.RedisError as e:
            logger.error(f"Error reading {len(date_keys)} daily assignments: {e}")
            raise StoreError(f"Could not read {len(date_keys)} daily assignments: {e}") from e
        return [
            DailyAssignment(date_key=date_key, puzzle_id=int(value))
            for date_key, value in zip(date_keys, values)
            if value is not None
        ]
