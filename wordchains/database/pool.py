"""Puzzle pool persistence on Redis."""

import logging
from datetime import datetime, timezone
from typing import List, Optional

import redis
from pydantic import ValidationError as PydanticValidationError

from ..config import settings
from ..models.puzzles import PuzzleCandidate, PuzzlePoolEntry
from .redis_store import RedisStore, StoreError

logger = logging.getLogger(__name__)

PUZZLE_KEY = "puzzle:{puzzle_id}"
INDEX_KEY = "puzzles:index"
NEXT_ID_KEY = "puzzles:next_id"


class PuzzlePoolStore(RedisStore):
    """Stores pool rows as JSON documents indexed by a sorted set of ids."""

    def add_puzzle(self, candidate: PuzzleCandidate, status: Optional[str] = None,
                   created_at: Optional[datetime] = None) -> PuzzlePoolEntry:
        """Persist an accepted candidate as a new pool row."""
        try:
            puzzle_id = int(self.redis_client.incr(NEXT_ID_KEY))
        except redis.RedisError as e:
            raise StoreError(f"Could not allocate puzzle id: {e}") from e

        entry = PuzzlePoolEntry(
            id=puzzle_id,
            difficulty=candidate.difficulty,
            chain=candidate.chain,
            dummy=candidate.dummy,
            links=candidate.links,
            created_at=created_at or datetime.now(timezone.utc),
            status=status or settings.approve_status,
        )

        if not self.set_json(PUZZLE_KEY.format(puzzle_id=puzzle_id), entry.model_dump(mode="json")):
            raise StoreError(f"Could not store puzzle {puzzle_id}")
        try:
            self.redis_client.zadd(INDEX_KEY, {str(puzzle_id): puzzle_id})
        except redis.RedisError as e:
            raise StoreError(f"Could not index puzzle {puzzle_id}: {e}") from e

        logger.info(f"Stored puzzle {puzzle_id} ({entry.difficulty}, status={entry.status})")
        return entry

    def get_puzzle(self, puzzle_id: int) -> Optional[PuzzlePoolEntry]:
        """Fetch one pool row by id."""
        data = self.get_json(PUZZLE_KEY.format(puzzle_id=puzzle_id))
        if data is None:
            return None
        return self._to_entry(data)

    def list_puzzles(self) -> List[PuzzlePoolEntry]:
        """All pool rows ordered by id ascending, regardless of status."""
        try:
            ids = self.redis_client.zrange(INDEX_KEY, 0, -1)
        except redis.RedisError as e:
            logger.error(f"Error reading puzzle index: {e}")
            raise StoreError(f"Could not read puzzle index: {e}") from e

        keys = [PUZZLE_KEY.format(puzzle_id=int(puzzle_id)) for puzzle_id in ids]
        entries = []
        for data in self.get_many_json(keys, strict=True):
            if data is None:
                continue
            entry = self._to_entry(data)
            if entry is not None:
                entries.append(entry)
        return sorted(entries, key=lambda entry: entry.id)

    def list_approved_puzzles(self) -> List[PuzzlePoolEntry]:
        """Servable pool rows ordered by id ascending."""
        return [entry for entry in self.list_puzzles() if entry.status == settings.approve_status]

    def _to_entry(self, data) -> Optional[PuzzlePoolEntry]:
        try:
            if "chain" in data:
                return PuzzlePoolEntry(**data)
            return PuzzlePoolEntry.from_row(data)
        except (PydanticValidationError, KeyError, ValueError) as e:
            logger.warning(f"Skipping malformed pool row {data.get('id')}: {e}")
            return None
