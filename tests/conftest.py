"""Shared fixtures for the Word Chains test suite."""

import threading
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

import pytest

from wordchains.models.puzzles import DailyAssignment, PuzzleCandidate, PuzzlePoolEntry


CHAIN = ["Key", "Chain", "Reaction", "Time", "Zone", "Defense", "Mechanism", "Failure"]
LINKS = [
    "keychain",
    "chain reaction",
    "reaction time",
    "time zone",
    "zone defense",
    "defense mechanism",
    "mechanism failure",
]
DUMMY = ["Lock", "Door", "Clock", "Watch", "Shield", "Armor", "Engine", "Gear", "Spark", "Bolt"]


class FakeLedger:
    """In-memory ledger honouring insert-if-absent under concurrent writers."""

    def __init__(self, rows: Optional[Dict[str, int]] = None):
        self.rows: Dict[str, int] = dict(rows or {})
        self.insert_calls = 0
        self._lock = threading.Lock()

    def get_assignment(self, date_key: str) -> Optional[int]:
        return self.rows.get(date_key)

    def insert_if_absent(self, date_key: str, puzzle_id: int) -> int:
        with self._lock:
            self.insert_calls += 1
            return self.rows.setdefault(date_key, puzzle_id)

    def get_assignments(self, date_keys: Iterable[str]) -> List[DailyAssignment]:
        return [DailyAssignment(date_key=key, puzzle_id=self.rows[key]) for key in date_keys if key in self.rows]


def make_entry(puzzle_id: int, links: Optional[List[str]] = None, created_at: Optional[datetime] = None,
               status: str = "approved", difficulty: str = "EASY") -> PuzzlePoolEntry:
    """Pool entry with words unique to ``puzzle_id``."""
    chain = [f"Word{puzzle_id}x{idx}" for idx in range(8)]
    return PuzzlePoolEntry(
        id=puzzle_id,
        difficulty=difficulty,
        chain=chain,
        dummy=[f"Dummy{puzzle_id}x{idx}" for idx in range(10)],
        links=links if links is not None else [f"link {puzzle_id} {idx}" for idx in range(7)],
        created_at=created_at,
        status=status,
    )


@pytest.fixture
def valid_candidate() -> PuzzleCandidate:
    return PuzzleCandidate(chain=list(CHAIN), dummy=list(DUMMY), links=list(LINKS), difficulty="EASY")


@pytest.fixture
def raw_candidate(valid_candidate) -> Dict[str, str]:
    return valid_candidate.to_flat()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
