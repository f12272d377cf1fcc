"""Per-player endless mode ordering."""

from typing import Iterable, List

from ..models.puzzles import EndlessPick, PuzzleMode, PuzzlePoolEntry, PuzzleView
from ..rules.shuffle import shuffle


def next_endless_puzzle(user_id: str, pool: List[PuzzlePoolEntry], played_ids: Iterable[int]) -> EndlessPick:
    """First unplayed puzzle in the player's own shuffled order.

    The order is seeded by the user id, so a player walks the pool in the same
    sequence on every request. An exhausted pool is an empty pick, not an error.
    """
    if not user_id:
        raise ValueError("user_id required")

    played = {int(puzzle_id) for puzzle_id in played_ids}
    for entry in shuffle(pool, user_id):
        if entry.id not in played:
            return EndlessPick(puzzle=PuzzleView.from_entry(entry, mode=PuzzleMode.ENDLESS), has_next=True)
    return EndlessPick()
