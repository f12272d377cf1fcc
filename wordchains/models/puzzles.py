"""Puzzle data models for the Word Chains editorial engine."""

from enum import Enum
from typing import Dict, List, Optional, Any
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..rules.shuffle import shuffle


CHAIN_LENGTH = 8
DUMMY_COUNT = 10
LINK_COUNT = CHAIN_LENGTH - 1

WORD_KEYS = [f"word_{idx + 1}" for idx in range(CHAIN_LENGTH)]
DUMMY_KEYS = [f"dummy_{idx + 1}" for idx in range(DUMMY_COUNT)]
LINK_KEYS = [f"qa_link_{idx + 1}" for idx in range(LINK_COUNT)]


class DifficultyLevel(str, Enum):
    """Difficulty labels used by the generator and by legacy pool rows."""
    EASY = "EASY"      # Obvious compounds / collocations
    MEDIUM = "MEDIUM"  # Mild abstraction, still fair
    HARD = "HARD"      # Layered linguistic or cultural reasoning
    # Labels carried by rows created before the EASY/MEDIUM/HARD scheme
    GREEN = "GREEN"
    BLUE = "BLUE"
    PURPLE = "PURPLE"


KNOWN_DIFFICULTIES = {level.value for level in DifficultyLevel}


class PuzzleMode(str, Enum):
    """How a puzzle is being presented to a player."""
    DAILY = "daily"
    ARCHIVE = "archive"
    ENDLESS = "endless"


class PuzzleCandidate(BaseModel):
    """A generated puzzle that has not been validated yet."""

    chain: List[str] = Field(
        ...,
        min_length=CHAIN_LENGTH,
        max_length=CHAIN_LENGTH,
        description="Eight chain words in solution order"
    )
    dummy: List[str] = Field(
        ...,
        min_length=DUMMY_COUNT,
        max_length=DUMMY_COUNT,
        description="Ten distractor words"
    )
    links: List[str] = Field(
        ...,
        min_length=LINK_COUNT,
        max_length=LINK_COUNT,
        description="Link phrase for each adjacent chain pair"
    )
    difficulty: str = Field(..., description="Difficulty label as produced by the generator")

    @property
    def endpoints(self) -> List[str]:
        return [self.chain[0], self.chain[-1]]

    def to_flat(self) -> Dict[str, str]:
        """Render the candidate in the generator's flat key layout."""
        flat: Dict[str, str] = {"difficulty": self.difficulty}
        flat.update(zip(WORD_KEYS, self.chain))
        flat.update(zip(DUMMY_KEYS, self.dummy))
        flat.update(zip(LINK_KEYS, self.links))
        return flat


class PuzzlePoolEntry(BaseModel):
    """A stored puzzle. Rows are immutable once created."""

    id: int = Field(..., description="Numeric puzzle id")
    difficulty: str = Field(..., description="Difficulty label")
    chain: List[str] = Field(..., min_length=CHAIN_LENGTH, max_length=CHAIN_LENGTH)
    dummy: List[str] = Field(..., max_length=DUMMY_COUNT)
    links: Optional[List[str]] = Field(
        None,
        max_length=LINK_COUNT,
        description="Link phrases; older rows were stored without them"
    )
    created_at: Optional[datetime] = Field(None, description="Creation timestamp (UTC)")
    status: str = Field(default="approved", description="Editorial status of the row")

    model_config = ConfigDict(frozen=True)

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def endpoints(self) -> List[str]:
        return [self.chain[0], self.chain[-1]]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PuzzlePoolEntry":
        """Build an entry from a flat row (``word_1`` .. ``qa_link_7`` columns)."""
        links = [row.get(key) or "" for key in LINK_KEYS]
        return cls(
            id=int(row["id"]),
            difficulty=row.get("difficulty") or "",
            chain=[row.get(key) or "" for key in WORD_KEYS],
            dummy=[row[key] for key in DUMMY_KEYS if row.get(key)],
            links=links if any(links) else None,
            created_at=row.get("created_at"),
            status=row.get("status") or "approved",
        )


class DailyAssignment(BaseModel):
    """Ledger row binding one civil date to one puzzle."""

    date_key: str = Field(..., description="UTC civil date, YYYY-MM-DD")
    puzzle_id: int = Field(..., description="Assigned pool entry id")

    model_config = ConfigDict(frozen=True)


class AssignmentResult(BaseModel):
    """Outcome of a daily assignment request."""

    date_key: str
    puzzle_id: int
    used_fallback: bool = Field(
        default=False,
        description="True when no entry passed the similarity guard"
    )
    created: bool = Field(
        default=False,
        description="True when this call's write created the ledger row"
    )


class PuzzleView(BaseModel):
    """Puzzle as presented to a player."""

    id: str
    puzzle_number: int
    mode: PuzzleMode
    difficulty: Optional[str] = None
    words_1_to_8: List[str]
    dummy_words: List[str]
    word_bank: List[str] = Field(
        default_factory=list,
        description="Chain and dummy words in a stable per-puzzle order"
    )
    warning: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)

    @classmethod
    def from_entry(
        cls,
        entry: PuzzlePoolEntry,
        mode: PuzzleMode,
        puzzle_number: Optional[int] = None,
        warning: Optional[str] = None,
    ) -> "PuzzleView":
        puzzle_id = str(entry.id)
        return cls(
            id=puzzle_id,
            puzzle_number=puzzle_number if puzzle_number is not None else entry.id,
            mode=mode,
            difficulty=entry.difficulty,
            words_1_to_8=list(entry.chain),
            dummy_words=list(entry.dummy),
            word_bank=shuffle(list(entry.chain) + list(entry.dummy), puzzle_id),
            warning=warning,
        )


class EndlessPick(BaseModel):
    """Next puzzle for a player outside the daily flow."""

    puzzle: Optional[PuzzleView] = None
    has_next: bool = False
