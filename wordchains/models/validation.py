"""Validation result models and banned-set context."""

from enum import Enum
from typing import Iterable, List, Optional, Set
from pydantic import BaseModel, ConfigDict, Field

from .puzzles import PuzzleCandidate


class IssueKind(str, Enum):
    """Category of a validation issue."""
    STRUCTURAL = "STRUCTURAL"  # Missing/malformed fields or broken chain shape
    COLLISION = "COLLISION"    # Conflict with recent or blocked history
    LEAKAGE = "LEAKAGE"        # Distractor reveals an adjacent link


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ValidationIssue(BaseModel):
    """A single rule violation found on a candidate."""

    rule: str = Field(..., description="Identifier of the violated rule")
    kind: IssueKind = Field(..., description="Issue category")
    message: str = Field(..., description="Human readable reason")
    items: List[str] = Field(default_factory=list, description="Offending words or links")
    severity: IssueSeverity = Field(default=IssueSeverity.ERROR)

    model_config = ConfigDict(use_enum_values=True)

    @property
    def is_error(self) -> bool:
        return self.severity == IssueSeverity.ERROR.value

    def __str__(self) -> str:
        return self.message


class BannedSet(BaseModel):
    """Normalised links, endpoints and words excluded by recent use."""

    links: Set[str] = Field(default_factory=set)
    endpoints: Set[str] = Field(default_factory=set)
    words: Set[str] = Field(default_factory=set)

    def union(self, other: Optional["BannedSet"]) -> "BannedSet":
        if other is None:
            return self.model_copy(deep=True)
        return BannedSet(
            links=self.links | other.links,
            endpoints=self.endpoints | other.endpoints,
            words=self.words | other.words,
        )

    def add_links(self, links: Iterable[str]) -> "BannedSet":
        return BannedSet(links=self.links | set(links), endpoints=set(self.endpoints), words=set(self.words))

    def add_endpoints(self, endpoints: Iterable[str]) -> "BannedSet":
        return BannedSet(links=set(self.links), endpoints=self.endpoints | set(endpoints), words=set(self.words))

    def is_empty(self) -> bool:
        return not (self.links or self.endpoints or self.words)


class CandidateParseResult(BaseModel):
    """Tagged result of reading untrusted generator output."""

    ok: bool
    candidate: Optional[PuzzleCandidate] = None
    errors: List[ValidationIssue] = Field(default_factory=list)


class ValidationReport(BaseModel):
    """Errors and warnings produced by a full candidate review."""

    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return not self.errors
