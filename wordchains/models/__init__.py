"""Data models for the Word Chains editorial engine."""

from .puzzles import (
    PuzzleCandidate,
    PuzzlePoolEntry,
    DailyAssignment,
    AssignmentResult,
    PuzzleView,
    EndlessPick,
    DifficultyLevel,
    PuzzleMode,
    KNOWN_DIFFICULTIES,
)
from .validation import (
    BannedSet,
    CandidateParseResult,
    IssueKind,
    IssueSeverity,
    ValidationIssue,
    ValidationReport,
)

__all__ = [
    "PuzzleCandidate",
    "PuzzlePoolEntry",
    "DailyAssignment",
    "AssignmentResult",
    "PuzzleView",
    "EndlessPick",
    "DifficultyLevel",
    "PuzzleMode",
    "KNOWN_DIFFICULTIES",
    "BannedSet",
    "CandidateParseResult",
    "IssueKind",
    "IssueSeverity",
    "ValidationIssue",
    "ValidationReport",
]
