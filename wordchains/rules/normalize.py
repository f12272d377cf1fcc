"""Normalisation helpers and word-level rule predicates."""

import re
from typing import Iterable, List, Optional

_WHITESPACE_RUN = re.compile(r"\s+")
_TOKEN_BREAK = re.compile(r"[\s-]")


def normalize_word(value: Optional[str]) -> str:
    """Trim and lowercase a word. ``None`` normalises to an empty string."""
    if not value:
        return ""
    return value.strip().lower()


def normalize_link(value: Optional[str]) -> str:
    """Trim, lowercase and collapse internal whitespace runs to one space."""
    if not value:
        return ""
    return _WHITESPACE_RUN.sub(" ", value.strip().lower())


def is_non_empty(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def is_single_token(value: str) -> bool:
    """True when the trimmed word has no whitespace and no hyphen."""
    return not _TOKEN_BREAK.search(value.strip())


def is_title_case(value: str) -> bool:
    # Proper nouns may legitimately fail this; callers treat it as a warning.
    return (
        len(value) > 0
        and value[0] == value[0].upper()
        and value[1:] == value[1:].lower()
    )


def fused_pair(left: str, right: str) -> str:
    """Compound form of two adjacent chain words."""
    return normalize_word(left) + normalize_word(right)


def spaced_pair(left: str, right: str) -> str:
    """Two-word phrase form of two adjacent chain words."""
    return f"{normalize_word(left)} {normalize_word(right)}"


def fused_pairs(chain: List[str]) -> List[str]:
    return [fused_pair(chain[idx], chain[idx + 1]) for idx in range(len(chain) - 1)]


def normalized_links(links: Optional[Iterable[str]]) -> List[str]:
    """Normalised non-empty links; missing link lists yield nothing."""
    if not links:
        return []
    return [link for link in (normalize_link(value) for value in links) if link]
