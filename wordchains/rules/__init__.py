"""Rule primitives: seeded shuffle and normalisation predicates.

The candidate validator is in ``wordchains.rules.validator``.
"""

from .shuffle import shuffle, hash_seed, mulberry32
from .normalize import (
    normalize_word,
    normalize_link,
    is_single_token,
    is_title_case,
    fused_pair,
    spaced_pair,
)

__all__ = [
    "shuffle",
    "hash_seed",
    "mulberry32",
    "normalize_word",
    "normalize_link",
    "is_single_token",
    "is_title_case",
    "fused_pair",
    "spaced_pair",
]
