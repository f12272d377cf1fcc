"""Deterministic seeded shuffle.

The same seed text must yield the same order in every process and in the
browser client, so the arithmetic below mirrors 32-bit JavaScript integer
semantics exactly: a Java-style string hash folded over UTF-16 code units,
a mulberry32 generator, and a Fisher-Yates pass from the end of the list.
"""

from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_MULBERRY_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _to_int32(value: int) -> int:
    value &= _MASK32
    return value - 0x100000000 if value & 0x80000000 else value


def _imul(a: int, b: int) -> int:
    """Low 32 bits of a * b, as an unsigned integer."""
    return (a * b) & _MASK32


def hash_seed(seed_text: str) -> int:
    """Fold ``seed_text`` into a signed 32-bit seed (``h = (h << 5) - h + c``)."""
    h = 0
    encoded = seed_text.encode("utf-16-le", "surrogatepass")
    for idx in range(0, len(encoded), 2):
        code_unit = encoded[idx] | (encoded[idx + 1] << 8)
        h = _to_int32((h << 5) - h + code_unit)
    return h


def mulberry32(seed: int) -> Callable[[], float]:
    """Return a generator of floats in ``[0, 1)`` seeded with ``seed``."""
    state = seed & _MASK32

    def draw() -> float:
        nonlocal state
        state = (state + _MULBERRY_INCREMENT) & _MASK32
        x = state
        x = _imul(x ^ (x >> 15), x | 1)
        x ^= (x + _imul(x ^ (x >> 7), x | 61)) & _MASK32
        return ((x ^ (x >> 14)) & _MASK32) / _TWO_POW_32

    return draw


def shuffle(items: Sequence[T], seed_text: str) -> List[T]:
    """Return a shuffled copy of ``items``; the input is left untouched."""
    result = list(items)
    draw = mulberry32(hash_seed(seed_text))
    for i in range(len(result) - 1, 0, -1):
        j = int(draw() * (i + 1))
        result[i], result[j] = result[j], result[i]
    return result
