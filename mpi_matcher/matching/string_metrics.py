"""Edit-distance based string metrics."""
import math
from typing import Any, Optional

from rapidfuzz.distance import Levenshtein


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def _prepare(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def levenshtein_distance(str1: Any, str2: Any) -> int:
    """
    Minimum number of single-character insertions, deletions and
    substitutions turning one string into the other.

    Comparison is case-insensitive and ignores surrounding whitespace.
    Non-string input is treated as an empty string.
    """
    s1 = _prepare(str1)
    s2 = _prepare(str2)

    if s1 == s2:
        return 0
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    return Levenshtein.distance(s1, s2)


def similarity(str1: Optional[str], str2: Optional[str]) -> int:
    """
    Levenshtein similarity as a percentage in [0, 100].

    Returns 0 when either input is missing or only one side is empty,
    100 when both are equal after trimming (including both empty).
    """
    if not isinstance(str1, str) or not isinstance(str2, str):
        return 0

    s1 = _prepare(str1)
    s2 = _prepare(str2)

    if s1 == s2:
        return 100
    if not s1 or not s2:
        return 0

    max_length = max(len(s1), len(s2))
    distance = levenshtein_distance(s1, s2)
    return round_half_up((1 - distance / max_length) * 100)
