"""Percentage Engine — pure delta application and renormalization within one scope.

Invariants:
    - apply_delta never returns a negative count (clamped at zero)
    - renormalize: percentages sum to 100 when the scope total > 0, else all are 0
    - Inputs are never mutated; results are fresh dicts
"""

from collections.abc import Mapping
from typing import TypeVar

K = TypeVar("K")


def apply_delta(current: int, delta: int) -> int:
    """Signed delta, clamped at zero."""
    return max(0, current + delta)


def should_create_row(delta: int) -> bool:
    """Rows are created lazily, only by a positive delta."""
    return delta > 0


def renormalize(counts: Mapping[K, int]) -> tuple[int, dict[K, float]]:
    """Return (scope total, key -> percentage) for the given counts. Pure."""
    total = sum(counts.values())
    if total == 0:
        return 0, {key: 0.0 for key in counts}
    return total, {key: count / total * 100 for key, count in counts.items()}


def share(part: int, whole: int) -> float:
    """part / whole as a percentage, 0 for an empty whole."""
    return part / whole * 100 if whole > 0 else 0.0
