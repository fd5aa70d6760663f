"""Sliding Window — pure helpers for trailing-window attempt counting.

Invariants:
    - Attempts are timestamps in ascending order
    - An attempt at exactly now - window is outside the window
"""

from collections import deque
from datetime import datetime, timedelta


def prune(attempts: deque[datetime], now: datetime, window: timedelta) -> None:
    """Drop attempts that fell out of the trailing window (mutates the deque)."""
    cutoff = now - window
    while attempts and attempts[0] <= cutoff:
        attempts.popleft()


def seconds_until_slot(
    attempts: deque[datetime], now: datetime, window: timedelta,
) -> int:
    """Seconds until the oldest attempt leaves the window (0 if empty)."""
    if not attempts:
        return 0
    remaining = (attempts[0] + window - now).total_seconds()
    return max(0, int(remaining) + 1)
