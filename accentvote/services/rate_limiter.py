"""Rate Limiter — per-(submitter, action) sliding-window attempt counter.

Invariants:
    - allow() admits at most `limit` attempts per key within any trailing window
    - Only admitted attempts are recorded; rejected attempts never extend the block
    - Keys never leak across actions: ("k", "vote") and ("k", "retract") are independent
    - A key whose window has emptied is dropped: when touched, and by a sweep
      over all keys at most once per SWEEP_INTERVAL
    - allow() checks and records with no await in between; the tabulation engine
      checks before its transaction and records after commit, so concurrent
      requests from one submitter can overshoot the limit (soft guard)

Design Decisions:
    - In-process memory: a restart forgets history, which is acceptable for
      abuse throttling (not a security boundary)
    - The caller records an attempt only after the domain checks succeed, so
      invalid requests do not burn quota
    - Each key remembers its own window so the sweep can prune it
    - Clock injected: window expiry is tested without sleeping
"""

import logging
from collections import deque
from datetime import datetime, timedelta

from accentvote.core.domain_types import RateLimitAction
from accentvote.core.repository_protocols import Clock
from accentvote.core.sliding_window import prune, seconds_until_slot

logger = logging.getLogger(__name__)

RateKey = tuple[str, str]

SWEEP_INTERVAL = timedelta(minutes=1)


class RateLimiter:
    """Sliding-window limiter keyed by submitter and action."""

    def __init__(self, clock: Clock):
        self._clock = clock
        self._attempts: dict[RateKey, deque[datetime]] = {}
        self._windows: dict[RateKey, timedelta] = {}
        self._last_sweep = clock.now()

    def _live(self, key: RateKey, window_minutes: int) -> deque[datetime]:
        """Attempts of key still inside the window. Empty keys are forgotten."""
        now = self._clock.now()
        self._sweep(now)
        attempts = self._attempts.get(key)
        if attempts is None:
            return deque()
        prune(attempts, now, timedelta(minutes=window_minutes))
        if not attempts:
            self._forget(key)
        return attempts

    def _sweep(self, now: datetime) -> None:
        if now - self._last_sweep < SWEEP_INTERVAL:
            return
        self._last_sweep = now
        for key in list(self._attempts):
            attempts = self._attempts[key]
            prune(attempts, now, self._windows[key])
            if not attempts:
                self._forget(key)

    def _forget(self, key: RateKey) -> None:
        self._attempts.pop(key, None)
        self._windows.pop(key, None)

    def check(
        self, submitter_key: str, action: RateLimitAction | str,
        limit: int, window_minutes: int,
    ) -> bool:
        """True if one more attempt would be admitted. Records nothing."""
        key = (submitter_key, RateLimitAction(action).value)
        return len(self._live(key, window_minutes)) < limit

    def record(
        self, submitter_key: str, action: RateLimitAction | str, window_minutes: int,
    ) -> None:
        """Count one admitted attempt."""
        key = (submitter_key, RateLimitAction(action).value)
        attempts = self._live(key, window_minutes)
        attempts.append(self._clock.now())
        self._attempts[key] = attempts
        self._windows[key] = timedelta(minutes=window_minutes)

    def allow(
        self, submitter_key: str, action: RateLimitAction | str,
        limit: int, window_minutes: int,
    ) -> bool:
        """Check and, if admitted, record in one step."""
        if not self.check(submitter_key, action, limit, window_minutes):
            logger.info(
                "Rate limit hit",
                extra={"action": RateLimitAction(action).value},
            )
            return False
        self.record(submitter_key, action, window_minutes)
        return True

    def retry_after_seconds(
        self, submitter_key: str, action: RateLimitAction | str, window_minutes: int,
    ) -> int:
        key = (submitter_key, RateLimitAction(action).value)
        attempts = self._live(key, window_minutes)
        return seconds_until_slot(
            attempts, self._clock.now(), timedelta(minutes=window_minutes),
        )

    def reset(self) -> None:
        self._attempts.clear()
        self._windows.clear()

    def __len__(self) -> int:
        """Number of keys currently held in memory."""
        return len(self._attempts)

    def close(self) -> None:
        """Lifespan shutdown hook."""
        self.reset()
