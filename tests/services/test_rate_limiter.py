"""Rate Limiter — sliding-window semantics with a frozen clock.

Tests cover:
    - At most `limit` admitted attempts per trailing window
    - Rejected attempts are not recorded
    - Keys are independent per submitter and per action
    - retry_after_seconds points at the oldest attempt's expiry
"""

from accentvote.core.domain_types import RateLimitAction
from accentvote.services.rate_limiter import RateLimiter


def test_allows_up_to_limit(clock):
    limiter = RateLimiter(clock)
    assert limiter.allow("k", "vote", limit=3, window_minutes=60)
    assert limiter.allow("k", "vote", limit=3, window_minutes=60)
    assert limiter.allow("k", "vote", limit=3, window_minutes=60)
    assert not limiter.allow("k", "vote", limit=3, window_minutes=60)


def test_rejected_attempts_do_not_extend_block(clock):
    limiter = RateLimiter(clock)
    limiter.allow("k", "vote", limit=1, window_minutes=60)
    clock.advance(minutes=30)
    assert not limiter.allow("k", "vote", limit=1, window_minutes=60)
    clock.advance(minutes=30, seconds=1)
    assert limiter.allow("k", "vote", limit=1, window_minutes=60)


def test_window_slides_one_attempt_at_a_time(clock):
    limiter = RateLimiter(clock)
    limiter.allow("k", "vote", limit=2, window_minutes=60)
    clock.advance(minutes=30)
    limiter.allow("k", "vote", limit=2, window_minutes=60)
    clock.advance(minutes=31)
    assert limiter.allow("k", "vote", limit=2, window_minutes=60)
    assert not limiter.allow("k", "vote", limit=2, window_minutes=60)


def test_keys_are_independent(clock):
    limiter = RateLimiter(clock)
    assert limiter.allow("a", RateLimitAction.VOTE, limit=1, window_minutes=60)
    assert limiter.allow("b", RateLimitAction.VOTE, limit=1, window_minutes=60)
    assert limiter.allow("a", RateLimitAction.RETRACT, limit=1, window_minutes=60)
    assert not limiter.allow("a", "vote", limit=1, window_minutes=60)


def test_check_does_not_record(clock):
    limiter = RateLimiter(clock)
    for _ in range(5):
        assert limiter.check("k", "vote", limit=1, window_minutes=60)
    assert len(limiter) == 0


def test_retry_after_seconds(clock):
    limiter = RateLimiter(clock)
    limiter.allow("k", "vote", limit=1, window_minutes=60)
    clock.advance(minutes=59)
    assert limiter.retry_after_seconds("k", "vote", window_minutes=60) == 61


def test_retry_after_zero_when_empty(clock):
    assert RateLimiter(clock).retry_after_seconds("k", "vote", window_minutes=60) == 0


def test_close_clears_state(clock):
    limiter = RateLimiter(clock)
    limiter.allow("k", "vote", limit=1, window_minutes=60)
    limiter.close()
    assert len(limiter) == 0
    assert limiter.allow("k", "vote", limit=1, window_minutes=60)


def test_expired_key_dropped_when_touched(clock):
    limiter = RateLimiter(clock)
    limiter.allow("k", "vote", limit=1, window_minutes=1)
    assert len(limiter) == 1
    clock.advance(seconds=30)
    limiter.check("k", "vote", limit=1, window_minutes=1)
    assert len(limiter) == 1
    clock.advance(seconds=31)
    assert limiter.check("k", "vote", limit=1, window_minutes=1)
    assert len(limiter) == 0


def test_stale_keys_swept_after_window(clock):
    limiter = RateLimiter(clock)
    for i in range(1000):
        limiter.allow(f"203.0.113.{i}", "vote", limit=5, window_minutes=1)
    assert len(limiter) == 1000

    clock.advance(minutes=10)
    limiter.allow("198.51.100.1", "vote", limit=5, window_minutes=1)

    assert len(limiter) == 1


def test_sweep_keeps_keys_still_in_window(clock):
    limiter = RateLimiter(clock)
    limiter.allow("short", "vote", limit=5, window_minutes=1)
    limiter.allow("long", "retract", limit=5, window_minutes=60)
    clock.advance(minutes=5)
    limiter.check("other", "vote", limit=5, window_minutes=1)
    assert len(limiter) == 1
    assert not limiter.check("long", "retract", limit=1, window_minutes=60)
