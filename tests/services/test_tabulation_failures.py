"""Tabulation Failures — rollback, timeout, retry and rate limiting.

Tests cover:
    - Persistence failure mid-transaction -> TabulationFailure, nothing persisted
    - Timeout -> TabulationFailure with the timeout as cause
    - Aggregate insert race retried, then given up after MAX_ATTEMPTS
    - Rate limit: cap, retry hint, window expiry, only committed votes count
    - Logs carry the voter hash, never the raw key
"""

import asyncio
import logging

import pytest
from sqlalchemy.exc import SQLAlchemyError

from accentvote.core.domain_types import NationalScope
from accentvote.core.errors import (
    DuplicateVoteError, RateLimitExceeded, TabulationFailure,
)
from accentvote.core.vote_rules import hash_voter_key
from accentvote.services.aggregate_store import AggregateConflict
from accentvote.services.tabulation_engine import TabulationEngine, TabulationPolicy


async def _ledger_count(engine, db_manager, item_id=1):
    async with db_manager.session() as db:
        return await engine.ledger.count_for_item(db, item_id)


# ─── rollback ────────────────────────────────────────────────────

async def test_failure_during_renormalize_rolls_back_everything(
    engine, db_manager, monkeypatch,
):
    cause = SQLAlchemyError("disk I/O error")

    async def broken(db, scope):
        raise cause

    monkeypatch.setattr(engine.aggregates, "renormalize", broken)

    with pytest.raises(TabulationFailure) as exc_info:
        await engine.submit_vote(1, 10, "voter-a", region_id="13")

    assert exc_info.value.cause is cause
    assert exc_info.value.__cause__ is cause
    assert exc_info.value.http_status == 503
    assert await _ledger_count(engine, db_manager) == 0
    async with db_manager.session() as db:
        assert await engine.aggregates.scope_total(db, NationalScope(1)) == 0


async def test_failure_is_logged_with_hash_not_key(engine, monkeypatch, caplog):
    async def broken(db, scope):
        raise SQLAlchemyError("boom")

    monkeypatch.setattr(engine.aggregates, "renormalize", broken)

    with caplog.at_level(logging.ERROR, logger="accentvote.services.tabulation_engine"):
        with pytest.raises(TabulationFailure):
            await engine.submit_vote(1, 10, "raw-secret-key")

    records = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert records
    assert records[0].voter_hash == hash_voter_key("raw-secret-key")
    assert records[0].item_id == 1
    assert all("raw-secret-key" not in r.getMessage() for r in caplog.records)


async def test_failure_does_not_consume_rate_limit(engine, monkeypatch, rate_limiter):
    async def broken(db, scope):
        raise SQLAlchemyError("boom")

    monkeypatch.setattr(engine.aggregates, "renormalize", broken)
    with pytest.raises(TabulationFailure):
        await engine.submit_vote(1, 10, "voter-a")
    assert len(rate_limiter) == 0


async def test_voter_can_vote_after_failed_attempt(engine, monkeypatch):
    original = engine.aggregates.renormalize
    calls = {"n": 0}

    async def flaky(db, scope):
        calls["n"] += 1
        if calls["n"] == 1:
            raise SQLAlchemyError("transient")
        return await original(db, scope)

    monkeypatch.setattr(engine.aggregates, "renormalize", flaky)
    with pytest.raises(TabulationFailure):
        await engine.submit_vote(1, 10, "voter-a")
    receipt = await engine.submit_vote(1, 10, "voter-a")
    assert receipt.national[0].count == 1


# ─── timeout ─────────────────────────────────────────────────────

async def test_timeout_becomes_tabulation_failure(
    db_manager, item_catalog, rate_limiter, clock, monkeypatch,
):
    engine = TabulationEngine(
        db_manager, item_catalog, rate_limiter, clock,
        policy=TabulationPolicy(timeout_seconds=0.05),
    )

    async def slow(*args, **kwargs):
        await asyncio.sleep(1)

    monkeypatch.setattr(engine.ledger, "submit", slow)

    with pytest.raises(TabulationFailure) as exc_info:
        await engine.submit_vote(1, 10, "voter-a")
    assert isinstance(exc_info.value.cause, asyncio.TimeoutError)
    assert await _ledger_count(engine, db_manager) == 0


# ─── aggregate insert race ──────────────────────────────────────

async def test_aggregate_conflict_retried(engine, db_manager, monkeypatch):
    original = engine.aggregates.apply_delta
    calls = {"n": 0}

    async def racing(db, scope, category_id, delta):
        calls["n"] += 1
        if calls["n"] == 1:
            raise AggregateConflict(scope, category_id)
        return await original(db, scope, category_id, delta)

    monkeypatch.setattr(engine.aggregates, "apply_delta", racing)

    receipt = await engine.submit_vote(1, 10, "voter-a")
    assert receipt.national[0].count == 1
    assert await _ledger_count(engine, db_manager) == 1


async def test_aggregate_conflict_gives_up_after_max_attempts(
    engine, db_manager, monkeypatch,
):
    attempts = {"n": 0}

    async def always_racing(db, scope, category_id, delta):
        attempts["n"] += 1
        raise AggregateConflict(scope, category_id)

    monkeypatch.setattr(engine.aggregates, "apply_delta", always_racing)

    with pytest.raises(TabulationFailure) as exc_info:
        await engine.submit_vote(1, 10, "voter-a")
    assert isinstance(exc_info.value.cause, AggregateConflict)
    assert attempts["n"] == engine.MAX_ATTEMPTS
    assert await _ledger_count(engine, db_manager) == 0


# ─── rate limiting ───────────────────────────────────────────────

@pytest.fixture
def policy():
    return TabulationPolicy(vote_rate_limit=2, retract_rate_limit=1)


async def test_rate_limit_blocks_after_cap(engine):
    await engine.submit_vote(1, 10, "voter-a", submitter_key="203.0.113.5")
    await engine.submit_vote(1, 10, "voter-b", submitter_key="203.0.113.5")
    with pytest.raises(RateLimitExceeded) as exc_info:
        await engine.submit_vote(1, 10, "voter-c", submitter_key="203.0.113.5")
    assert exc_info.value.context.retry_after_seconds > 0


async def test_rate_limit_keyed_by_voter_by_default(engine):
    await engine.submit_vote(1, 10, "voter-a")
    await engine.submit_vote(2, 10, "voter-a")
    with pytest.raises(RateLimitExceeded):
        await engine.submit_vote(1, 20, "voter-a")
    # other voters are unaffected
    await engine.submit_vote(1, 20, "voter-b")


async def test_rate_limit_window_slides(engine, clock):
    await engine.submit_vote(1, 10, "a", submitter_key="k")
    await engine.submit_vote(1, 10, "b", submitter_key="k")
    clock.advance(minutes=60, seconds=1)
    receipt = await engine.submit_vote(1, 10, "c", submitter_key="k")
    assert receipt.national[0].count == 3


async def test_rejected_duplicates_do_not_burn_quota(engine):
    await engine.submit_vote(1, 10, "voter-a")
    for _ in range(3):
        with pytest.raises(DuplicateVoteError):
            await engine.submit_vote(1, 10, "voter-a")
    await engine.submit_vote(2, 10, "voter-a")


async def test_retract_rate_limited_separately(engine):
    first = await engine.submit_vote(1, 10, "voter-a")
    second = await engine.submit_vote(2, 10, "voter-a")
    await engine.retract_vote(first.vote_id, "voter-a")
    with pytest.raises(RateLimitExceeded) as exc_info:
        await engine.retract_vote(second.vote_id, "voter-a")
    assert exc_info.value.action == "retract"


async def test_concurrent_submissions_can_overshoot_soft_limit(engine, rate_limiter):
    # checked before the transaction, recorded after commit
    receipts = await asyncio.gather(*[
        engine.submit_vote(1, 10, f"voter-{i}", submitter_key="k") for i in range(3)
    ])
    assert max(r.national[0].count for r in receipts) == 3
    assert not rate_limiter.check("k", "vote", limit=2, window_minutes=60)
    with pytest.raises(RateLimitExceeded):
        await engine.submit_vote(2, 10, "voter-9", submitter_key="k")
