"""Tabulation Engine — atomic vote submission and retraction with aggregate upkeep.

Invariants:
    - Stages run in order: VALIDATING -> RATE_LIMIT_CHECK -> PERSISTING_VOTE ->
      UPDATING_NATIONAL_AGGREGATE -> UPDATING_REGION_AGGREGATE (optional) ->
      RENORMALIZING_PERCENTAGES -> COMMITTED | ABORTED
    - Ledger write and both aggregate updates share one transaction: all or nothing
    - Domain errors (validation, duplicate, rate limit, ownership, window) propagate
      unchanged and are logged at INFO
    - Any other failure, including the transaction timeout, becomes TabulationFailure
      after full rollback, with the original exception attached
    - Logs carry voter_hash, never the raw voter key
    - Only committed operations count against the submitter's rate limit

Design Decisions:
    - Two locks per item: an asyncio lock queues writers in this process, then the
      transaction opens with lock_item_in_database() so writers in other processes
      serialize in the database before any row is read (an empty scope has no rows
      to lock FOR UPDATE)
    - An aggregate insert race (AggregateConflict) retries the whole transaction,
      at most MAX_ATTEMPTS times, instead of nesting savepoints
    - Collaborators injected through the constructor (no module-level singletons)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from accentvote.config import Settings
from accentvote.core.category_resolution import resolve_category
from accentvote.core.domain_types import (
    NationalScope, RateLimitAction, RegionScope, TabulationStage, VoteReceipt,
    VoteRecord,
)
from accentvote.core.errors import (
    AccentVoteError, ErrorContext, NotFoundError, RateLimitExceeded,
    TabulationFailure,
)
from accentvote.core.region_catalog import DEFAULT_REGION_CATALOG, RegionCatalog
from accentvote.core.repository_protocols import Clock, ItemCatalog
from accentvote.core.vote_rules import (
    RETRACTION_WINDOW_HOURS, hash_voter_key, parse_age_group, validate_identifiers,
    validate_vote_id, validate_voter_key,
)
from accentvote.infrastructure.database import DatabaseSessionManager
from accentvote.services.aggregate_store import AggregateConflict, AggregateStore
from accentvote.services.item_locks import ItemLockRegistry, lock_item_in_database
from accentvote.services.rate_limiter import RateLimiter
from accentvote.services.vote_ledger import VoteLedger

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class TabulationPolicy:
    """Limits and timeouts applied by the engine."""
    vote_rate_limit: int = 60
    vote_rate_window_minutes: int = 60
    retract_rate_limit: int = 30
    retract_rate_window_minutes: int = 60
    retraction_window_hours: int = RETRACTION_WINDOW_HOURS
    timeout_seconds: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "TabulationPolicy":
        return cls(
            vote_rate_limit=settings.vote_rate_limit,
            vote_rate_window_minutes=settings.vote_rate_window_minutes,
            retract_rate_limit=settings.retract_rate_limit,
            retract_rate_window_minutes=settings.retract_rate_window_minutes,
            retraction_window_hours=settings.retraction_window_hours,
            timeout_seconds=settings.tabulation_timeout_seconds,
        )

    def limits_for(self, action: RateLimitAction) -> tuple[int, int]:
        if action is RateLimitAction.RETRACT:
            return self.retract_rate_limit, self.retract_rate_window_minutes
        return self.vote_rate_limit, self.vote_rate_window_minutes


class TabulationEngine:
    """Single entry point for every vote mutation."""

    MAX_ATTEMPTS = 3

    def __init__(
        self,
        db_manager: DatabaseSessionManager,
        item_catalog: ItemCatalog,
        rate_limiter: RateLimiter,
        clock: Clock,
        region_catalog: RegionCatalog = DEFAULT_REGION_CATALOG,
        policy: TabulationPolicy | None = None,
        ledger: VoteLedger | None = None,
        aggregates: AggregateStore | None = None,
        locks: ItemLockRegistry | None = None,
    ):
        self._db = db_manager
        self._items = item_catalog
        self._rate_limiter = rate_limiter
        self._clock = clock
        self._regions = region_catalog
        self.policy = policy or TabulationPolicy()
        self.ledger = ledger or VoteLedger(clock, self.policy.retraction_window_hours)
        self.aggregates = aggregates or AggregateStore(clock)
        self._locks = locks or ItemLockRegistry()

    # ─── Submission ──────────────────────────────────────────────

    async def submit_vote(
        self,
        item_id: int,
        category_id: int,
        voter_id: str,
        region_id: str | None = None,
        age_group: str | None = None,
        submitter_key: str | None = None,
    ) -> VoteReceipt:
        """Record one vote and update the national and (optional) region aggregates."""
        ctx = ErrorContext(
            item_id=item_id if isinstance(item_id, int) else None,
            category_id=category_id if isinstance(category_id, int) else None,
            stage=TabulationStage.VALIDATING.value,
        )
        try:
            validate_identifiers(item_id, category_id, voter_id, ctx)
            ctx.voter_hash = hash_voter_key(voter_id)
            if region_id is not None and not self._regions.contains(region_id):
                raise NotFoundError("Region", region_id, ctx)
            age = parse_age_group(age_group, ctx)
            item = await self._items.get_item(item_id)
            if item is None:
                raise NotFoundError("Item", item_id, ctx)
            resolved = resolve_category(item, category_id, ctx)
            ctx.category_id = resolved.category_id

            rate_key = submitter_key or voter_id
            self._check_rate(rate_key, RateLimitAction.VOTE, ctx)

            async def work(db: AsyncSession) -> VoteReceipt:
                ctx.stage = TabulationStage.PERSISTING_VOTE.value
                vote = await self.ledger.submit(
                    db, resolved, voter_id, region_id, age, ctx,
                )
                ctx.vote_id = vote.id
                national_scope = NationalScope(resolved.item_id)
                ctx.stage = TabulationStage.UPDATING_NATIONAL_AGGREGATE.value
                await self.aggregates.apply_delta(
                    db, national_scope, resolved.category_id, 1,
                )
                region_scope = None
                if vote.region_id is not None:
                    region_scope = RegionScope(resolved.item_id, vote.region_id)
                    ctx.stage = TabulationStage.UPDATING_REGION_AGGREGATE.value
                    await self.aggregates.apply_delta(
                        db, region_scope, resolved.category_id, 1,
                    )
                ctx.stage = TabulationStage.RENORMALIZING_PERCENTAGES.value
                national = await self.aggregates.renormalize(db, national_scope)
                region = (
                    await self.aggregates.renormalize(db, region_scope)
                    if region_scope else None
                )
                return VoteReceipt(vote_id=vote.id, national=national, region=region)

            receipt = await self._run_atomic(resolved.item_id, ctx, work)
        except AccentVoteError as e:
            self._log_rejection(e, ctx)
            raise

        self._rate_limiter.record(
            rate_key, RateLimitAction.VOTE, self.policy.vote_rate_window_minutes,
        )
        logger.info(
            "Vote recorded",
            extra={
                "item_id": resolved.item_id, "category_id": resolved.category_id,
                "region_id": region_id, "vote_id": receipt.vote_id,
                "voter_hash": ctx.voter_hash,
            },
        )
        return receipt

    # ─── Retraction ──────────────────────────────────────────────

    async def retract_vote(
        self, vote_id: int, voter_id: str, submitter_key: str | None = None,
    ) -> None:
        """Delete the voter's vote (within the retraction window) and apply a -1 delta."""
        ctx = ErrorContext(
            vote_id=vote_id if isinstance(vote_id, int) else None,
            stage=TabulationStage.VALIDATING.value,
        )
        try:
            validate_vote_id(vote_id, ctx)
            validate_voter_key(voter_id, ctx)
            ctx.voter_hash = hash_voter_key(voter_id)

            rate_key = submitter_key or voter_id
            self._check_rate(rate_key, RateLimitAction.RETRACT, ctx)

            async with self._db.session() as db:
                existing = await self.ledger.get(db, vote_id)
            if existing is None:
                raise NotFoundError("Vote", vote_id, ctx)
            ctx.item_id = existing.item_id
            ctx.category_id = existing.category_id

            async def work(db: AsyncSession) -> VoteRecord:
                ctx.stage = TabulationStage.PERSISTING_VOTE.value
                removed = await self.ledger.retract(db, vote_id, voter_id, ctx)
                national_scope = NationalScope(removed.item_id)
                ctx.stage = TabulationStage.UPDATING_NATIONAL_AGGREGATE.value
                await self.aggregates.apply_delta(
                    db, national_scope, removed.category_id, -1,
                )
                region_scope = None
                if removed.region_id is not None:
                    region_scope = RegionScope(removed.item_id, removed.region_id)
                    ctx.stage = TabulationStage.UPDATING_REGION_AGGREGATE.value
                    await self.aggregates.apply_delta(
                        db, region_scope, removed.category_id, -1,
                    )
                ctx.stage = TabulationStage.RENORMALIZING_PERCENTAGES.value
                await self.aggregates.renormalize(db, national_scope)
                if region_scope:
                    await self.aggregates.renormalize(db, region_scope)
                return removed

            removed = await self._run_atomic(existing.item_id, ctx, work)
        except AccentVoteError as e:
            self._log_rejection(e, ctx)
            raise

        self._rate_limiter.record(
            rate_key, RateLimitAction.RETRACT, self.policy.retract_rate_window_minutes,
        )
        logger.info(
            "Vote retracted",
            extra={
                "item_id": removed.item_id, "category_id": removed.category_id,
                "region_id": removed.region_id, "vote_id": removed.id,
                "voter_hash": ctx.voter_hash,
            },
        )

    # ─── Voter lookups ───────────────────────────────────────────

    async def get_voter_vote(self, item_id: int, voter_id: str) -> VoteRecord | None:
        """The voter's current vote on item_id; None means the voter may still vote."""
        validate_voter_key(voter_id)
        async with self._db.session() as db:
            return await self.ledger.find_by_voter(db, item_id, voter_id)

    async def voter_history(
        self, voter_id: str, limit: int = 20, offset: int = 0,
    ) -> list[VoteRecord]:
        validate_voter_key(voter_id)
        async with self._db.session() as db:
            return await self.ledger.history(db, voter_id, limit, offset)

    # ─── Internals ───────────────────────────────────────────────

    def _check_rate(
        self, key: str, action: RateLimitAction, ctx: ErrorContext,
    ) -> None:
        ctx.stage = TabulationStage.RATE_LIMIT_CHECK.value
        limit, window = self.policy.limits_for(action)
        if not self._rate_limiter.check(key, action, limit, window):
            retry_after = self._rate_limiter.retry_after_seconds(key, action, window)
            raise RateLimitExceeded(action.value, retry_after, ctx)

    async def _run_atomic(
        self,
        item_id: int,
        ctx: ErrorContext,
        work: Callable[[AsyncSession], Awaitable[T]],
    ) -> T:
        """Run work in one transaction under the item lock, bounded by the timeout."""
        try:
            result = await asyncio.wait_for(
                self._locked_transaction(item_id, ctx, work),
                timeout=self.policy.timeout_seconds,
            )
        except AccentVoteError:
            ctx.stage = TabulationStage.ABORTED.value
            raise
        except asyncio.TimeoutError as e:
            raise self._failure("transaction timed out", e, ctx) from e
        except (SQLAlchemyError, AggregateConflict) as e:
            raise self._failure(type(e).__name__, e, ctx) from e
        ctx.stage = TabulationStage.COMMITTED.value
        return result

    async def _locked_transaction(
        self,
        item_id: int,
        ctx: ErrorContext,
        work: Callable[[AsyncSession], Awaitable[T]],
    ) -> T:
        async with self._locks.for_item(item_id):
            for attempt in range(1, self.MAX_ATTEMPTS + 1):
                try:
                    async with self._db.transaction() as db:
                        await lock_item_in_database(db, item_id)
                        return await work(db)
                except AggregateConflict:
                    if attempt == self.MAX_ATTEMPTS:
                        raise
                    logger.warning(
                        "Aggregate row race, retrying transaction (attempt %d)",
                        attempt,
                        extra={"item_id": item_id, "stage": ctx.stage},
                    )

    def _failure(
        self, reason: str, cause: BaseException, ctx: ErrorContext,
    ) -> TabulationFailure:
        failed_stage = ctx.stage
        ctx.stage = TabulationStage.ABORTED.value
        logger.error(
            "Tabulation failed at %s: %s", failed_stage, reason,
            extra={
                "item_id": ctx.item_id, "category_id": ctx.category_id,
                "vote_id": ctx.vote_id, "voter_hash": ctx.voter_hash,
                "stage": failed_stage, "error_code": "TABULATION_FAILURE",
            },
            exc_info=cause,
        )
        return TabulationFailure(reason, cause=cause, context=ctx)

    @staticmethod
    def _log_rejection(error: AccentVoteError, ctx: ErrorContext) -> None:
        if error.http_status >= 500:
            return
        logger.info(
            "Vote operation rejected: %s", error.code,
            extra={
                "item_id": ctx.item_id, "category_id": ctx.category_id,
                "vote_id": ctx.vote_id, "voter_hash": ctx.voter_hash,
                "error_code": error.code, "stage": ctx.stage,
            },
        )
