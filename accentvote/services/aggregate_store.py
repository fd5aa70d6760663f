"""Aggregate Store — per-scope category counts with denormalized percentages.

Invariants:
    - apply_delta() clamps counts at zero and only creates rows for positive deltas
    - After renormalize(scope), every row of the scope carries the same total_votes
      and percentages that sum to 100 (or all 0 for an empty scope)
    - Scope rows are read FOR UPDATE in category_id order; callers hold the item
      lock (services.item_locks), which also covers scopes with no rows yet
    - All mutations run on the caller's session; commit/rollback belongs to the caller

Design Decisions:
    - One code path for national and region scopes: the scope value picks the
      model and the filter, the arithmetic lives in core.percentages
    - A unique violation while inserting a fresh row raises AggregateConflict;
      the tabulation engine retries the whole transaction rather than using savepoints
    - Zero-count rows stay in the table but are left out of snapshots
"""

import logging
from collections import defaultdict

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from accentvote.core.domain_types import (
    CategoryId, DistributionEntry, RegionId, RegionScope, Scope,
)
from accentvote.core.percentages import apply_delta, renormalize, should_create_row
from accentvote.core.repository_protocols import Clock
from accentvote.models.national_aggregate import NationalAggregate
from accentvote.models.region_aggregate import RegionAggregate

logger = logging.getLogger(__name__)

AggregateRow = NationalAggregate | RegionAggregate


class AggregateConflict(Exception):
    """Another writer inserted the same aggregate row first. Retry the transaction."""

    def __init__(self, scope: Scope, category_id: int):
        super().__init__(f"Aggregate row race on {scope} category {category_id}")
        self.scope = scope
        self.category_id = category_id


def _model_for(scope: Scope) -> type[AggregateRow]:
    return RegionAggregate if isinstance(scope, RegionScope) else NationalAggregate


def _scope_query(scope: Scope):
    model = _model_for(scope)
    query = select(model).where(model.item_id == scope.item_id)
    if isinstance(scope, RegionScope):
        query = query.where(model.region_id == scope.region_id)
    return query.order_by(model.category_id)


def _entries(rows: list[AggregateRow]) -> list[DistributionEntry]:
    entries = [
        DistributionEntry(
            category_id=CategoryId(row.category_id),
            count=row.vote_count,
            percentage=row.percentage,
        )
        for row in rows
        if row.vote_count > 0
    ]
    entries.sort(key=lambda e: (-e.count, e.category_id))
    return entries


class AggregateStore:
    """Read and write aggregate rows for national and region scopes."""

    def __init__(self, clock: Clock):
        self._clock = clock

    async def _lock_rows(self, db: AsyncSession, scope: Scope) -> list[AggregateRow]:
        result = await db.execute(_scope_query(scope).with_for_update())
        return list(result.scalars().all())

    async def apply_delta(
        self, db: AsyncSession, scope: Scope, category_id: int, delta: int,
    ) -> None:
        """Add a signed delta to one category's count in scope."""
        rows = await self._lock_rows(db, scope)
        row = next((r for r in rows if r.category_id == category_id), None)

        if row is None:
            if not should_create_row(delta):
                logger.warning(
                    "Negative delta on missing aggregate row ignored",
                    extra={"item_id": scope.item_id, "category_id": category_id},
                )
                return
            model = _model_for(scope)
            fields = {"item_id": scope.item_id, "category_id": category_id}
            if isinstance(scope, RegionScope):
                fields["region_id"] = scope.region_id
            db.add(model(
                **fields, vote_count=delta, total_votes=0, percentage=0.0,
                updated_at=self._clock.now(),
            ))
            try:
                await db.flush()
            except IntegrityError as e:
                raise AggregateConflict(scope, category_id) from e
            return

        row.vote_count = apply_delta(row.vote_count, delta)
        row.updated_at = self._clock.now()

    async def renormalize(
        self, db: AsyncSession, scope: Scope,
    ) -> list[DistributionEntry]:
        """Recompute total_votes and percentage on every row of scope."""
        rows = await self._lock_rows(db, scope)
        total, percentages = renormalize({row.category_id: row.vote_count for row in rows})
        now = self._clock.now()
        for row in rows:
            row.total_votes = total
            row.percentage = percentages[row.category_id]
            row.updated_at = now
        await db.flush()
        return _entries(rows)

    async def upsert_and_renormalize(
        self, db: AsyncSession, scope: Scope, category_id: int, delta: int,
    ) -> list[DistributionEntry]:
        await self.apply_delta(db, scope, category_id, delta)
        return await self.renormalize(db, scope)

    async def snapshot(
        self, db: AsyncSession, scope: Scope,
    ) -> list[DistributionEntry]:
        """Stored distribution of scope, highest count first. No locks taken."""
        result = await db.execute(_scope_query(scope))
        return _entries(list(result.scalars().all()))

    async def scope_total(self, db: AsyncSession, scope: Scope) -> int:
        model = _model_for(scope)
        query = select(func.coalesce(func.sum(model.vote_count), 0)).where(
            model.item_id == scope.item_id,
        )
        if isinstance(scope, RegionScope):
            query = query.where(model.region_id == scope.region_id)
        result = await db.execute(query)
        return int(result.scalar_one())

    async def region_counts(
        self, db: AsyncSession, item_id: int,
    ) -> dict[RegionId, dict[CategoryId, int]]:
        """region -> category -> count for every region with votes on item_id."""
        result = await db.execute(
            select(
                RegionAggregate.region_id,
                RegionAggregate.category_id,
                RegionAggregate.vote_count,
            )
            .where(RegionAggregate.item_id == item_id)
            .where(RegionAggregate.vote_count > 0)
            .order_by(RegionAggregate.region_id, RegionAggregate.category_id)
        )
        counts: dict[RegionId, dict[CategoryId, int]] = defaultdict(dict)
        for region_id, category_id, count in result.all():
            counts[RegionId(region_id)][CategoryId(category_id)] = count
        return dict(counts)

    async def region_snapshots(
        self, db: AsyncSession, item_id: int,
    ) -> dict[RegionId, list[DistributionEntry]]:
        """Stored distribution of every region of item_id, keyed in region order."""
        result = await db.execute(
            select(RegionAggregate)
            .where(RegionAggregate.item_id == item_id)
            .order_by(RegionAggregate.region_id, RegionAggregate.category_id)
        )
        grouped: dict[RegionId, list[AggregateRow]] = defaultdict(list)
        for row in result.scalars().all():
            grouped[RegionId(row.region_id)].append(row)
        snapshots = {region: _entries(rows) for region, rows in grouped.items()}
        return {region: entries for region, entries in snapshots.items() if entries}
