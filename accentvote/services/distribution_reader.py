"""Distribution Reader — read-only analytics over committed aggregates.

Invariants:
    - Never writes: every method uses a read session, no locks taken
    - Results are computed from aggregate rows, not by rescanning the ledger
      (check_consistency is the one deliberate exception)
    - Unknown items yield empty results, not errors

Design Decisions:
    - Geometry and clustering live in core.cluster_analysis; this class only
      loads snapshots and hands them over
    - RegionDistribution.percentage is the region's share of the national total
"""

import logging

from accentvote.config import Settings
from accentvote.core.cluster_analysis import (
    DEFAULT_BOUNDARY_LIMIT, DEFAULT_BOUNDARY_THRESHOLD, DEFAULT_CLUSTER_THRESHOLD,
    ClusterReport, GroupTrend, RegionLeader, analyze_regions, summarize_groups,
    top_category_by_region,
)
from accentvote.core.domain_types import (
    AgeGroupShare, ConsistencyIssue, ItemDistribution, ItemId, NationalScope,
    RegionDistribution,
)
from accentvote.core.percentages import share
from accentvote.core.region_catalog import DEFAULT_REGION_CATALOG, RegionCatalog
from accentvote.infrastructure.database import DatabaseSessionManager
from accentvote.services.aggregate_store import AggregateStore
from accentvote.services.vote_ledger import VoteLedger

logger = logging.getLogger(__name__)


class DistributionReader:
    """Distribution, cluster and trend queries for one item."""

    def __init__(
        self,
        db_manager: DatabaseSessionManager,
        aggregates: AggregateStore,
        ledger: VoteLedger,
        region_catalog: RegionCatalog = DEFAULT_REGION_CATALOG,
        cluster_threshold: float = DEFAULT_CLUSTER_THRESHOLD,
        boundary_threshold: float = DEFAULT_BOUNDARY_THRESHOLD,
        boundary_limit: int = DEFAULT_BOUNDARY_LIMIT,
    ):
        self._db = db_manager
        self._aggregates = aggregates
        self._ledger = ledger
        self._regions = region_catalog
        self.cluster_threshold = cluster_threshold
        self.boundary_threshold = boundary_threshold
        self.boundary_limit = boundary_limit

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        db_manager: DatabaseSessionManager,
        aggregates: AggregateStore,
        ledger: VoteLedger,
        region_catalog: RegionCatalog = DEFAULT_REGION_CATALOG,
    ) -> "DistributionReader":
        return cls(
            db_manager, aggregates, ledger, region_catalog,
            cluster_threshold=settings.cluster_similarity_threshold,
            boundary_threshold=settings.boundary_difference_threshold,
            boundary_limit=settings.boundary_limit,
        )

    async def get_distribution(self, item_id: int) -> ItemDistribution:
        async with self._db.session() as db:
            national = await self._aggregates.snapshot(db, NationalScope(ItemId(item_id)))
            regions = await self._aggregates.region_snapshots(db, item_id)

        total = sum(entry.count for entry in national)
        by_region = []
        for region_id, entries in regions.items():
            count = sum(entry.count for entry in entries)
            by_region.append(RegionDistribution(
                region_id=region_id,
                count=count,
                percentage=share(count, total),
                distribution=entries,
            ))
        return ItemDistribution(
            item_id=ItemId(item_id),
            total_votes=total,
            national=national,
            by_region=by_region,
        )

    async def get_clusters(self, item_id: int) -> ClusterReport:
        counts = await self._region_counts(item_id)
        return analyze_regions(
            counts, self._regions,
            cluster_threshold=self.cluster_threshold,
            boundary_threshold=self.boundary_threshold,
            boundary_limit=self.boundary_limit,
        )

    async def get_regional_trends(self, item_id: int) -> list[GroupTrend]:
        return summarize_groups(await self._region_counts(item_id), self._regions)

    async def get_top_categories(self, item_id: int) -> list[RegionLeader]:
        return top_category_by_region(await self._region_counts(item_id), self._regions)

    async def get_age_breakdown(self, item_id: int) -> list[AgeGroupShare]:
        async with self._db.session() as db:
            counts = await self._ledger.count_by_age_group(db, item_id)
        total = sum(counts.values())
        return [
            AgeGroupShare(age_group=age, count=count, percentage=share(count, total))
            for age, count in counts.items()
        ]

    async def check_consistency(self, item_id: int) -> list[ConsistencyIssue]:
        """Compare aggregate totals with ledger counts. Empty list means consistent."""
        async with self._db.session() as db:
            national_total = await self._aggregates.scope_total(
                db, NationalScope(ItemId(item_id)),
            )
            ledger_total = await self._ledger.count_for_item(db, item_id)
            region_counts = await self._aggregates.region_counts(db, item_id)
            ledger_regions = await self._ledger.count_by_region(db, item_id)

        issues: list[ConsistencyIssue] = []
        if national_total != ledger_total:
            issues.append(ConsistencyIssue("national", national_total, ledger_total))
        for region_id in sorted(set(region_counts) | set(ledger_regions)):
            aggregate_total = sum(region_counts.get(region_id, {}).values())
            ledger_count = ledger_regions.get(region_id, 0)
            if aggregate_total != ledger_count:
                issues.append(ConsistencyIssue(region_id, aggregate_total, ledger_count))
        if issues:
            logger.warning(
                "Aggregate drift detected (%d scopes)", len(issues),
                extra={"item_id": item_id},
            )
        return issues

    async def _region_counts(self, item_id: int):
        async with self._db.session() as db:
            return await self._aggregates.region_counts(db, item_id)
