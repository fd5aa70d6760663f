"""Cluster Analysis — pure geo-analytics over per-region category distributions.

Invariants:
    - Every function is pure: inputs are snapshots, nothing is mutated
    - similarity(v, v) == 1 for any non-zero v; similarity(v, zero) == 0
    - build_clusters is greedy and order-dependent: region order comes from the
      RegionCatalog and is part of the algorithm's input
    - A region "has data" when at least one of its counts is positive

Design Decisions:
    - Cosine similarity over the union of categories: missing keys count as 0
    - Seeds that attract no members are dropped (a lone region is not a cluster)
    - Boundary sort is stable, so equal differences keep adjacency-table order
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from accentvote.core.domain_types import CategoryId, DistributionEntry, RegionId
from accentvote.core.percentages import renormalize, share
from accentvote.core.region_catalog import RegionCatalog


DEFAULT_CLUSTER_THRESHOLD: float = 0.7
DEFAULT_BOUNDARY_THRESHOLD: float = 0.5
DEFAULT_BOUNDARY_LIMIT: int = 10

Distribution = Mapping[CategoryId, int]


@dataclass(frozen=True)
class ClusterMember:
    region_id: RegionId
    similarity: float


@dataclass(frozen=True)
class Cluster:
    name: str
    seed_region_id: RegionId
    dominant_category_id: CategoryId
    members: list[ClusterMember] = field(default_factory=list)


@dataclass(frozen=True)
class Boundary:
    region_a: RegionId
    region_b: RegionId
    difference: float


@dataclass(frozen=True)
class ClusterReport:
    clusters: list[Cluster]
    boundaries: list[Boundary]


@dataclass(frozen=True)
class GroupTrend:
    """Aggregated distribution for one broader grouping of regions."""
    group_label: str
    total_votes: int
    dominant_category_id: CategoryId | None
    distribution: list[DistributionEntry]
    region_ids: list[RegionId]


@dataclass(frozen=True)
class RegionLeader:
    """Leading category of one region."""
    region_id: RegionId
    top_category_id: CategoryId | None
    count: int
    percentage: float
    total_votes: int


def has_data(dist: Distribution | None) -> bool:
    return bool(dist) and any(count > 0 for count in dist.values())


def similarity(a: Distribution, b: Distribution) -> float:
    """Cosine similarity between two category -> count vectors."""
    keys = set(a) | set(b)
    dot = norm_a = norm_b = 0.0
    for key in keys:
        va = a.get(key, 0)
        vb = b.get(key, 0)
        dot += va * vb
        norm_a += va * va
        norm_b += vb * vb
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


def dominant_category(dist: Distribution) -> CategoryId | None:
    """Category with the highest count; first seen wins ties."""
    best: CategoryId | None = None
    best_count = 0
    for category_id, count in dist.items():
        if count > best_count:
            best, best_count = category_id, count
    return best


def build_clusters(
    region_distributions: Mapping[RegionId, Distribution],
    catalog: RegionCatalog,
    threshold: float = DEFAULT_CLUSTER_THRESHOLD,
) -> list[Cluster]:
    """Greedy single-pass clustering in catalog order."""
    ordered = [
        (region, region_distributions.get(region.id))
        for region in catalog.regions
    ]
    processed: set[RegionId] = set()
    clusters: list[Cluster] = []

    for seed, seed_dist in ordered:
        if seed.id in processed or not has_data(seed_dist):
            continue
        processed.add(seed.id)

        members: list[ClusterMember] = []
        for other, other_dist in ordered:
            if other.id in processed or not has_data(other_dist):
                continue
            score = similarity(seed_dist, other_dist)
            if score > threshold:
                members.append(ClusterMember(other.id, score))
                processed.add(other.id)

        if members:
            clusters.append(Cluster(
                name=f"{seed.group_label} cluster",
                seed_region_id=seed.id,
                dominant_category_id=dominant_category(seed_dist),
                members=members,
            ))
    return clusters


def detect_boundaries(
    edges: Iterable[tuple[RegionId, RegionId]],
    region_distributions: Mapping[RegionId, Distribution],
    threshold: float = DEFAULT_BOUNDARY_THRESHOLD,
    limit: int = DEFAULT_BOUNDARY_LIMIT,
) -> list[Boundary]:
    """Adjacent pairs whose distributions diverge by more than threshold."""
    boundaries: list[Boundary] = []
    for a, b in edges:
        dist_a = region_distributions.get(a)
        dist_b = region_distributions.get(b)
        if not has_data(dist_a) or not has_data(dist_b):
            continue
        difference = 1 - similarity(dist_a, dist_b)
        if difference > threshold:
            boundaries.append(Boundary(a, b, difference))
    boundaries.sort(key=lambda boundary: boundary.difference, reverse=True)
    return boundaries[:limit]


def analyze_regions(
    region_distributions: Mapping[RegionId, Distribution],
    catalog: RegionCatalog,
    cluster_threshold: float = DEFAULT_CLUSTER_THRESHOLD,
    boundary_threshold: float = DEFAULT_BOUNDARY_THRESHOLD,
    boundary_limit: int = DEFAULT_BOUNDARY_LIMIT,
) -> ClusterReport:
    return ClusterReport(
        clusters=build_clusters(region_distributions, catalog, cluster_threshold),
        boundaries=detect_boundaries(
            catalog.edges, region_distributions, boundary_threshold, boundary_limit,
        ),
    )


def summarize_groups(
    region_distributions: Mapping[RegionId, Distribution],
    catalog: RegionCatalog,
) -> list[GroupTrend]:
    """Merge region distributions by broader grouping. Groups without data are omitted."""
    trends: list[GroupTrend] = []
    for label in catalog.group_labels:
        merged: dict[CategoryId, int] = {}
        with_data: list[RegionId] = []
        for region in catalog.by_group(label):
            dist = region_distributions.get(region.id)
            if not has_data(dist):
                continue
            with_data.append(region.id)
            for category_id, count in dist.items():
                merged[category_id] = merged.get(category_id, 0) + count
        if not with_data:
            continue
        total, percentages = renormalize(merged)
        entries = sorted(
            (DistributionEntry(c, n, percentages[c]) for c, n in merged.items()),
            key=lambda e: (-e.count, e.category_id),
        )
        trends.append(GroupTrend(
            group_label=label,
            total_votes=total,
            dominant_category_id=entries[0].category_id if total else None,
            distribution=entries,
            region_ids=with_data,
        ))
    return trends


def top_category_by_region(
    region_distributions: Mapping[RegionId, Distribution],
    catalog: RegionCatalog,
) -> list[RegionLeader]:
    """Leading category for every region in catalog order (empty regions included)."""
    leaders: list[RegionLeader] = []
    for region in catalog.regions:
        dist = region_distributions.get(region.id) or {}
        total = sum(dist.values())
        top = dominant_category(dist)
        count = dist.get(top, 0) if top is not None else 0
        leaders.append(RegionLeader(
            region_id=region.id,
            top_category_id=top,
            count=count,
            percentage=share(count, total),
            total_votes=total,
        ))
    return leaders
