"""Distribution Reader — distributions, clusters, trends, demographics, drift checks.

Tests cover:
    - Region share of the national total
    - Clusters and boundaries computed from committed region aggregates
    - Regional trends by broader grouping
    - Age breakdown from the ledger
    - check_consistency reports drift between aggregates and ledger
"""

import math

import pytest
from sqlalchemy import update

from accentvote.models.national_aggregate import NationalAggregate
from accentvote.services.distribution_reader import DistributionReader

TOKYO, KANAGAWA, OSAKA, HYOGO = "13", "14", "27", "28"


async def _cast(engine, region, category, n, prefix):
    for i in range(n):
        await engine.submit_vote(1, category, f"{prefix}-{region}-{category}-{i}", region_id=region)


async def test_empty_item_has_empty_distribution(reader):
    distribution = await reader.get_distribution(1)
    assert distribution.total_votes == 0
    assert distribution.national == []
    assert distribution.by_region == []


async def test_region_share_of_national_total(engine, reader):
    await _cast(engine, TOKYO, 10, 3, "v")
    await _cast(engine, OSAKA, 20, 1, "v")
    await engine.submit_vote(1, 10, "no-region")

    distribution = await reader.get_distribution(1)
    assert distribution.total_votes == 5
    shares = {r.region_id: (r.count, r.percentage) for r in distribution.by_region}
    assert shares[TOKYO] == (3, pytest.approx(60.0))
    assert shares[OSAKA] == (1, pytest.approx(20.0))


async def test_clusters_from_committed_votes(engine, reader):
    await _cast(engine, TOKYO, 10, 5, "v")
    await _cast(engine, TOKYO, 20, 5, "v")
    await _cast(engine, KANAGAWA, 10, 9, "v")
    await _cast(engine, KANAGAWA, 20, 1, "v")

    report = await reader.get_clusters(1)
    assert len(report.clusters) == 1
    cluster = report.clusters[0]
    assert cluster.seed_region_id == TOKYO
    assert cluster.name == "Kanto cluster"
    assert cluster.members[0].region_id == KANAGAWA
    assert cluster.members[0].similarity == pytest.approx(50 / math.sqrt(4100))
    assert report.boundaries == []


async def test_strict_threshold_prevents_cluster(engine, db_manager):
    await _cast(engine, TOKYO, 10, 5, "v")
    await _cast(engine, TOKYO, 20, 5, "v")
    await _cast(engine, KANAGAWA, 10, 9, "v")
    await _cast(engine, KANAGAWA, 20, 1, "v")
    strict = DistributionReader(
        db_manager, engine.aggregates, engine.ledger, cluster_threshold=0.9,
    )
    assert (await strict.get_clusters(1)).clusters == []


async def test_boundary_between_opposite_neighbours(engine, reader):
    await _cast(engine, OSAKA, 10, 4, "v")
    await _cast(engine, HYOGO, 20, 4, "v")
    report = await reader.get_clusters(1)
    assert [(b.region_a, b.region_b) for b in report.boundaries] == [(OSAKA, HYOGO)]
    assert report.boundaries[0].difference == pytest.approx(1.0)


async def test_clusters_are_deterministic(engine, reader):
    await _cast(engine, TOKYO, 10, 2, "v")
    await _cast(engine, OSAKA, 10, 3, "v")
    await _cast(engine, HYOGO, 20, 3, "v")
    assert await reader.get_clusters(1) == await reader.get_clusters(1)


async def test_regional_trends_by_group(engine, reader):
    await _cast(engine, TOKYO, 10, 2, "v")
    await _cast(engine, KANAGAWA, 20, 1, "v")
    await _cast(engine, OSAKA, 20, 2, "v")

    trends = await reader.get_regional_trends(1)
    assert [(t.group_label, t.total_votes, t.dominant_category_id) for t in trends] == [
        ("Kanto", 3, 10), ("Kinki", 2, 20),
    ]
    leaders = await reader.get_top_categories(1)
    assert len(leaders) == 47
    assert next(r for r in leaders if r.region_id == OSAKA).top_category_id == 20


async def test_age_breakdown(engine, reader):
    await engine.submit_vote(1, 10, "a", age_group="20s")
    await engine.submit_vote(1, 10, "b", age_group="20s")
    await engine.submit_vote(1, 20, "c", age_group="60s")
    await engine.submit_vote(1, 20, "d")

    breakdown = await reader.get_age_breakdown(1)
    assert [(s.age_group.value, s.count) for s in breakdown] == [("20s", 2), ("60s", 1)]
    assert breakdown[0].percentage == pytest.approx(200 / 3)


async def test_consistency_clean_after_normal_use(engine, reader):
    await _cast(engine, TOKYO, 10, 2, "v")
    await engine.submit_vote(1, 20, "x")
    assert await reader.check_consistency(1) == []


async def test_consistency_reports_drift(engine, reader, db_manager):
    await _cast(engine, TOKYO, 10, 2, "v")
    async with db_manager.transaction() as db:
        await db.execute(update(NationalAggregate).values(vote_count=5))

    issues = await reader.check_consistency(1)
    assert len(issues) == 1
    assert issues[0].scope == "national"
    assert (issues[0].aggregate_total, issues[0].ledger_total) == (5, 2)
