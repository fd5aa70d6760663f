"""Analytics Routes — public read-only views of an item's distribution.

Invariants:
    - No voter key required; nothing here identifies individual voters
    - Every response is built from DistributionReader results
"""

from fastapi import APIRouter, Depends, Path

from accentvote.api.dependencies import get_reader
from accentvote.schemas.vote import (
    AgeGroupShareResponse, ClusterReportResponse, GroupTrendResponse,
    ItemDistributionResponse, RegionLeaderResponse, RegionalTrendsResponse,
)
from accentvote.services.distribution_reader import DistributionReader

router = APIRouter(prefix="/api/v1/items", tags=["analytics"])


@router.get("/{item_id}/distribution", response_model=ItemDistributionResponse)
async def get_distribution(
    item_id: int = Path(ge=1),
    reader: DistributionReader = Depends(get_reader),
):
    return ItemDistributionResponse.model_validate(
        await reader.get_distribution(item_id),
    )


@router.get("/{item_id}/clusters", response_model=ClusterReportResponse)
async def get_clusters(
    item_id: int = Path(ge=1),
    reader: DistributionReader = Depends(get_reader),
):
    """Dialect clusters and sharp boundaries between adjacent regions."""
    return ClusterReportResponse.model_validate(await reader.get_clusters(item_id))


@router.get("/{item_id}/regional-trends", response_model=RegionalTrendsResponse)
async def get_regional_trends(
    item_id: int = Path(ge=1),
    reader: DistributionReader = Depends(get_reader),
):
    groups = await reader.get_regional_trends(item_id)
    leaders = await reader.get_top_categories(item_id)
    return RegionalTrendsResponse(
        item_id=item_id,
        groups=[GroupTrendResponse.model_validate(g) for g in groups],
        regions=[RegionLeaderResponse.model_validate(r) for r in leaders],
    )


@router.get("/{item_id}/age-breakdown", response_model=list[AgeGroupShareResponse])
async def get_age_breakdown(
    item_id: int = Path(ge=1),
    reader: DistributionReader = Depends(get_reader),
):
    shares = await reader.get_age_breakdown(item_id)
    return [AgeGroupShareResponse.model_validate(s) for s in shares]
