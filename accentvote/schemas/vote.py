"""Vote Schemas — Pydantic models for the vote and analytics endpoints.

Invariants:
    - VoteCreate.item_id / category_id are positive integers
    - VoteCreate.region_id is a two-digit prefecture code when present
    - Responses never expose the voter key

Design Decisions:
    - from_attributes=True: responses are built straight from core dataclasses
    - The voter key travels in a header, not in the body
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from accentvote.core.domain_types import AgeGroup


class VoteCreate(BaseModel):
    """Vote submission — category_id may be a category or a category-option id."""
    item_id: int = Field(ge=1)
    category_id: int = Field(ge=1)
    region_id: str | None = Field(None, pattern=r"^\d{2}$")
    age_group: AgeGroup | None = None

    @field_validator("region_id", mode="before")
    @classmethod
    def blank_region_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class DistributionEntryResponse(_FromAttributes):
    category_id: int
    count: int
    percentage: float


class VoteReceiptResponse(_FromAttributes):
    vote_id: int
    national: list[DistributionEntryResponse]
    region: list[DistributionEntryResponse] | None = None


class VoteResponse(_FromAttributes):
    """The caller's own vote on an item."""
    id: int
    item_id: int
    category_id: int
    region_id: str | None
    age_group: AgeGroup | None
    submitted_at: datetime


class VoterVoteResponse(BaseModel):
    """'Can I vote' answer for one item."""
    has_voted: bool
    vote: VoteResponse | None = None


class RegionDistributionResponse(_FromAttributes):
    region_id: str
    count: int
    percentage: float
    distribution: list[DistributionEntryResponse]


class ItemDistributionResponse(_FromAttributes):
    item_id: int
    total_votes: int
    national: list[DistributionEntryResponse]
    by_region: list[RegionDistributionResponse]


class ClusterMemberResponse(_FromAttributes):
    region_id: str
    similarity: float


class ClusterResponse(_FromAttributes):
    name: str
    seed_region_id: str
    dominant_category_id: int | None
    members: list[ClusterMemberResponse]


class BoundaryResponse(_FromAttributes):
    region_a: str
    region_b: str
    difference: float


class ClusterReportResponse(_FromAttributes):
    clusters: list[ClusterResponse]
    boundaries: list[BoundaryResponse]


class GroupTrendResponse(_FromAttributes):
    group_label: str
    total_votes: int
    dominant_category_id: int | None
    distribution: list[DistributionEntryResponse]
    region_ids: list[str]


class RegionLeaderResponse(_FromAttributes):
    region_id: str
    top_category_id: int | None
    count: int
    percentage: float
    total_votes: int


class RegionalTrendsResponse(BaseModel):
    item_id: int
    groups: list[GroupTrendResponse]
    regions: list[RegionLeaderResponse]


class AgeGroupShareResponse(_FromAttributes):
    age_group: AgeGroup
    count: int
    percentage: float
