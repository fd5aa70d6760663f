"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ItemId, CategoryId, RegionId, VoteId, VoterId wrap primitives — never mix them up in signatures
    - ResolvedCategory is the ONLY category form the tabulation internals accept
    - A Scope is either national (item only) or regional (item + region)
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - Frozen dataclasses for value objects: hashable, usable as dict keys and lock keys
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ItemId = NewType("ItemId", int)
CategoryId = NewType("CategoryId", int)
CategoryOptionId = NewType("CategoryOptionId", int)
VoteId = NewType("VoteId", int)
RegionId = NewType("RegionId", str)          # JIS prefecture code, "01".."47"
VoterId = NewType("VoterId", str)            # opaque key from the caller


# ─── Enums ───────────────────────────────────────────────────────

class AgeGroup(str, Enum):
    """Self-reported age bracket attached to a vote."""
    TEENS = "10s"
    TWENTIES = "20s"
    THIRTIES = "30s"
    FORTIES = "40s"
    FIFTIES = "50s"
    SIXTIES = "60s"
    SEVENTIES_PLUS = "70s+"


class TabulationStage(str, Enum):
    """Stages of one submit/retract call, in order. Used for failure context."""
    VALIDATING = "validating"
    RATE_LIMIT_CHECK = "rate_limit_check"
    PERSISTING_VOTE = "persisting_vote"
    UPDATING_NATIONAL_AGGREGATE = "updating_national_aggregate"
    UPDATING_REGION_AGGREGATE = "updating_region_aggregate"
    RENORMALIZING_PERCENTAGES = "renormalizing_percentages"
    COMMITTED = "committed"
    ABORTED = "aborted"


class RateLimitAction(str, Enum):
    """Actions the rate limiter keys on."""
    VOTE = "vote"
    RETRACT = "retract"


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class ResolvedCategory:
    """Category id after two-phase resolution against an item."""
    item_id: ItemId
    category_id: CategoryId


@dataclass(frozen=True)
class NationalScope:
    """Percentages normalized over all votes for an item."""
    item_id: ItemId


@dataclass(frozen=True)
class RegionScope:
    """Percentages normalized over one region's votes for an item."""
    item_id: ItemId
    region_id: RegionId


Scope = NationalScope | RegionScope


@dataclass(frozen=True)
class ItemDefinition:
    """What the item catalog knows about a votable item."""
    item_id: ItemId
    category_ids: frozenset[CategoryId]
    # option handle -> underlying category id
    category_options: dict[CategoryOptionId, CategoryId] = field(default_factory=dict)


@dataclass(frozen=True)
class VoteRecord:
    """Read-only view of a ledger row, detached from the ORM session."""
    id: VoteId
    item_id: ItemId
    category_id: CategoryId
    voter_id: VoterId
    region_id: RegionId | None
    age_group: AgeGroup | None
    submitted_at: datetime


@dataclass(frozen=True)
class DistributionEntry:
    """One category's share inside a scope."""
    category_id: CategoryId
    count: int
    percentage: float


@dataclass(frozen=True)
class VoteReceipt:
    """Result of a committed submission."""
    vote_id: VoteId
    national: list[DistributionEntry]
    region: list[DistributionEntry] | None = None


@dataclass(frozen=True)
class RegionDistribution:
    """Per-region slice of an item's distribution."""
    region_id: RegionId
    count: int
    percentage: float       # share of the item's national total
    distribution: list[DistributionEntry]


@dataclass(frozen=True)
class ItemDistribution:
    item_id: ItemId
    total_votes: int
    national: list[DistributionEntry]
    by_region: list[RegionDistribution]


@dataclass(frozen=True)
class ConsistencyIssue:
    """Mismatch between an aggregate scope and the ledger."""
    scope: str                # "national" or a region id
    aggregate_total: int
    ledger_total: int


@dataclass(frozen=True)
class AgeGroupShare:
    """Votes from one age bracket on an item."""
    age_group: AgeGroup
    count: int
    percentage: float       # share of the item's votes that carry an age group
