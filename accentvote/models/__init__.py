"""ORM Models — SQLAlchemy declarative models for the vote ledger, aggregates and items.

Invariants:
    - All models inherit from Base (db/base.py)
    - Aggregate tables are derived data; the votes table is the source of truth

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all/autogenerate
"""

from accentvote.models.vote import Vote  # noqa: F401
from accentvote.models.national_aggregate import NationalAggregate  # noqa: F401
from accentvote.models.region_aggregate import RegionAggregate  # noqa: F401
from accentvote.models.item import Item, CategoryOption  # noqa: F401
