"""RegionAggregate ORM — per (item, region, category) count with denormalized percentage.

Invariants:
    - (item_id, region_id, category_id) is unique
    - total_votes is identical on every row of an (item, region) scope
    - Same lifecycle as NationalAggregate: lazy insert, never deleted
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from accentvote.db.base import Base


class RegionAggregate(Base):
    __tablename__ = "region_aggregates"
    __table_args__ = (
        UniqueConstraint(
            "item_id", "region_id", "category_id",
            name="uq_region_item_region_category",
        ),
        Index("ix_region_aggregates_item_region", "item_id", "region_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(Integer, nullable=False)
    region_id: Mapped[str] = mapped_column(String(2), nullable=False)
    category_id: Mapped[int] = mapped_column(Integer, nullable=False)
    vote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    percentage: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
