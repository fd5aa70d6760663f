"""NationalAggregate ORM — per (item, category) count with denormalized percentage.

Invariants:
    - (item_id, category_id) is unique
    - total_votes is identical on every row of an item (the scope sum)
    - vote_count never negative; rows are never deleted (zero rows stay)
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from accentvote.db.base import Base


class NationalAggregate(Base):
    __tablename__ = "national_aggregates"
    __table_args__ = (
        UniqueConstraint("item_id", "category_id", name="uq_national_item_category"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    category_id: Mapped[int] = mapped_column(Integer, nullable=False)
    vote_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    percentage: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
