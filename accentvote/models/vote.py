"""Vote ORM — one row per (voter, item) in the vote ledger.

Invariants:
    - (voter_id, item_id) is unique (uq_votes_voter_item): the DB enforces one vote per voter per item
    - category_id is always the RESOLVED category, never an option handle
    - Rows are only inserted/deleted inside the tabulation transaction

Design Decisions:
    - No foreign key to items: the ledger accepts any catalog implementation
    - voter_id stored as the opaque caller key; it is never logged
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from accentvote.db.base import Base


class Vote(Base):
    """A single accent vote."""
    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("voter_id", "item_id", name="uq_votes_voter_item"),
        Index("ix_votes_item_region", "item_id", "region_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(Integer, nullable=False)
    category_id: Mapped[int] = mapped_column(Integer, nullable=False)
    voter_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    region_id: Mapped[str | None] = mapped_column(String(2), nullable=True)
    age_group: Mapped[str | None] = mapped_column(String(8), nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
