"""Item ORM — votable words/poll subjects and their selectable category options.

Invariants:
    - A CategoryOption links one item to one category; (item_id, category_id) unique
    - The option id is the "item-specific category-option handle" clients may send

Design Decisions:
    - Read-only from the tabulation engine's point of view (moderation is external)
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accentvote.db.base import Base


class Item(Base):
    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    headword: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="approved")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    options: Mapped[list["CategoryOption"]] = relationship(
        "CategoryOption", back_populates="item",
        cascade="all, delete-orphan", lazy="selectin",
    )


class CategoryOption(Base):
    __tablename__ = "category_options"
    __table_args__ = (
        UniqueConstraint("item_id", "category_id", name="uq_option_item_category"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False,
    )
    category_id: Mapped[int] = mapped_column(Integer, nullable=False)

    item: Mapped[Item] = relationship("Item", back_populates="options")
