"""Initial schema — votes, national/region aggregates, items, category options.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("headword", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="approved"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "category_options",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("item_id", sa.Integer, sa.ForeignKey("items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category_id", sa.Integer, nullable=False),
        sa.UniqueConstraint("item_id", "category_id", name="uq_option_item_category"),
    )

    op.create_table(
        "votes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("item_id", sa.Integer, nullable=False),
        sa.Column("category_id", sa.Integer, nullable=False),
        sa.Column("voter_id", sa.String(255), nullable=False),
        sa.Column("region_id", sa.String(2), nullable=True),
        sa.Column("age_group", sa.String(8), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("voter_id", "item_id", name="uq_votes_voter_item"),
    )
    op.create_index("ix_votes_voter_id", "votes", ["voter_id"])
    op.create_index("ix_votes_item_region", "votes", ["item_id", "region_id"])

    op.create_table(
        "national_aggregates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("item_id", sa.Integer, nullable=False),
        sa.Column("category_id", sa.Integer, nullable=False),
        sa.Column("vote_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_votes", sa.Integer, nullable=False, server_default="0"),
        sa.Column("percentage", sa.Float, nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("item_id", "category_id", name="uq_national_item_category"),
    )
    op.create_index("ix_national_aggregates_item_id", "national_aggregates", ["item_id"])

    op.create_table(
        "region_aggregates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("item_id", sa.Integer, nullable=False),
        sa.Column("region_id", sa.String(2), nullable=False),
        sa.Column("category_id", sa.Integer, nullable=False),
        sa.Column("vote_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_votes", sa.Integer, nullable=False, server_default="0"),
        sa.Column("percentage", sa.Float, nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            "item_id", "region_id", "category_id",
            name="uq_region_item_region_category",
        ),
    )
    op.create_index(
        "ix_region_aggregates_item_region", "region_aggregates", ["item_id", "region_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_region_aggregates_item_region", table_name="region_aggregates")
    op.drop_table("region_aggregates")
    op.drop_index("ix_national_aggregates_item_id", table_name="national_aggregates")
    op.drop_table("national_aggregates")
    op.drop_index("ix_votes_item_region", table_name="votes")
    op.drop_index("ix_votes_voter_id", table_name="votes")
    op.drop_table("votes")
    op.drop_table("category_options")
    op.drop_table("items")
