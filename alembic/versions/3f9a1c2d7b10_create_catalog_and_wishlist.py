"""create catalog and wishlist tables

Revision ID: 3f9a1c2d7b10
Revises:
Create Date: 2026-10-19 12:00:00

"""
from alembic import op
import sqlalchemy as sa
from pgvector.sqlalchemy import Vector

from swiss_travel.core.config import settings


# revision identifiers, used by Alembic.
revision = '3f9a1c2d7b10'
down_revision = None
branch_labels = None
depends_on = None

# All three embedding columns share the embedding provider's dimension
DIM = settings.EMBEDDING_DIM


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        "destinations",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("region", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("description_embedding", Vector(DIM), nullable=True),
    )
    op.create_table(
        "hotels",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column(
            "destination_id",
            sa.BigInteger(),
            sa.ForeignKey("destinations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price_per_night", sa.Numeric(10, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("description_embedding", Vector(DIM), nullable=True),
    )
    op.create_index("ix_hotels_destination_id", "hotels", ["destination_id"])
    op.create_table(
        "activities",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column(
            "destination_id",
            sa.BigInteger(),
            sa.ForeignKey("destinations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("season", sa.String(120), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("description_embedding", Vector(DIM), nullable=True),
    )
    op.create_index("ix_activities_destination_id", "activities", ["destination_id"])
    op.create_table(
        "wishlist_items",
        sa.Column("id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("item_type", sa.String(20), nullable=False),
        sa.Column("item_id", sa.BigInteger(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("wishlist_items")
    op.drop_index("ix_activities_destination_id", table_name="activities")
    op.drop_table("activities")
    op.drop_index("ix_hotels_destination_id", table_name="hotels")
    op.drop_table("hotels")
    op.drop_table("destinations")
