"""initial schema

Revision ID: 5b1e0c7d2a94
Revises:
Create Date: 2026-10-02 09:41:12.204311

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b1e0c7d2a94'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "subscriptions",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("owner", sa.Text, nullable=False),
        sa.Column("destination", sa.Text, nullable=False),
        sa.Column("query_text", sa.Text, server_default=""),
        sa.Column("filters_json", sa.Text, server_default="{}"),
        sa.Column("search_url", sa.Text, server_default=""),
        sa.Column("price_min", sa.Float, nullable=True),
        sa.Column("price_max", sa.Float, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("last_checked_at", sa.DateTime, nullable=True),
        sa.Column("active", sa.Boolean, server_default="1"),
    )
    op.create_index("ix_subscriptions_owner", "subscriptions", ["owner"])
    op.create_index("ix_subscriptions_last_checked_at", "subscriptions", ["last_checked_at"])
    op.create_index("ix_subscriptions_active", "subscriptions", ["active"])

    op.create_table(
        "listings",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("provider_id", sa.Text, nullable=False),
        sa.Column("title", sa.Text, server_default=""),
        sa.Column("price", sa.Float, server_default="0"),
        sa.Column("currency", sa.Text, server_default="EUR"),
        sa.Column("url", sa.Text, server_default=""),
        sa.Column("image_url", sa.Text, nullable=True),
        sa.Column("size", sa.Text, nullable=True),
        sa.Column("brand", sa.Text, nullable=True),
        sa.Column("condition", sa.Text, nullable=True),
        sa.Column("seller", sa.Text, nullable=True),
        sa.Column("location", sa.Text, nullable=True),
        sa.Column("first_seen_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_listings_provider_id", "listings", ["provider_id"], unique=True)

    op.create_table(
        "notification_records",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("subscription_id", sa.Integer, sa.ForeignKey("subscriptions.id"), nullable=False),
        sa.Column("listing_id", sa.Integer, sa.ForeignKey("listings.id"), nullable=False),
        sa.Column("notified_at", sa.DateTime, nullable=False),
        sa.UniqueConstraint("subscription_id", "listing_id", name="uq_notification_pair"),
    )
    op.create_index("ix_notification_records_subscription_id", "notification_records", ["subscription_id"])


def downgrade() -> None:
    op.drop_table("notification_records")
    op.drop_table("listings")
    op.drop_table("subscriptions")
