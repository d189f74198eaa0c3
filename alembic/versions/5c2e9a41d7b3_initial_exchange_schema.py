"""Initial exchange schema: profiles, offers, requests, badges, quota resets

Revision ID: 5c2e9a41d7b3
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c2e9a41d7b3"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "offers",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "owner_id", sa.String(36),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_offers_owner", "offers", ["owner_id"])

    op.create_table(
        "requests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "offer_id", sa.String(36),
            sa.ForeignKey("offers.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "requester_profile_id", sa.String(36),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_requests_requester_status_created",
        "requests",
        ["requester_profile_id", "status", "created_at"],
    )
    op.create_index("ix_requests_offer", "requests", ["offer_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "profile_id", sa.String(36),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("data", postgresql.JSONB(), nullable=True),
        sa.Column("read", sa.Boolean(), server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "ix_notifications_profile_time", "notifications", ["profile_id", "created_at"],
    )

    op.create_table(
        "badges",
        sa.Column("code", sa.String(30), primary_key=True),
        sa.Column("label", sa.String(100), nullable=False),
        sa.Column("track", sa.String(20), nullable=False),
        sa.Column("tier", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("how_to_earn", sa.String(200), nullable=True),
        sa.Column("icon", sa.String(200), nullable=True),
        sa.UniqueConstraint("track", "tier", name="uq_badges_track_tier"),
    )

    op.create_table(
        "profile_badges",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "profile_id", sa.String(36),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "badge_code", sa.String(30),
            sa.ForeignKey("badges.code", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("earned_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "profile_id", "badge_code", name="uq_profile_badges_profile_code",
        ),
    )

    op.create_table(
        "quota_resets",
        sa.Column(
            "profile_id", sa.String(36),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("reset_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reset_by", sa.String(36), nullable=False),
    )

    op.create_table(
        "admin_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.String(36), nullable=False),
        sa.Column("action_type", sa.String(50), nullable=False),
        sa.Column("target_table", sa.String(50), nullable=False),
        sa.Column("target_id", sa.String(100), nullable=True),
        sa.Column("before_snapshot", postgresql.JSONB(), nullable=True),
        sa.Column("after_snapshot", postgresql.JSONB(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_admin_log_actor_time", "admin_log", ["actor_id", "timestamp"])
    op.create_index(
        "ix_admin_log_target", "admin_log", ["target_table", "target_id", "timestamp"],
    )

    op.create_table(
        "admin_rate_limit_events",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("admin_id", sa.String(64), nullable=False),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_admin_rate_limit_admin_ts",
        "admin_rate_limit_events",
        ["admin_id", sa.text("timestamp DESC")],
    )
    op.create_index("ix_admin_rate_limit_ts", "admin_rate_limit_events", ["timestamp"])


def downgrade() -> None:
    op.drop_index("ix_admin_rate_limit_ts", table_name="admin_rate_limit_events")
    op.drop_index("ix_admin_rate_limit_admin_ts", table_name="admin_rate_limit_events")
    op.drop_table("admin_rate_limit_events")
    op.drop_index("ix_admin_log_target", table_name="admin_log")
    op.drop_index("ix_admin_log_actor_time", table_name="admin_log")
    op.drop_table("admin_log")
    op.drop_table("quota_resets")
    op.drop_table("profile_badges")
    op.drop_table("badges")
    op.drop_index("ix_notifications_profile_time", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_requests_offer", table_name="requests")
    op.drop_index("ix_requests_requester_status_created", table_name="requests")
    op.drop_table("requests")
    op.drop_index("ix_offers_owner", table_name="offers")
    op.drop_table("offers")
    op.drop_table("profiles")
