"""
harmonic.database.models — SQLAlchemy 2.0 Data Models
======================================================

Tables:
- profiles          — Members (id matches the auth provider's user id)
- offers            — Goods, services or time a member puts up for giving
- requests          — Asks to receive an offer; the quota's counted log
- notifications     — Per-member inbox rows (request_new, request_accepted…)
- badges            — Badge catalogue (seeded from the engine's catalogue)
- profile_badges    — Earned badges, one row per (profile, badge), with earned_at
- quota_resets      — Admin-set start of a member's ask window
- admin_log         — Append-only audit trail
- admin_rate_limit_events — Durable admin mutation throttle state
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Harmonic ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class RequestStatus(enum.StrEnum):
    """Lifecycle of an ask: pending → accepted → fulfilled, or declined."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    FULFILLED = "fulfilled"
    DECLINED = "declined"


class OfferStatus(enum.StrEnum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class ProfileRole(enum.StrEnum):
    MEMBER = "member"
    MODERATOR = "moderator"
    ADMIN = "admin"


class AdminActionType(enum.StrEnum):
    """Categories of admin mutations recorded in admin_log."""
    QUOTA_RESET = "QUOTA_RESET"


# ---------------------------------------------------------------------------
# Profiles: one row per member
# ---------------------------------------------------------------------------
class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ProfileRole.MEMBER.value
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    offers: Mapped[list[Offer]] = relationship(
        back_populates="owner", cascade="all, delete-orphan"
    )
    badges: Mapped[list[ProfileBadge]] = relationship(
        back_populates="profile", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Profile id={self.id} name={self.display_name!r}>"


# ---------------------------------------------------------------------------
# Offers: things members give away
# ---------------------------------------------------------------------------
class Offer(Base):
    __tablename__ = "offers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OfferStatus.ACTIVE.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    owner: Mapped[Profile] = relationship(back_populates="offers")
    requests: Mapped[list[ExchangeRequest]] = relationship(
        back_populates="offer", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_offers_owner", "owner_id"),
    )

    def __repr__(self) -> str:
        return f"<Offer id={self.id} title={self.title!r} status={self.status}>"


# ---------------------------------------------------------------------------
# Requests: the append-only ask log counted by the quota
# ---------------------------------------------------------------------------
class ExchangeRequest(Base):
    __tablename__ = "requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    offer_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("offers.id", ondelete="CASCADE"), nullable=False
    )
    requester_profile_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RequestStatus.PENDING.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    offer: Mapped[Offer] = relationship(back_populates="requests")

    __table_args__ = (
        # Serves the quota count: requester + status + created_at range
        Index(
            "ix_requests_requester_status_created",
            "requester_profile_id", "status", "created_at",
        ),
        Index("ix_requests_offer", "offer_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<ExchangeRequest id={self.id} requester={self.requester_profile_id} "
            f"status={self.status}>"
        )


# ---------------------------------------------------------------------------
# Notifications: member inbox
# ---------------------------------------------------------------------------
class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    profile_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    data: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_notifications_profile_time", "profile_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Notification id={self.id} to={self.profile_id} type={self.type}>"


# ---------------------------------------------------------------------------
# Badges: catalogue rows (seeded) and earned awards
# ---------------------------------------------------------------------------
class Badge(Base):
    __tablename__ = "badges"

    code: Mapped[str] = mapped_column(String(30), primary_key=True)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    track: Mapped[str] = mapped_column(String(20), nullable=False)
    tier: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    how_to_earn: Mapped[str | None] = mapped_column(String(200), nullable=True)
    icon: Mapped[str | None] = mapped_column(String(200), nullable=True)

    __table_args__ = (
        UniqueConstraint("track", "tier", name="uq_badges_track_tier"),
    )

    def __repr__(self) -> str:
        return f"<Badge code={self.code} track={self.track} tier={self.tier}>"


class ProfileBadge(Base):
    """A badge a member has earned.  Written once, when first crossed."""
    __tablename__ = "profile_badges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    badge_code: Mapped[str] = mapped_column(
        String(30), ForeignKey("badges.code", ondelete="CASCADE"), nullable=False
    )
    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    profile: Mapped[Profile] = relationship(back_populates="badges")
    badge: Mapped[Badge] = relationship()

    __table_args__ = (
        UniqueConstraint("profile_id", "badge_code", name="uq_profile_badges_profile_code"),
    )

    def __repr__(self) -> str:
        return f"<ProfileBadge profile={self.profile_id} badge={self.badge_code}>"


# ---------------------------------------------------------------------------
# QuotaReset: admin override of a member's window start
# ---------------------------------------------------------------------------
class QuotaReset(Base):
    __tablename__ = "quota_resets"

    profile_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    reset_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reset_by: Mapped[str] = mapped_column(String(36), nullable=False)

    def __repr__(self) -> str:
        return f"<QuotaReset profile={self.profile_id} at={self.reset_at}>"


# ---------------------------------------------------------------------------
# AdminLog: append-only audit trail
# ---------------------------------------------------------------------------
class AdminLog(Base):
    __tablename__ = "admin_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_table: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    before_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    after_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_admin_log_actor_time", "actor_id", "timestamp"),
        Index("ix_admin_log_target", "target_table", "target_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AdminLog id={self.id} actor={self.actor_id} action={self.action_type}>"


# ---------------------------------------------------------------------------
# AdminRateLimitEvent: durable mutation events for admin throttling
# ---------------------------------------------------------------------------
class AdminRateLimitEvent(Base):
    __tablename__ = "admin_rate_limit_events"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    admin_id: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_admin_rate_limit_admin_ts", "admin_id", timestamp.desc()),
        Index("ix_admin_rate_limit_ts", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AdminRateLimitEvent admin={self.admin_id!r} ts={self.timestamp}>"
