"""
harmonic.services.badge_service — Lifetime Counts, Streaks & Badge Awards
==========================================================================

Reads fulfilled requests to build each member's give/receive counts and
streak, runs them through :mod:`harmonic.engine.badges`, and records a
``profile_badges`` row the first time a badge threshold is crossed so the
profile page can show ``earned_at`` without recomputing history.

- given    = fulfilled requests on offers the member owns
- received = fulfilled requests the member asked for
- streak   = consecutive UTC days, ending today, with a fulfilled request
             on either side
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime, timedelta

from sqlalchemy import Engine, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from harmonic.database.models import (
    Badge,
    ExchangeRequest,
    Offer,
    Profile,
    ProfileBadge,
    RequestStatus,
)
from harmonic.engine.badges import (
    BADGE_CATALOG,
    GIVE,
    RECEIVE,
    STREAK,
    STREAK_LOOKBACK_DAYS,
    count_streak,
    describe_requirement,
    earned_codes,
    evaluate_tier,
    next_threshold,
    progress_from_points,
    tier_stars_from_progress,
)
from harmonic.engine.quota import ensure_utc
from harmonic.exceptions import LookupFailure, NotFound

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Counting helpers (all take an open session)
# ---------------------------------------------------------------------------
def count_given(session: Session, profile_id: str) -> int:
    """Fulfilled requests on offers owned by *profile_id*."""
    return session.scalar(
        select(func.count())
        .select_from(ExchangeRequest)
        .join(Offer, Offer.id == ExchangeRequest.offer_id)
        .where(
            ExchangeRequest.status == RequestStatus.FULFILLED,
            Offer.owner_id == profile_id,
        )
    ) or 0


def count_received(session: Session, profile_id: str) -> int:
    """Fulfilled requests asked for by *profile_id*."""
    return session.scalar(
        select(func.count())
        .select_from(ExchangeRequest)
        .where(
            ExchangeRequest.status == RequestStatus.FULFILLED,
            ExchangeRequest.requester_profile_id == profile_id,
        )
    ) or 0


def active_days(session: Session, profile_id: str, today: date) -> set[date]:
    """UTC days in the streak lookback with a fulfilled request on either side."""
    since = datetime.combine(
        today - timedelta(days=STREAK_LOOKBACK_DAYS - 1), datetime.min.time(), UTC,
    )
    stamps = session.scalars(
        select(ExchangeRequest.created_at)
        .join(Offer, Offer.id == ExchangeRequest.offer_id)
        .where(
            ExchangeRequest.status == RequestStatus.FULFILLED,
            or_(
                ExchangeRequest.requester_profile_id == profile_id,
                Offer.owner_id == profile_id,
            ),
            ExchangeRequest.created_at >= since,
        )
    ).all()
    return {ensure_utc(ts).date() for ts in stamps}


def lifetime_counts(session: Session, profile_id: str, now: datetime) -> dict[str, int]:
    """Track → count mapping fed to the badge engine."""
    today = ensure_utc(now).date()
    return {
        GIVE: count_given(session, profile_id),
        RECEIVE: count_received(session, profile_id),
        STREAK: count_streak(active_days(session, profile_id, today), today),
    }


def _require_profile(session: Session, profile_id: str) -> Profile:
    profile = session.get(Profile, profile_id)
    if profile is None:
        raise NotFound(f"Profile {profile_id} not found")
    return profile


# ---------------------------------------------------------------------------
# Awards
# ---------------------------------------------------------------------------
def award_new_badges(session: Session, profile_id: str, now: datetime) -> list[str]:
    """Insert ``profile_badges`` rows for newly crossed thresholds.

    Runs inside the caller's transaction; the caller commits.
    """
    counts = lifetime_counts(session, profile_id, now)
    already = set(session.scalars(
        select(ProfileBadge.badge_code).where(ProfileBadge.profile_id == profile_id)
    ).all())
    known = set(session.scalars(select(Badge.code)).all())

    awarded: list[str] = []
    for code in earned_codes(counts):
        if code in already:
            continue
        if code not in known:
            logger.warning("Badge %s missing from catalogue table, skipping", code)
            continue
        session.add(ProfileBadge(profile_id=profile_id, badge_code=code, earned_at=now))
        awarded.append(code)
        logger.info("Badge earned: %s for profile %s", code, profile_id)
    return awarded


def sync_badges(engine: Engine, profile_id: str, now: datetime | None = None) -> list[str]:
    """Recompute counts and record any badges crossed since the last sync.

    Idempotent: a second call with unchanged history awards nothing.
    Returns the codes newly awarded.

    Raises
    ------
    NotFound
        If the profile doesn't exist.
    LookupFailure
        If the database fails, including a second unique-key clash.
    """
    now = ensure_utc(now) if now is not None else datetime.now(UTC)
    try:
        with Session(engine) as session:
            _require_profile(session, profile_id)
            awarded = award_new_badges(session, profile_id, now)
            try:
                session.commit()
            except IntegrityError:
                # A concurrent sync recorded the same award first.
                session.rollback()
                logger.info("Concurrent badge sync for profile %s, retrying once", profile_id)
                awarded = award_new_badges(session, profile_id, now)
                session.commit()
    except SQLAlchemyError as exc:
        logger.exception("Badge sync failed for profile %s", profile_id)
        raise LookupFailure(f"Could not sync badges: {exc}") from exc
    return awarded


# ---------------------------------------------------------------------------
# Read model for profile pages
# ---------------------------------------------------------------------------
def _track_progress(track: str, count: int) -> dict:
    result = evaluate_tier(track, count)
    upcoming = next_threshold(track, count)
    if track == STREAK:
        next_requirement = None if result.earned else describe_requirement(STREAK)
    else:
        next_tier = (result.tier or 0) + 1
        next_requirement = describe_requirement(track, next_tier) if upcoming else None
    return {
        **result.to_dict(),
        "count": count,
        "next_threshold": upcoming,
        "next_requirement": next_requirement,
    }


def badge_progress(engine: Engine, profile_id: str, now: datetime | None = None) -> dict:
    """Counts, per-track tiers and earned awards for one member."""
    now = ensure_utc(now) if now is not None else datetime.now(UTC)
    try:
        with Session(engine) as session:
            _require_profile(session, profile_id)
            counts = lifetime_counts(session, profile_id, now)
            earned = session.execute(
                select(ProfileBadge.badge_code, ProfileBadge.earned_at)
                .where(ProfileBadge.profile_id == profile_id)
                .order_by(ProfileBadge.earned_at, ProfileBadge.badge_code)
            ).all()
    except SQLAlchemyError as exc:
        logger.exception("Badge progress lookup failed for profile %s", profile_id)
        raise LookupFailure(f"Could not load badge progress: {exc}") from exc

    points = counts[GIVE] + counts[RECEIVE]
    level = tier_stars_from_progress(progress_from_points(points))
    return {
        "profile_id": profile_id,
        "counts": counts,
        "tracks": {track: _track_progress(track, counts[track]) for track in (GIVE, RECEIVE, STREAK)},
        "level": {"tier": level.tier, "stars": level.stars},
        "earned": [
            {"code": code, "earned_at": ensure_utc(earned_at).isoformat() if earned_at else None}
            for code, earned_at in earned
        ],
    }


def catalog() -> list[dict]:
    """Static badge catalogue, give → receive → streak, tiers ascending."""
    return [b.to_dict() for b in BADGE_CATALOG]
