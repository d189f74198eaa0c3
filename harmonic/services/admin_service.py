"""
harmonic.services.admin_service — Audited Admin Actions
========================================================

Admin changes and their ``admin_log`` row commit together in one
transaction.  The log row keeps JSON copies of the target row as it was
before and after the change, so a reset can always be explained later.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import Engine, inspect
from sqlalchemy.orm import Session

from harmonic.database.models import AdminActionType, AdminLog, Profile, QuotaReset
from harmonic.engine.quota import ensure_utc
from harmonic.exceptions import InvalidArgument, NotFound

logger = logging.getLogger(__name__)


def snapshot_row(row) -> dict | None:
    """JSON-safe column → value copy of an ORM row (datetimes as ISO-8601 UTC)."""
    if row is None:
        return None
    mapper = inspect(row).mapper
    out = {}
    for attr in mapper.column_attrs:
        value = getattr(row, attr.key)
        out[attr.key] = ensure_utc(value).isoformat() if isinstance(value, datetime) else value
    return out


def record_admin_action(
    session: Session,
    action: AdminActionType,
    *,
    actor_id: str,
    target,
    before: dict | None,
    reason: str | None = None,
) -> AdminLog:
    """Add the audit row for *target*; the caller commits."""
    identity = inspect(target).identity
    entry = AdminLog(
        actor_id=actor_id,
        action_type=action.value,
        target_table=target.__tablename__,
        target_id=str(identity[0]) if identity else None,
        before_snapshot=before,
        after_snapshot=snapshot_row(target),
        reason=reason,
    )
    session.add(entry)
    return entry


def reset_request_quota(
    engine: Engine,
    *,
    profile_id: str,
    actor_id: str,
    reason: str | None = None,
    now: datetime | None = None,
) -> dict:
    """Start *profile_id*'s ask window at *now*.

    Asks made before the reset stop counting, so the member gets the full
    limit back.  Rolling expiry still applies afterwards.  Returns the
    stored reset record.
    """
    if not profile_id:
        raise InvalidArgument("profile_id is required")
    now = ensure_utc(now) if now is not None else datetime.now(UTC)

    with Session(engine, expire_on_commit=False) as session:
        if session.get(Profile, profile_id) is None:
            raise NotFound(f"Profile {profile_id} not found")

        reset = session.get(QuotaReset, profile_id)
        before = snapshot_row(reset)
        if reset is None:
            reset = QuotaReset(profile_id=profile_id)
            session.add(reset)
        reset.reset_at = now
        reset.reset_by = actor_id
        session.flush()

        record_admin_action(
            session,
            AdminActionType.QUOTA_RESET,
            actor_id=actor_id,
            target=reset,
            before=before,
            reason=reason,
        )
        session.commit()
        after = snapshot_row(reset)

    logger.info("Ask quota reset for profile %s by %s", profile_id, actor_id)
    return after
