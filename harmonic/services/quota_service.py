"""
harmonic.services.quota_service — Trailing-Window Ask Quota
============================================================

Answers "how many asks has this member made in the last 30 days, and how
many more may they make?" by counting rows in the ``requests`` table.

The tracker is read-only.  :meth:`QuotaTracker.enforce_quota` is the gate
that must pass immediately before a new request row is inserted; it does not
lock anything, so two simultaneous submissions from the same member can both
pass the check.  Closing that gap needs an atomic conditional insert in the
database, which this service does not attempt.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import Engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from harmonic.database.models import ExchangeRequest, QuotaReset
from harmonic.engine.quota import QuotaPolicy, QuotaSnapshot, bulk_entry, ensure_utc
from harmonic.exceptions import InvalidArgument, LookupFailure, QuotaExceeded

logger = logging.getLogger(__name__)


def _require_id(profile_id: str) -> str:
    if not isinstance(profile_id, str) or not profile_id.strip():
        raise InvalidArgument("profile_id is required")
    return profile_id


class QuotaTracker:
    """Counts a member's qualifying asks inside the trailing window.

    The limit and window come from an explicit :class:`QuotaPolicy` so that
    tests and callers never depend on process environment.
    """

    def __init__(self, engine: Engine, policy: QuotaPolicy | None = None) -> None:
        self.engine = engine
        self.policy = policy or QuotaPolicy()

    def _now(self, now: datetime | None) -> datetime:
        return ensure_utc(now) if now is not None else datetime.now(UTC)

    def compute_quota(self, profile_id: str, now: datetime | None = None) -> QuotaSnapshot:
        """Return ``used``/``limit``/``remaining`` for *profile_id* at *now*.

        Rows count when the requester matches, the status is one of the
        policy's qualifying statuses and ``created_at >= cutoff``.

        Raises
        ------
        InvalidArgument
            If *profile_id* is empty.
        LookupFailure
            If the count query fails.  Not retried.
        """
        _require_id(profile_id)
        now = self._now(now)

        try:
            with Session(self.engine) as session:
                reset_at = session.scalar(
                    select(QuotaReset.reset_at).where(QuotaReset.profile_id == profile_id)
                )
                cutoff = self.policy.cutoff(now, reset_at)
                used = session.scalar(
                    select(func.count())
                    .select_from(ExchangeRequest)
                    .where(
                        ExchangeRequest.requester_profile_id == profile_id,
                        ExchangeRequest.status.in_(self.policy.statuses),
                        ExchangeRequest.created_at >= cutoff,
                    )
                ) or 0
        except SQLAlchemyError as exc:
            logger.exception("Quota lookup failed for profile %s", profile_id)
            raise LookupFailure(f"Could not count requests: {exc}") from exc

        return self.policy.snapshot(used)

    def enforce_quota(self, profile_id: str, now: datetime | None = None) -> QuotaSnapshot:
        """Return the snapshot if an ask is still allowed.

        Raises
        ------
        QuotaExceeded
            If no asks remain in the window.  Carries the snapshot.
        """
        snapshot = self.compute_quota(profile_id, now)
        if snapshot.exhausted:
            logger.warning(
                "Ask quota exceeded for profile %s: %d/%d in %s",
                profile_id, snapshot.used, snapshot.limit, snapshot.window,
            )
            raise QuotaExceeded(snapshot)
        return snapshot

    def compute_quota_bulk(
        self, profile_ids: Sequence[str], now: datetime | None = None,
    ) -> list[dict]:
        """Quota usage for many members in one pass.

        Returns one ``{profile_id, used, limit}`` entry per input id, in input
        order; ids without qualifying rows report ``used = 0``.
        """
        if not profile_ids:
            raise InvalidArgument("profile_ids must not be empty")
        for pid in profile_ids:
            _require_id(pid)
        now = self._now(now)
        wanted = set(profile_ids)
        base_cutoff = self.policy.cutoff(now)

        try:
            with Session(self.engine) as session:
                resets = dict(session.execute(
                    select(QuotaReset.profile_id, QuotaReset.reset_at)
                    .where(QuotaReset.profile_id.in_(wanted))
                ).all())
                rows = session.execute(
                    select(ExchangeRequest.requester_profile_id, ExchangeRequest.created_at)
                    .where(
                        ExchangeRequest.requester_profile_id.in_(wanted),
                        ExchangeRequest.status.in_(self.policy.statuses),
                        ExchangeRequest.created_at >= base_cutoff,
                    )
                ).all()
        except SQLAlchemyError as exc:
            logger.exception("Bulk quota lookup failed for %d profiles", len(wanted))
            raise LookupFailure(f"Could not count requests: {exc}") from exc

        used_by_id: Counter[str] = Counter()
        for requester_id, created_at in rows:
            cutoff = self.policy.cutoff(now, resets.get(requester_id))
            if ensure_utc(created_at) >= cutoff:
                used_by_id[requester_id] += 1

        return [
            bulk_entry(pid, used_by_id.get(pid, 0), self.policy.limit)
            for pid in profile_ids
        ]
