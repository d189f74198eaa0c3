"""
harmonic.api.rate_limit — Admin Mutation Throttle
==================================================

Quota resets and other admin writes are capped per admin (JWT ``sub``) with
a sliding window kept in ``admin_rate_limit_events``.  Pruning, counting and
recording one hit happen in a single transaction, so a denied hit is never
stored and the window is shared by every API worker.

A denied hit surfaces as HTTP 429 with ``Retry-After``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from fastapi import Depends, HTTPException, status
from sqlalchemy import Engine, delete, select
from sqlalchemy.orm import Session

from harmonic.api.deps import get_current_admin
from harmonic.database.engine import run_db
from harmonic.database.models import AdminRateLimitEvent
from harmonic.engine.quota import ensure_utc

logger = logging.getLogger(__name__)

ADMIN_MUTATIONS_PER_WINDOW = 30
ADMIN_WINDOW_SECONDS = 60


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int


class AdminRateLimiter:
    """Sliding window over persisted per-admin hit timestamps."""

    def __init__(
        self,
        max_requests: int = ADMIN_MUTATIONS_PER_WINDOW,
        window_seconds: int = ADMIN_WINDOW_SECONDS,
        *,
        engine: Engine,
    ) -> None:
        if max_requests <= 0 or window_seconds <= 0:
            raise ValueError("max_requests and window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.engine = engine

    def _window_start(self, now: datetime) -> datetime:
        return now - timedelta(seconds=self.window_seconds)

    def _live_hits(self, session: Session, admin_id: str, now: datetime) -> list[datetime]:
        session.execute(
            delete(AdminRateLimitEvent).where(
                AdminRateLimitEvent.admin_id == admin_id,
                AdminRateLimitEvent.timestamp < self._window_start(now),
            )
        )
        return [
            ensure_utc(ts)
            for ts in session.scalars(
                select(AdminRateLimitEvent.timestamp)
                .where(AdminRateLimitEvent.admin_id == admin_id)
                .order_by(AdminRateLimitEvent.timestamp)
            )
        ]

    def _denied(self, oldest: datetime, now: datetime) -> RateLimitDecision:
        wait = oldest + timedelta(seconds=self.window_seconds) - now
        return RateLimitDecision(
            allowed=False,
            limit=self.max_requests,
            remaining=0,
            retry_after=max(1, int(wait.total_seconds()) + 1),
        )

    def hit(self, admin_id: str, now: datetime | None = None) -> RateLimitDecision:
        """Count one mutation for *admin_id* if the window has room."""
        now = ensure_utc(now) if now is not None else datetime.now(UTC)
        with Session(self.engine) as session:
            hits = self._live_hits(session, admin_id, now)
            if len(hits) >= self.max_requests:
                session.commit()
                return self._denied(hits[0], now)
            session.add(AdminRateLimitEvent(admin_id=admin_id, timestamp=now))
            session.commit()
        return RateLimitDecision(True, self.max_requests, self.max_requests - len(hits) - 1, 0)


_limiter: AdminRateLimiter | None = None


def get_rate_limiter() -> AdminRateLimiter:
    if _limiter is None:
        raise RuntimeError("Admin rate limiter is not configured; call configure_rate_limiter()")
    return _limiter


def configure_rate_limiter(
    *,
    engine: Engine,
    max_requests: int = ADMIN_MUTATIONS_PER_WINDOW,
    window_seconds: int = ADMIN_WINDOW_SECONDS,
) -> AdminRateLimiter:
    global _limiter
    _limiter = AdminRateLimiter(max_requests, window_seconds, engine=engine)
    return _limiter


async def rate_limited_admin(admin: dict = Depends(get_current_admin)) -> dict:
    """Admin guard for write routes: JWT check, then one throttle hit."""
    limiter = get_rate_limiter()
    admin_id = str(admin["sub"])
    decision = await run_db(limiter.hit, admin_id)
    if not decision.allowed:
        logger.warning(
            "Admin %s throttled: %d mutations per %ds",
            admin_id, limiter.max_requests, limiter.window_seconds,
        )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "rate_limit_exceeded",
                "message": (
                    f"Too many admin changes: at most {limiter.max_requests} "
                    f"every {limiter.window_seconds} seconds."
                ),
                "retry_after": decision.retry_after,
            },
            headers={"Retry-After": str(decision.retry_after)},
        )
    return admin
