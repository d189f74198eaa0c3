"""
harmonic.engine.quota — Ask Quota Policy & Snapshot
=====================================================

Pure calculation for the trailing-window ask allowance: how the window is
bounded, which request statuses count against it, and how many asks remain.
No database I/O lives here; :mod:`harmonic.services.quota_service` does the
counting and hands the numbers back to these types.

Usage::

    policy = QuotaPolicy(limit=parse_quota_limit(os.getenv("HX_REQUEST_QUOTA_LIMIT")))
    cutoff = policy.cutoff(now)            # created_at >= cutoff counts
    snap = QuotaSnapshot(used=2, limit=policy.limit)
    snap.remaining                         # 1
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_QUOTA_LIMIT = 3
DEFAULT_WINDOW_DAYS = 30

# Request statuses that consume an ask.  "declined" gives the ask back.
QUALIFYING_STATUSES: frozenset[str] = frozenset({"pending", "accepted", "fulfilled"})


def parse_quota_limit(raw: str | int | None, default: int = DEFAULT_QUOTA_LIMIT) -> int:
    """Parse an environment-style quota limit.

    Unset, blank, non-numeric, non-finite and non-positive values all fall
    back to *default*.  Fractional values are floored (``"4.7"`` → 4).
    """
    if raw is None or isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        return raw if raw > 0 else default
    text = str(raw).strip()
    if not text:
        return default
    try:
        value = float(text)
    except ValueError:
        return default
    if not math.isfinite(value) or value <= 0:
        return default
    limit = math.floor(value)
    return limit if limit > 0 else default


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def window_label(window_days: int) -> str:
    """Machine label for a window, e.g. ``"last_30_days"``."""
    return f"last_{window_days}_days"


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class QuotaPolicy:
    """How many asks a member gets.  The trailing window is always 30 days."""

    limit: int = DEFAULT_QUOTA_LIMIT
    window_days: int = field(default=DEFAULT_WINDOW_DAYS, init=False)
    statuses: frozenset[str] = field(default=QUALIFYING_STATUSES)

    def __post_init__(self) -> None:
        if self.limit <= 0:
            raise ValueError(f"Quota limit must be positive, got {self.limit}")

    @property
    def window(self) -> str:
        return window_label(self.window_days)

    def cutoff(self, now: datetime, reset_at: datetime | None = None) -> datetime:
        """Return the inclusive lower bound of the window ending at *now*.

        An admin quota reset moves the bound forward to *reset_at* when it
        is more recent than the rolling cutoff.
        """
        cutoff = ensure_utc(now) - timedelta(days=self.window_days)
        if reset_at is not None:
            cutoff = max(cutoff, ensure_utc(reset_at))
        return cutoff

    def snapshot(self, used: int) -> QuotaSnapshot:
        return QuotaSnapshot(used=used, limit=self.limit, window=self.window)


# ---------------------------------------------------------------------------
# Snapshot (computed per call, never persisted)
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class QuotaSnapshot:
    """Asks used and remaining for one member at one instant."""

    used: int
    limit: int
    window: str = window_label(DEFAULT_WINDOW_DAYS)

    def __post_init__(self) -> None:
        if self.used < 0:
            raise ValueError(f"used must be non-negative, got {self.used}")

    @property
    def remaining(self) -> int:
        return max(self.limit - self.used, 0)

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0

    @property
    def window_text(self) -> str:
        """Human wording of the window label (``"last 30 days"``)."""
        return self.window.replace("_", " ")

    def to_dict(self) -> dict:
        return {
            "used": self.used,
            "limit": self.limit,
            "remaining": self.remaining,
            "window": self.window,
        }


def bulk_entry(profile_id: str, used: int, limit: int) -> dict:
    """Row shape returned by the bulk quota lookup."""
    return {"profile_id": profile_id, "used": used, "limit": limit}
