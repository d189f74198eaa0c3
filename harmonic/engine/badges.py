"""
harmonic.engine.badges — Badge Tier Evaluation
================================================

Maps lifetime counts (gifts given, gifts received) and streak lengths to
discrete badge tiers, and renders the catalogue shown on profile pages.

This module is pure calculation with no database I/O.  Counts come from
:mod:`harmonic.services.badge_service`.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from harmonic.exceptions import InvalidArgument

# ---------------------------------------------------------------------------
# Tracks & thresholds
# ---------------------------------------------------------------------------
GIVE = "give"
RECEIVE = "receive"
STREAK = "streak"

TRACKS: tuple[str, ...] = (GIVE, RECEIVE, STREAK)

# Tier k is reached once the lifetime count is >= TIER_THRESHOLDS[k - 1]
TIER_THRESHOLDS: tuple[int, ...] = (1, 5, 10, 20, 40, 100)
MAX_TIER = len(TIER_THRESHOLDS)

STREAK_DAYS = 7
STREAK_LOOKBACK_DAYS = 60

# tier/stars presentation ladder
STARS_PER_TIER = 5
TOTAL_STEPS = MAX_TIER * STARS_PER_TIER  # 30
DEFAULT_MAX_POINTS = 3000

_CODE_PREFIX = {GIVE: "give", RECEIVE: "recv"}
_ICON_STEM = {GIVE: "give_rays", RECEIVE: "receive_bowl"}
STREAK_CODE = f"streak_{STREAK_DAYS}"
STREAK_ICON = "/badges/streak_wave.png"


def _check_track(track: str) -> str:
    if track not in TRACKS:
        raise InvalidArgument(
            f"Unknown badge track {track!r}. Must be one of: {', '.join(TRACKS)}"
        )
    return track


def _check_count(count: int) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise InvalidArgument(f"count must be an integer, got {count!r}")
    if count < 0:
        raise InvalidArgument(f"count must be non-negative, got {count}")
    return count


# ---------------------------------------------------------------------------
# Tier evaluation
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class TierResult:
    """Outcome of :func:`evaluate_tier`.  ``tier`` is None when unearned."""

    track: str
    tier: int | None
    earned: bool

    def to_dict(self) -> dict:
        return {"track": self.track, "tier": self.tier, "earned": self.earned}


def evaluate_tier(track: str, count: int) -> TierResult:
    """Return the highest tier *count* reaches on *track*.

    give/receive: tier k once ``count >= TIER_THRESHOLDS[k - 1]``; counts past
    the top threshold stay at tier 6.  streak: a single tier at 7 days.
    Boundaries are inclusive.
    """
    _check_track(track)
    _check_count(count)

    if track == STREAK:
        if count >= STREAK_DAYS:
            return TierResult(track, 1, True)
        return TierResult(track, None, False)

    tier = 0
    for index, threshold in enumerate(TIER_THRESHOLDS, start=1):
        if count < threshold:
            break
        tier = index
    if tier == 0:
        return TierResult(track, None, False)
    return TierResult(track, tier, True)


def threshold_for(track: str, tier: int = 1) -> int:
    """Count required to reach *tier* on *track*."""
    _check_track(track)
    if track == STREAK:
        if tier != 1:
            raise InvalidArgument(f"streak has a single tier, got {tier}")
        return STREAK_DAYS
    if isinstance(tier, bool) or not isinstance(tier, int) or not 1 <= tier <= MAX_TIER:
        raise InvalidArgument(f"tier must be in [1, {MAX_TIER}], got {tier!r}")
    return TIER_THRESHOLDS[tier - 1]


def next_threshold(track: str, count: int) -> int | None:
    """Count needed for the next tier, or None once the top tier is reached."""
    result = evaluate_tier(track, count)
    if track == STREAK:
        return None if result.earned else STREAK_DAYS
    current = result.tier or 0
    if current >= MAX_TIER:
        return None
    return TIER_THRESHOLDS[current]


def _plural(n: int, one: str, many: str) -> str:
    return one if n == 1 else many


def describe_requirement(track: str, tier: int | None = None) -> str:
    """Human-readable requirement for a badge, e.g. ``"Give 10 gifts"``."""
    _check_track(track)
    if track == STREAK:
        threshold_for(STREAK, 1 if tier is None else tier)
        return f"Participate {STREAK_DAYS} days in a row"

    if tier is None:
        raise InvalidArgument(f"tier is required for the {track} track")
    count = threshold_for(track, tier)
    if tier == 1:
        return "Give your first gift" if track == GIVE else "Receive your first gift"
    if track == GIVE:
        return f"Give {count} {_plural(count, 'gift', 'gifts')}"
    return f"Receive {count} {_plural(count, 'receiving', 'receivings')}"


# ---------------------------------------------------------------------------
# Catalogue & presentation
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BadgeDef:
    """One entry of the static badge catalogue."""

    code: str
    track: str
    tier: int
    title: str
    icon: str
    how_to_earn: str

    @property
    def threshold(self) -> int:
        return threshold_for(self.track, self.tier)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "track": self.track,
            "tier": self.tier,
            "title": self.title,
            "icon": self.icon,
            "how_to_earn": self.how_to_earn,
            "threshold": self.threshold,
        }


def badge_code(track: str, tier: int = 1) -> str:
    """Stable catalogue code, e.g. ``give_t3``, ``recv_t1``, ``streak_7``."""
    _check_track(track)
    if track == STREAK:
        return STREAK_CODE
    threshold_for(track, tier)
    return f"{_CODE_PREFIX[track]}_t{tier}"


def badge_icon(track: str, tier: int = 1) -> str:
    """Public icon path; tier is clamped to the 1..6 ladder."""
    _check_track(track)
    if track == STREAK:
        return STREAK_ICON
    safe_tier = max(1, min(MAX_TIER, tier))
    return f"/badges/{_ICON_STEM[track]}_t{safe_tier}.png"


def _title(track: str, tier: int) -> str:
    if track == STREAK:
        return f"{STREAK_DAYS}-day Flow Streak"
    if track == GIVE:
        return "First Gift" if tier == 1 else f"Give • Tier {tier}"
    return "First Receiving" if tier == 1 else f"Receive • Tier {tier}"


def _build_catalog() -> tuple[BadgeDef, ...]:
    defs: list[BadgeDef] = []
    for track in (GIVE, RECEIVE):
        for tier in range(1, MAX_TIER + 1):
            defs.append(BadgeDef(
                code=badge_code(track, tier),
                track=track,
                tier=tier,
                title=_title(track, tier),
                icon=badge_icon(track, tier),
                how_to_earn=describe_requirement(track, tier),
            ))
    defs.append(BadgeDef(
        code=STREAK_CODE,
        track=STREAK,
        tier=1,
        title=_title(STREAK, 1),
        icon=STREAK_ICON,
        how_to_earn=describe_requirement(STREAK),
    ))
    return tuple(defs)


BADGE_CATALOG: tuple[BadgeDef, ...] = _build_catalog()


def earned_codes(counts: dict[str, int]) -> list[str]:
    """Catalogue codes whose thresholds are met by *counts* (track → count).

    Reaching tier k earns every lower tier on the same track too.
    """
    codes: list[str] = []
    for badge in BADGE_CATALOG:
        count = counts.get(badge.track, 0)
        if _check_count(count) >= badge.threshold:
            codes.append(badge.code)
    return codes


@dataclass(frozen=True, slots=True)
class BadgeLevel:
    tier: int
    stars: int


def tier_stars_from_progress(progress: float) -> BadgeLevel:
    """Convert 0..1 progress into a tier (1..6) and stars (1..5) pair."""
    if math.isnan(progress):
        progress = 0.0
    clamped = max(0.0, min(1.0, progress))
    step = max(0, min(TOTAL_STEPS - 1, math.floor(clamped * TOTAL_STEPS)))
    return BadgeLevel(tier=step // STARS_PER_TIER + 1, stars=step % STARS_PER_TIER + 1)


def progress_from_points(points: float, max_points: float = DEFAULT_MAX_POINTS) -> float:
    """Linear points → 0..1 progress mapping."""
    if max_points <= 0:
        raise InvalidArgument(f"max_points must be positive, got {max_points}")
    return max(0.0, min(1.0, points / max_points))


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------
def count_streak(
    active_days: Iterable[date],
    today: date,
    lookback: int = STREAK_LOOKBACK_DAYS,
) -> int:
    """Count consecutive active days ending at *today*.

    Walks back one calendar day at a time, for at most *lookback* days,
    stopping at the first day with no activity.  A quiet *today* means a
    streak of zero.
    """
    days = set(active_days)
    streak = 0
    for offset in range(lookback):
        if today - timedelta(days=offset) not in days:
            break
        streak += 1
    return streak
