"""
harmonic.api.routes.badges — Badge catalogue & profile progress
=================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from harmonic.api.deps import get_current_user, get_engine, is_admin
from harmonic.api.errors import http_error
from harmonic.engine.badges import TRACKS, describe_requirement, evaluate_tier, next_threshold
from harmonic.exceptions import HarmonicError, PermissionDenied
from harmonic.services import badge_service

router = APIRouter(tags=["badges"])


@router.get("/badges")
def list_badges():
    """All badges and how to earn them."""
    return {"tracks": list(TRACKS), "badges": badge_service.catalog()}


@router.get("/badges/evaluate")
def evaluate(
    track: str = Query(...),
    count: int = Query(..., ge=0),
):
    """Tier reached by *count* on *track*, plus what the next tier needs."""
    try:
        result = evaluate_tier(track, count)
        upcoming = next_threshold(track, count)
        requirement = (
            describe_requirement(track, result.tier)
            if result.earned else describe_requirement(track, 1)
        )
    except HarmonicError as exc:
        raise http_error(exc) from exc
    return {**result.to_dict(), "requirement": requirement, "next_threshold": upcoming}


@router.get("/profiles/{profile_id}/badges")
def profile_badges(profile_id: str, engine=Depends(get_engine)):
    """Counts, tiers and earned badges for one member."""
    try:
        return badge_service.badge_progress(engine, profile_id)
    except HarmonicError as exc:
        raise http_error(exc) from exc


@router.post("/profiles/{profile_id}/badges/sync")
def sync_profile_badges(
    profile_id: str,
    user: dict = Depends(get_current_user),
    engine=Depends(get_engine),
):
    """Record badges crossed since the last sync.  The member or an admin only."""
    try:
        if str(user["sub"]) != profile_id and not is_admin(user):
            raise PermissionDenied("Only the member or an admin can sync these badges")
        awarded = badge_service.sync_badges(engine, profile_id)
    except HarmonicError as exc:
        raise http_error(exc) from exc
    return {"profile_id": profile_id, "awarded": awarded}
