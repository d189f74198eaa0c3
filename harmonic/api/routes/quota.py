"""
harmonic.api.routes.quota — Ask quota endpoints
=================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from harmonic.api.deps import get_current_admin, get_current_user, get_quota_tracker
from harmonic.api.errors import http_error
from harmonic.exceptions import HarmonicError
from harmonic.services.quota_service import QuotaTracker

router = APIRouter(prefix="/requests/quota", tags=["quota"])
logger = logging.getLogger(__name__)


class BulkQuotaBody(BaseModel):
    profile_ids: list[str] = Field(default_factory=list)


@router.get("")
def get_quota(
    user: dict = Depends(get_current_user),
    tracker: QuotaTracker = Depends(get_quota_tracker),
):
    """Asks used and remaining for the signed-in member."""
    try:
        return tracker.compute_quota(str(user["sub"])).to_dict()
    except HarmonicError as exc:
        raise http_error(exc) from exc


@router.post("")
def check_quota(
    user: dict = Depends(get_current_user),
    tracker: QuotaTracker = Depends(get_quota_tracker),
):
    """Pre-submit gate: 200 with the snapshot, or 429 with ``error`` + ``quota``."""
    try:
        return tracker.enforce_quota(str(user["sub"])).to_dict()
    except HarmonicError as exc:
        raise http_error(exc) from exc


@router.post("/bulk")
def bulk_quota(
    body: BulkQuotaBody,
    admin: dict = Depends(get_current_admin),
    tracker: QuotaTracker = Depends(get_quota_tracker),
):
    """Quota usage for many members at once (moderators/admins only)."""
    if not body.profile_ids:
        raise HTTPException(400, detail={"error": "no_profile_ids"})
    try:
        return tracker.compute_quota_bulk(body.profile_ids)
    except HarmonicError as exc:
        raise http_error(exc) from exc
