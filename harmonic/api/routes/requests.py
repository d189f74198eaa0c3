"""
harmonic.api.routes.requests — Ask creation & status changes
==============================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from harmonic.api.deps import get_current_user, get_engine, get_quota_tracker
from harmonic.api.errors import http_error
from harmonic.exceptions import HarmonicError
from harmonic.services import request_service
from harmonic.services.quota_service import QuotaTracker

router = APIRouter(prefix="/requests", tags=["requests"])


class RequestCreate(BaseModel):
    offer_id: str
    note: str


class StatusUpdate(BaseModel):
    status: str


@router.post("", status_code=201)
def create_request(
    body: RequestCreate,
    user: dict = Depends(get_current_user),
    engine=Depends(get_engine),
    tracker: QuotaTracker = Depends(get_quota_tracker),
):
    try:
        return request_service.create_request(
            engine,
            tracker,
            requester_id=str(user["sub"]),
            offer_id=body.offer_id,
            note=body.note,
        )
    except HarmonicError as exc:
        raise http_error(exc) from exc


@router.patch("/{request_id}/status")
def update_status(
    request_id: str,
    body: StatusUpdate,
    user: dict = Depends(get_current_user),
    engine=Depends(get_engine),
):
    try:
        return request_service.set_request_status(
            engine,
            request_id=request_id,
            actor_id=str(user["sub"]),
            next_status=body.status,
        )
    except HarmonicError as exc:
        raise http_error(exc) from exc
