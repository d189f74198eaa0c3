"""
harmonic.api.routes.admin — Admin mutations
=============================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from harmonic.api.deps import get_engine
from harmonic.api.errors import http_error
from harmonic.api.rate_limit import rate_limited_admin
from harmonic.exceptions import HarmonicError
from harmonic.services import admin_service

router = APIRouter(prefix="/admin", tags=["admin"])


class QuotaResetBody(BaseModel):
    reason: str | None = None


@router.post("/quota/{profile_id}/reset")
def reset_quota(
    profile_id: str,
    body: QuotaResetBody | None = None,
    admin: dict = Depends(rate_limited_admin),
    engine=Depends(get_engine),
):
    """Restart a member's ask window now, giving back the full limit."""
    try:
        return admin_service.reset_request_quota(
            engine,
            profile_id=profile_id,
            actor_id=str(admin["sub"]),
            reason=body.reason if body else None,
        )
    except HarmonicError as exc:
        raise http_error(exc) from exc
