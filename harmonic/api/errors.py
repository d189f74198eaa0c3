"""
harmonic.api.errors — Service error → HTTP status mapping
===========================================================
"""

from __future__ import annotations

from fastapi import HTTPException, status

from harmonic.exceptions import (
    HarmonicError,
    InvalidArgument,
    LookupFailure,
    NotFound,
    PermissionDenied,
    QuotaExceeded,
)


def http_error(exc: HarmonicError) -> HTTPException:
    """Translate a service-layer error into the HTTPException to raise."""
    if isinstance(exc, QuotaExceeded):
        return HTTPException(status.HTTP_429_TOO_MANY_REQUESTS, detail=exc.to_dict())
    if isinstance(exc, NotFound):
        return HTTPException(status.HTTP_404_NOT_FOUND, detail={"error": str(exc)})
    if isinstance(exc, PermissionDenied):
        return HTTPException(status.HTTP_403_FORBIDDEN, detail={"error": str(exc)})
    if isinstance(exc, InvalidArgument):
        return HTTPException(status.HTTP_400_BAD_REQUEST, detail={"error": str(exc)})
    if isinstance(exc, LookupFailure):
        return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail={"error": str(exc)})
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail={"error": "unexpected_error"})
