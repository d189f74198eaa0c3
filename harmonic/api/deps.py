"""
harmonic.api.deps — FastAPI dependency injection
==================================================

Sign-in is handled by the external auth provider; this API only verifies the
HS256 bearer tokens it issues.  ``sub`` is the member's profile id.  Admin
rights come from ``is_admin: true`` or a ``role`` of ``admin``/``moderator``,
either top-level or under ``app_metadata``.

``JWT_SECRET`` is checked when this module is imported so a misconfigured
deployment fails at startup, not on the first request.  Set ``JWT_AUDIENCE``
when the provider stamps an ``aud`` claim (``authenticated`` for most hosted
providers).
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from harmonic.config import HarmonicConfig, load_config
from harmonic.database.engine import create_db_engine
from harmonic.services.quota_service import QuotaTracker

JWT_ALGORITHM = "HS256"
MIN_SECRET_LENGTH = 32
ADMIN_ROLES = frozenset({"admin", "moderator"})

_PLACEHOLDER_SECRETS = frozenset({
    "harmonic-dev-secret-change-me",
    "your-super-secret-jwt-token-with-at-least-32-characters-long",
    "change-me",
    "changeme",
    "secret",
})


def _secret_problem(secret: str) -> str | None:
    if not secret.strip():
        return (
            "JWT_SECRET environment variable is not set. Use the JWT secret "
            "of your auth provider project."
        )
    if secret in _PLACEHOLDER_SECRETS:
        return f"JWT_SECRET is a known weak default ({secret!r}); use the real signing secret."
    if len(secret) < MIN_SECRET_LENGTH:
        return (
            f"JWT_SECRET is too short: {len(secret)} characters, "
            f"need at least {MIN_SECRET_LENGTH}."
        )
    return None


def _load_jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET", "")
    problem = _secret_problem(secret)
    if problem:
        raise RuntimeError(problem)
    return secret


JWT_SECRET: str = _load_jwt_secret()
JWT_AUDIENCE: str | None = os.getenv("JWT_AUDIENCE") or None


# ---------------------------------------------------------------------------
# Shared resources
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> HarmonicConfig:
    return load_config(os.getenv("HARMONIC_CONFIG", "config.yaml"))


def get_quota_tracker(
    engine: Annotated[Engine, Depends(get_engine)],
    cfg: Annotated[HarmonicConfig, Depends(get_config)],
) -> QuotaTracker:
    return QuotaTracker(engine, cfg.quota_policy())


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
def decode_token(token: str) -> dict:
    """Verify *token* and return its claims.  Raises ``InvalidTokenError``."""
    if JWT_AUDIENCE:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM], audience=JWT_AUDIENCE)
    return jwt.decode(
        token, JWT_SECRET, algorithms=[JWT_ALGORITHM], options={"verify_aud": False},
    )


def _bearer_claims(authorization: str | None) -> dict:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "not_authenticated")
    try:
        claims = decode_token(token.strip())
    except InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token") from None
    if not claims.get("sub"):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    return claims


def is_admin(claims: dict) -> bool:
    if claims.get("is_admin") is True:
        return True
    app_meta = claims.get("app_metadata") or {}
    return claims.get("role") in ADMIN_ROLES or app_meta.get("role") in ADMIN_ROLES


def get_current_user(authorization: Annotated[str | None, Header()] = None) -> dict:
    """Claims of the signed-in member; 401 without a valid bearer token."""
    return _bearer_claims(authorization)


def get_current_admin(user: Annotated[dict, Depends(get_current_user)]) -> dict:
    """Claims of a signed-in admin or moderator; 403 for everyone else."""
    if not is_admin(user):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Not admin")
    return user
