"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os
from datetime import UTC, datetime

# harmonic.api.deps refuses to import without a strong JWT_SECRET.
os.environ.setdefault("JWT_SECRET", "pytest-only-signing-key-" + "k" * 40)
os.environ.pop("JWT_AUDIENCE", None)

import pytest  # noqa: E402
from sqlalchemy import BigInteger, Engine, create_engine  # noqa: E402
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.ext.compiler import compiles  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from harmonic.database.models import (  # noqa: E402
    Base,
    ExchangeRequest,
    Offer,
    Profile,
)
from harmonic.database.seed import seed_badge_catalog  # noqa: E402

# Fixed "now" used by service tests that pass an explicit clock.
NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=UTC)


@compiles(PG_JSONB, "sqlite")
def _jsonb_on_sqlite(type_, compiler, **kw):
    return "TEXT"


# SQLite only autoincrements INTEGER PRIMARY KEY columns.
@compiles(BigInteger, "sqlite")
def _bigint_on_sqlite(type_, compiler, **kw):
    return "INTEGER"


@pytest.fixture
def db_engine() -> Engine:
    """Fresh in-memory database with the full schema and seeded badges.

    One shared connection (StaticPool) so worker threads from ``run_db`` and
    the TestClient see the same data.
    """
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    seed_badge_catalog(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------
def add_profile(engine: Engine, profile_id: str, name: str | None = None, role: str = "member") -> str:
    with Session(engine) as session:
        session.add(Profile(id=profile_id, display_name=name or profile_id, role=role))
        session.commit()
    return profile_id


def add_offer(engine: Engine, owner_id: str, offer_id: str | None = None, status: str = "active") -> str:
    with Session(engine) as session:
        offer = Offer(owner_id=owner_id, title=f"Offer from {owner_id}", status=status)
        if offer_id:
            offer.id = offer_id
        session.add(offer)
        session.commit()
        return offer.id


def add_request(
    engine: Engine,
    requester_id: str,
    offer_id: str,
    created_at: datetime,
    status: str = "pending",
) -> str:
    with Session(engine) as session:
        req = ExchangeRequest(
            offer_id=offer_id,
            requester_profile_id=requester_id,
            note="please",
            status=status,
            created_at=created_at,
        )
        session.add(req)
        session.commit()
        return req.id


@pytest.fixture
def community(db_engine):
    """Two members, ``giver`` with one active offer, ``asker`` with none.

    Returns ``(engine, offer_id)``.
    """
    add_profile(db_engine, "giver")
    add_profile(db_engine, "asker")
    offer_id = add_offer(db_engine, "giver", "offer-1")
    return db_engine, offer_id


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------
def make_token(sub: str = "asker", **claims) -> str:
    """Create a signed member/admin JWT.  Usable as a plain factory."""
    import jwt

    from harmonic.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode({"sub": sub, **claims}, JWT_SECRET, algorithm=JWT_ALGORITHM)


def make_admin_token(sub: str = "admin-1") -> str:
    return make_token(sub, is_admin=True)
