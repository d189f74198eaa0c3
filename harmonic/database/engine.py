"""
harmonic.database.engine — Engine Factory, Schema Bootstrap & Session Scope
============================================================================

``DATABASE_URL`` usually arrives in the ``postgres://`` form hosted
providers hand out; it is normalised to the psycopg2 driver here.  A
``sqlite://`` URL is accepted for local experiments.

Route handlers are plain ``def`` functions and run on Starlette's thread
pool.  Async dependencies reach the database through :func:`run_db`.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from harmonic.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

_POSTGRES_PREFIXES = ("postgres://", "postgresql://")


def normalise_database_url(url: str) -> str:
    """Point bare ``postgres://``/``postgresql://`` URLs at psycopg2."""
    for prefix in _POSTGRES_PREFIXES:
        if url.startswith(prefix):
            return "postgresql+psycopg2://" + url[len(prefix):]
    return url


def create_db_engine(url: str | None = None) -> Engine:
    """Engine for *url*, defaulting to ``DATABASE_URL``.

    Raises
    ------
    RuntimeError
        If no URL is given and ``DATABASE_URL`` is not set.
    """
    raw = url or os.getenv("DATABASE_URL")
    if not raw:
        raise RuntimeError(
            "DATABASE_URL is not set.  Copy .env.example → .env and point it "
            "at the exchange's PostgreSQL database."
        )
    url = normalise_database_url(raw)

    if url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(
            url,
            pool_size=int(os.getenv("DB_POOL_SIZE", "5")),
            max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "10")),
            pool_pre_ping=True,
            pool_recycle=1800,
        )
    logger.info("Database engine ready (%s on %s)", engine.dialect.name, engine.url.host or "local")
    return engine


def init_db(engine: Engine) -> int:
    """Create missing tables and seed the badge catalogue.

    Alembic owns the production schema; this keeps fresh dev and test
    databases usable.  Returns the number of badge rows seeded.
    """
    from harmonic.database.seed import seed_badge_catalog

    Base.metadata.create_all(engine)
    return seed_badge_catalog(engine)


@contextmanager
def get_session(engine: Engine) -> Iterator[Session]:
    """Transaction scope: commit when the block exits cleanly, else roll back."""
    with Session(engine) as session:
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        session.commit()


async def run_db(func: Callable[P, R], *args: P.args, **kwargs: P.kwargs) -> R:
    """Await a blocking database call on a worker thread."""
    return await asyncio.to_thread(func, *args, **kwargs)
