"""
tests/test_database.py — Engine, Schema Init & Session Helpers
================================================================
"""

from __future__ import annotations

import asyncio
import os
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from harmonic.database.engine import (
    create_db_engine,
    get_session,
    init_db,
    normalise_database_url,
    run_db,
)
from harmonic.database.models import Badge, Profile


def test_create_engine_requires_database_url():
    with patch.dict(os.environ, {}, clear=False):
        os.environ.pop("DATABASE_URL", None)
        with pytest.raises(RuntimeError, match="DATABASE_URL is not set"):
            create_db_engine()


def test_init_db_creates_and_seeds_once():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool,
    )
    assert init_db(engine) == 13
    assert init_db(engine) == 0
    with Session(engine) as session:
        assert session.scalar(select(func.count()).select_from(Badge)) == 13


class TestGetSession:
    def test_commits_on_success(self, db_engine):
        with get_session(db_engine) as session:
            session.add(Profile(id="p1", display_name="One"))
        with Session(db_engine) as session:
            assert session.get(Profile, "p1") is not None

    def test_rolls_back_on_error(self, db_engine):
        with pytest.raises(RuntimeError):
            with get_session(db_engine) as session:
                session.add(Profile(id="p2", display_name="Two"))
                session.flush()
                raise RuntimeError("boom")
        with Session(db_engine) as session:
            assert session.get(Profile, "p2") is None


def test_run_db_runs_sync_function_off_loop():
    assert asyncio.run(run_db(lambda a, b=0: a + b, 2, b=3)) == 5


@pytest.mark.parametrize("raw,expected", [
    ("postgres://u:p@db:5432/hx", "postgresql+psycopg2://u:p@db:5432/hx"),
    ("postgresql://u:p@db/hx", "postgresql+psycopg2://u:p@db/hx"),
    ("postgresql+psycopg2://u@db/hx", "postgresql+psycopg2://u@db/hx"),
    ("sqlite:///local.db", "sqlite:///local.db"),
])
def test_normalise_database_url(raw, expected):
    assert normalise_database_url(raw) == expected


def test_create_engine_accepts_sqlite_url():
    engine = create_db_engine("sqlite://")
    assert engine.dialect.name == "sqlite"
