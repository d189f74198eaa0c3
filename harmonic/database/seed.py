"""
harmonic.database.seed — Badge Catalogue Seeder
================================================

Copies the static catalogue from :mod:`harmonic.engine.badges` into the
``badges`` table so earned awards have rows to reference.

Idempotent: only inserts codes that don't already exist.  Labels or icons
edited in the database are never overwritten.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select

from harmonic.database.engine import get_session
from harmonic.database.models import Badge
from harmonic.engine.badges import BADGE_CATALOG

logger = logging.getLogger(__name__)


def seed_badge_catalog(engine: Engine) -> int:
    """Insert missing catalogue badges.  Returns the number inserted."""
    with get_session(engine) as session:
        existing = set(session.scalars(select(Badge.code)).all())
        inserted = 0
        for badge in BADGE_CATALOG:
            if badge.code in existing:
                continue
            session.add(Badge(
                code=badge.code,
                label=badge.title,
                track=badge.track,
                tier=badge.tier,
                how_to_earn=badge.how_to_earn,
                icon=badge.icon,
            ))
            inserted += 1

    if inserted:
        logger.info("Seeded %d badge catalogue rows", inserted)
    return inserted
