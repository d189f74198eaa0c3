"""
Harmonic Exchange — Gift-Economy Marketplace Backend
=====================================================
Members post offers, ask to receive them, and earn recognition for giving.
This package holds the parts of the exchange that carry real rules: the
trailing-window ask quota, the badge tier ladder, and the request lifecycle
that feeds both.

Package layout::

    harmonic/
    ├── config.py          # YAML + env → typed Python config
    ├── exceptions.py      # Error taxonomy shared by engine and services
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # ORM models (profiles, offers, requests, badges…)
    │   └── seed.py        # Badge catalogue seeder
    ├── engine/
    │   ├── quota.py       # Quota policy, snapshot, limit parsing (pure)
    │   └── badges.py      # Tier thresholds, catalogue, streaks (pure)
    ├── services/
    │   ├── quota_service.py    # QuotaTracker: counts asks in the window
    │   ├── badge_service.py    # Lifetime counts, streaks, badge awards
    │   ├── request_service.py  # Request creation + status transitions
    │   └── admin_service.py    # Audit-logged admin mutations
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # JWT auth + DB dependencies
        ├── rate_limit.py  # Admin mutation throttle
        └── routes/        # Quota, request and badge endpoints
"""

__version__ = "0.1.0"
