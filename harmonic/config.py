"""
harmonic.config — YAML + Environment Configuration Loader
==========================================================

Reads ``config.yaml`` for infrastructure settings (community identity,
dashboard port, ask limit).  The ask limit can be overridden per
deployment through ``HX_REQUEST_QUOTA_LIMIT``; the override wins over the
YAML value and both go through :func:`parse_quota_limit`, so a bad value
quietly falls back to the default of 3.

Usage::

    from harmonic.config import load_config

    cfg = load_config()              # reads ./config.yaml by default
    tracker = QuotaTracker(engine, cfg.quota_policy())
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from harmonic.engine.quota import (
    DEFAULT_QUOTA_LIMIT,
    QuotaPolicy,
    parse_quota_limit,
)

QUOTA_LIMIT_ENV = "HX_REQUEST_QUOTA_LIMIT"


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class HarmonicConfig:
    """Immutable configuration loaded from ``config.yaml`` and the environment."""

    # Identity
    community_name: str

    # Dashboard
    dashboard_port: int

    # Quota
    request_quota_limit: int = DEFAULT_QUOTA_LIMIT

    def quota_policy(self) -> QuotaPolicy:
        return QuotaPolicy(limit=self.request_quota_limit)


def resolve_quota_limit(yaml_value: object = None, env: dict[str, str] | None = None) -> int:
    """Pick the ask limit: environment override first, then YAML, then 3."""
    env = os.environ if env is None else env
    raw = env.get(QUOTA_LIMIT_ENV)
    if raw is not None and raw.strip():
        return parse_quota_limit(raw)
    return parse_quota_limit(None if yaml_value is None else str(yaml_value))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> HarmonicConfig:
    """Read *path* and return a :class:`HarmonicConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return HarmonicConfig(
        community_name=raw["community_name"],
        dashboard_port=int(raw["dashboard_port"]),
        request_quota_limit=resolve_quota_limit(raw.get("request_quota_limit")),
    )
