"""
harmonic.__main__ — Entry point for ``python -m harmonic``
===========================================================

Wiring:
1. Load .env (secrets, HX_REQUEST_QUOTA_LIMIT).
2. Load config.yaml (port, quota tuning).
3. Configure logging.
4. Serve the FastAPI app with uvicorn (blocking).
"""

from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

from harmonic.config import load_config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("harmonic")


def main() -> None:
    """Bootstrap and serve the Harmonic Exchange API."""
    load_dotenv()

    cfg = load_config(os.getenv("HARMONIC_CONFIG", "config.yaml"))
    logger.info(
        "Config loaded for %s (ask limit %d per %s)",
        cfg.community_name, cfg.request_quota_limit, cfg.quota_policy().window,
    )

    logger.info("Starting Harmonic API on port %d…", cfg.dashboard_port)
    uvicorn.run(
        "harmonic.api.main:app",
        host="0.0.0.0",
        port=cfg.dashboard_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
