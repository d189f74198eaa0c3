"""
harmonic.api.main — FastAPI application
=========================================

Serve with ``python -m harmonic`` or::

    uvicorn harmonic.api.main:app --reload --port 8000

Every router is mounted under ``/api``.  Browser origins allowed by CORS come
from ``CORS_ALLOW_ORIGINS`` (comma-separated) or, failing that, the single
``FRONTEND_URL``.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from harmonic import __version__  # noqa: E402
from harmonic.api.deps import get_engine  # noqa: E402
from harmonic.api.rate_limit import configure_rate_limiter  # noqa: E402
from harmonic.api.routes import admin, badges, quota, requests  # noqa: E402
from harmonic.database.engine import init_db  # noqa: E402

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def allowed_origins(env: dict[str, str] | None = None) -> list[str]:
    env = os.environ if env is None else env
    listed = env.get("CORS_ALLOW_ORIGINS", "")
    origins = [o.strip().rstrip("/") for o in listed.split(",") if o.strip()]
    if not origins and env.get("FRONTEND_URL", "").strip():
        origins = [env["FRONTEND_URL"].strip().rstrip("/")]
    return origins


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = get_engine()
    seeded = init_db(engine)
    configure_rate_limiter(engine=engine)
    logger.info("Harmonic Exchange API %s up (%d badge rows seeded)", __version__, seeded)
    yield
    engine.dispose()


app = FastAPI(title="Harmonic Exchange API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH"],
    allow_headers=["Authorization", "Content-Type"],
)

for module in (quota, requests, badges, admin):
    app.include_router(module.router, prefix=API_PREFIX)


@app.get(f"{API_PREFIX}/health")
def health():
    return {"status": "ok"}
