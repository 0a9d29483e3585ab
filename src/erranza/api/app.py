# src/erranza/api/app.py
"""
FastAPI application wiring.

Creates the `FastAPI` instance and configures CORS for the Erranza web frontend.
Endpoints live in `erranza.api.routes`; matching logic in `erranza.recommender`.
"""

from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from erranza.core.logging import configure_logging

from .routes import router

_LOCALHOST_ORIGIN_REGEX = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"


def _cors_origins() -> tuple[list[str], str | None]:
    """Read CORS origins from env.

    - ERRANZA_CORS_ORIGINS="https://erranza.app,http://localhost:5173"
    - ERRANZA_CORS_ALLOW_LOCAL=0 disables the localhost allowance used when no origins are listed
    """
    origins = [s.strip() for s in os.getenv("ERRANZA_CORS_ORIGINS", "").split(",") if s.strip()]
    allow_local = os.getenv("ERRANZA_CORS_ALLOW_LOCAL", "1").strip().lower() in {"1", "true", "yes", "y"}
    regex = _LOCALHOST_ORIGIN_REGEX if allow_local and not origins else None
    return origins, regex


configure_logging()

app = FastAPI(title="Erranza Matching API", version="0.1.0")

origins, origin_regex = _cors_origins()
if origins or origin_regex:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_origin_regex=origin_regex,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(router)
