"""
FastAPI application: REST adapter for the CareScan assistant.

Usage:
    python run_api.py

Or directly:
    uvicorn adapters.rest.app:app --host 0.0.0.0 --port 8000 --reload
"""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Ensure src/ is on sys.path when invoked via uvicorn directly
_src_dir = Path(__file__).resolve().parent.parent.parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from infrastructure.config import Settings, configure_logging
from factory import ServiceFactory
from adapters.rest.dependencies import SESSION_HEADER, set_factory
from adapters.rest.routers import auth, consult, profile, history

__version__ = "0.1.0"


def create_app(factory: Optional[ServiceFactory] = None) -> FastAPI:
    """Build the API. Tests pass a pre-wired factory (e.g. with a fake LLM)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize ServiceFactory on startup."""
        active = factory
        if active is None:
            config = Settings.from_env(project_root=_src_dir.parent)
            configure_logging(config.log_level)
            active = ServiceFactory(config)
        await active.initialize()
        set_factory(active)
        yield
        set_factory(None)

    app = FastAPI(
        title="CareScan Assistant",
        version=__version__,
        description="Patient login and personalized medication consultation API.",
        lifespan=lifespan,
    )

    # CORS: permissive for development; tighten allowed_origins in production
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[SESSION_HEADER],
    )

    app.include_router(auth.router)
    app.include_router(auth.login_router)
    app.include_router(consult.router)
    app.include_router(profile.router)
    app.include_router(history.router)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
