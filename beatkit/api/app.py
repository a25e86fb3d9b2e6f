"""
FastAPI application factory and health endpoint for the preview server.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from beatkit.api.routes import cues, keywords
from beatkit.api.workspace import Workspace

log = structlog.get_logger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    from beatkit.config import config as cfg
    log.info("api.startup", document=cfg.DOCUMENT_PATH or None)
    yield
    workspace = getattr(app.state, "workspace", None)
    if workspace is not None:
        workspace.session.close()
    log.info("api.shutdown")


def create_app(workspace: Optional[Workspace] = None) -> FastAPI:
    """Build the app.  Without *workspace* the document named by config is opened on first request."""
    app = FastAPI(
        title="beatkit preview",
        description="Keywords panel and cue list over one Fountain document",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.workspace = workspace

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(keywords.router, prefix="/keywords", tags=["keywords"])
    app.include_router(cues.router,     prefix="/cues",     tags=["cues"])

    @app.get("/health", tags=["ops"])
    async def health():
        """Liveness probe."""
        return {"status": "ok", "version": VERSION}

    return app


app = create_app()
