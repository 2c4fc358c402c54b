from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .errors import OutreachError

from .api.activity import router as activity_router
from .api.assignments import router as assignments_router
from .api.base import router as base_router
from .api.catalogs import router as catalogs_router
from .api.contacts import router as contacts_router
from .api.team import router as team_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Outreach Desk API",
        version=getattr(settings, "app_version", "0.1.0"),
    )

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Error envelope: one human-readable message per failure ---
    @app.exception_handler(OutreachError)
    async def outreach_error_handler(request: Request, exc: OutreachError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    # --- Health / meta ---
    @app.get("/health", tags=["meta"])
    def health() -> Dict[str, Any]:
        return {
            "ok": True,
            "env": settings.env,
            "store": settings.store_backend,
            "api_base": settings.public_api_base,
        }

    @app.get("/version", tags=["meta"])
    def version() -> Dict[str, Any]:
        return {"version": settings.app_version}

    # --- API routers ---
    app.include_router(contacts_router)
    app.include_router(base_router)
    app.include_router(assignments_router)
    app.include_router(activity_router)
    app.include_router(team_router)
    app.include_router(catalogs_router)

    return app


app = create_app()


def run() -> None:
    logging.basicConfig(level=getattr(logging, str(settings.log_level).upper(), logging.INFO))
    import uvicorn

    # reload should be True in local dev, False in prod.
    uvicorn.run(
        "outreach.main:app",
        host=settings.host,
        port=int(settings.port),
        reload=bool(settings.reload),
    )
