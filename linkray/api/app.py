"""FastAPI application factory.

Lifespan
--------
On startup the app opens a single SQLite connection, initialises the schema
and wires a :class:`~linkray.service.ScanService` into
``request.app.state.service``.  On shutdown it closes the connection cleanly.
Tests replace ``app.state.service`` with a service built from stubs.

Routers
-------
    /api/analyze       → quick (single page) and deep (crawl) analysis
    /api/recent        → the caller's most recent scans
    /healthz           → liveness probe
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from linkray.api.routers import analyze as analyze_router
from linkray.api.routers import recent as recent_router
from linkray.config import settings
from linkray.db import get_connection, init_db
from linkray.errors import InternalError, LinkRayError
from linkray.logging_setup import configure_logging
from linkray.service import build_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB and build the service on startup; close the DB on shutdown."""
    conn = get_connection()
    init_db(conn)
    app.state.db = conn
    app.state.service = build_service(conn, settings)
    try:
        yield
    finally:
        conn.close()


def _error_response(error: LinkRayError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, "error": error.to_dict()},
    )


def add_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LinkRayError)
    async def linkray_error_handler(request: Request, exc: LinkRayError) -> JSONResponse:
        logger.info("%s %s failed: %s", request.method, request.url.path, exc.kind.value)
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": {"kind": "invalid_request", "message": "Request body is invalid"},
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error_response(InternalError())


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    configure_logging(settings.log_level)

    app = FastAPI(
        title="LinkRay API",
        description=(
            "Submit a URL and receive an AI-generated trust assessment: "
            "risk score, category, summary and tags."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    add_exception_handlers(app)

    app.include_router(analyze_router.router, prefix="/api/analyze", tags=["analyze"])
    app.include_router(recent_router.router, prefix="/api/recent", tags=["recent"])

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    return app


# Module-level instance used by uvicorn:
#   uvicorn linkray.api.app:app --reload
app = create_app()
