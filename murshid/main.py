# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: FastAPI Application Entry Point
Creates the app, registers lifespan events, CORS, routers,
and global error handlers.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from murshid.api.middleware.error_handler import register_error_handlers
from murshid.api.routes import matches, reports
from murshid.config import get_settings
from murshid.dependencies import close_services, init_services
from murshid.utils.logger import configure_logging, get_logger

log = get_logger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Startup: configure logging, build stores, image engine and lifecycle manager.
    Shutdown: close the image HTTP client.
    """
    # ── Startup ──────────────────────────────────────────────────────────────
    configure_logging()
    settings = get_settings()

    log.info(
        "murshid_startup",
        version=VERSION,
        store_backend=settings.store_backend,
        fingerprint_mode=settings.fingerprint_mode,
        min_threshold=settings.min_threshold,
        candidate_limit=settings.candidate_limit,
        comparison_concurrency=settings.comparison_concurrency,
    )

    init_services()

    log.info("murshid_ready")
    yield

    # ── Shutdown ─────────────────────────────────────────────────────────────
    await close_services()
    log.info("murshid_shutdown")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Murshid",
        summary="Lost & found matching engine: pairs lost reports with found ones.",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # ── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",   # Vite dev server
            "http://localhost:3000",   # Alternative dev port
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error Handlers ───────────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Routers ──────────────────────────────────────────────────────────────
    app.include_router(reports.router)
    app.include_router(matches.router)

    # ── Health Check ─────────────────────────────────────────────────────────
    @app.get("/health", tags=["health"], summary="Health check")
    async def health() -> dict:
        return {
            "status": "ok",
            "service": "murshid",
            "version": VERSION,
            "store_backend": settings.store_backend,
            "fingerprint_mode": settings.fingerprint_mode,
        }

    return app


# Module-level app instance for uvicorn
app = create_app()
