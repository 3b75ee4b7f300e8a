# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: FastAPI Dependencies
Singleton providers for the stores, the image engine, the match finder
and the lifecycle manager.
Everything is instantiated once at startup via the lifespan event in
main.py and stored here as module-level singletons.
Route handlers access them via FastAPI's Depends() injection.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from murshid.config import MatchingConfig, get_settings
from murshid.core.lifecycle import MatchLifecycleManager
from murshid.core.match_store import InMemoryMatchStore, SqlMatchStore
from murshid.core.notifier import (
    InMemoryNotificationSink,
    InMemoryUserDirectory,
    Notifier,
    SqlNotificationSink,
    SqlUserDirectory,
)
from murshid.core.report_store import InMemoryReportStore, ReportStore, SqlReportStore
from murshid.db.session import create_db_engine, init_db
from murshid.modules.image_similarity import (
    DefaultFingerprinter,
    HttpImageLoader,
    ImageSimilarityEngine,
)
from murshid.modules.matching import MatchFinder
from murshid.utils.logger import get_logger

log = get_logger(__name__)

# ─── Service Singletons ───────────────────────────────────────────────────────

_report_store: ReportStore | None = None
_image_loader: HttpImageLoader | None = None
_finder: MatchFinder | None = None
_lifecycle: MatchLifecycleManager | None = None


def init_services() -> None:
    """
    Build the object graph based on STORE_BACKEND config.
    Called once during application lifespan startup.
    """
    global _report_store, _image_loader, _finder, _lifecycle
    settings = get_settings()
    config = MatchingConfig.from_settings(settings)

    if settings.store_backend == "sql":
        log.info("init_stores", backend="sql")
        engine = create_db_engine(settings.database_url)
        init_db(engine)
        report_store: ReportStore = SqlReportStore(engine)
        match_store = SqlMatchStore(engine)
        users = SqlUserDirectory(engine)
        sink = SqlNotificationSink(engine)
    else:
        log.info("init_stores", backend="memory", admins=len(settings.admin_user_ids))
        report_store = InMemoryReportStore()
        match_store = InMemoryMatchStore()
        users = InMemoryUserDirectory(settings.admin_user_ids)
        sink = InMemoryNotificationSink()

    _image_loader = HttpImageLoader(
        timeout_seconds=settings.image_fetch_timeout_seconds,
        max_bytes=settings.image_max_bytes,
    )
    image_engine = ImageSimilarityEngine(
        DefaultFingerprinter(_image_loader, mode=settings.fingerprint_mode),
        weights=config.image_weights,
        set_limit=config.image_set_limit,
    )

    _report_store = report_store
    _finder = MatchFinder(report_store, image_engine, config)
    _lifecycle = MatchLifecycleManager(
        finder=_finder,
        report_store=report_store,
        match_store=match_store,
        notifier=Notifier(users, sink),
    )


async def close_services() -> None:
    """Release network resources. Called during lifespan shutdown."""
    global _image_loader
    if _image_loader is not None:
        await _image_loader.aclose()
        _image_loader = None


def get_report_store() -> ReportStore:
    if _report_store is None:
        raise RuntimeError(
            "ReportStore has not been initialised. "
            "Ensure init_services() is called during app lifespan startup."
        )
    return _report_store


def get_finder() -> MatchFinder:
    if _finder is None:
        raise RuntimeError(
            "MatchFinder has not been initialised. "
            "Ensure init_services() is called during app lifespan startup."
        )
    return _finder


def get_lifecycle() -> MatchLifecycleManager:
    """
    FastAPI dependency: inject the lifecycle manager into route handlers.

    Usage in a route:
        @router.post("/matches/{match_id}/confirm")
        def confirm(match_id: str, lifecycle: LifecycleDep):
            ...
    """
    if _lifecycle is None:
        raise RuntimeError(
            "MatchLifecycleManager has not been initialised. "
            "Ensure init_services() is called during app lifespan startup."
        )
    return _lifecycle


# Annotated type aliases for clean route signatures
ReportStoreDep = Annotated[ReportStore, Depends(get_report_store)]
FinderDep = Annotated[MatchFinder, Depends(get_finder)]
LifecycleDep = Annotated[MatchLifecycleManager, Depends(get_lifecycle)]
