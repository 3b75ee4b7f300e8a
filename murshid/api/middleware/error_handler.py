# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Global Error Handler
Converts unhandled exceptions into structured JSON error responses.
Registered on the FastAPI app in main.py.

The matching engine itself never lets these escape its public methods;
they are raised by stores and by the thin HTTP layer.
"""

from __future__ import annotations

import traceback

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from murshid.utils.logger import get_logger

log = get_logger(__name__)


class ReportNotFoundError(KeyError):
    """Raised when a report_id does not exist in the store."""


class MatchNotFoundError(KeyError):
    """Raised when a match_id does not exist in the store."""


class MatchStateError(RuntimeError):
    """Raised when a review action targets a match that is no longer pending."""


class MatchReviewError(RuntimeError):
    """Raised when a review action failed but left the match pending (retryable)."""


class DuplicateMatchError(ValueError):
    """Raised by a store when a (lost, found) pair is already recorded."""


def _error_body(code: str, message: str, detail: str | None = None) -> dict:
    body = {"error": {"code": code, "message": message}}
    if detail:
        body["error"]["detail"] = detail
    return body


def register_error_handlers(app: FastAPI) -> None:
    """
    Register all global exception handlers on the FastAPI application.
    Call this in main.py after creating the app instance.
    """

    @app.exception_handler(ReportNotFoundError)
    async def report_not_found_handler(
        req: Request, exc: ReportNotFoundError
    ) -> JSONResponse:
        log.warning("report_not_found", path=str(req.url), error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=_error_body(
                code="REPORT_NOT_FOUND",
                message=f"Report not found: {exc.args[0] if exc.args else ''}",
            ),
        )

    @app.exception_handler(MatchNotFoundError)
    async def match_not_found_handler(
        req: Request, exc: MatchNotFoundError
    ) -> JSONResponse:
        log.warning("match_not_found", path=str(req.url), error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=_error_body(
                code="MATCH_NOT_FOUND",
                message=f"Match not found: {exc.args[0] if exc.args else ''}",
            ),
        )

    @app.exception_handler(MatchStateError)
    async def match_state_handler(
        req: Request, exc: MatchStateError
    ) -> JSONResponse:
        log.warning("match_state_conflict", path=str(req.url), error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=_error_body(
                code="MATCH_NOT_PENDING",
                message=str(exc),
            ),
        )

    @app.exception_handler(MatchReviewError)
    async def match_review_handler(
        req: Request, exc: MatchReviewError
    ) -> JSONResponse:
        log.error("match_review_failed", path=str(req.url), error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=_error_body(
                code="MATCH_REVIEW_FAILED",
                message=str(exc),
                detail="The match is still pending; retry the request.",
            ),
        )

    @app.exception_handler(Exception)
    async def generic_handler(req: Request, exc: Exception) -> JSONResponse:
        tb = traceback.format_exc()
        log.error(
            "unhandled_exception",
            path=str(req.url),
            error=str(exc),
            exc_type=type(exc).__name__,
            traceback=tb,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                code="INTERNAL_SERVER_ERROR",
                message="An unexpected error occurred.",
            ),
        )
