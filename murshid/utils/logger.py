# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Structured Logging
JSON-formatted logs via structlog. Matching runs bind report_id (and
match_id for lifecycle actions) so every comparison line is traceable.

Two processors are specific to matching logs:
  _strip_url_query   image URLs lose their query string, which on signed
                     CDN links carries an access token
  _round_scores      *_score / final floats are cut to 4 places
"""

import logging
import sys
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import structlog
from structlog.types import EventDict, Processor

from murshid.config import get_settings

APP_NAME = "murshid"
URL_KEYS = ("url", "image_url")
SCORE_PRECISION = 4


def _add_app_info(logger: Any, method: str, event_dict: EventDict) -> EventDict:
    event_dict["app"] = APP_NAME
    return event_dict


def _drop_color_message_key(logger: Any, method: str, event_dict: EventDict) -> EventDict:
    """Remove uvicorn's color_message to keep logs clean."""
    event_dict.pop("color_message", None)
    return event_dict


def _strip_url_query(logger: Any, method: str, event_dict: EventDict) -> EventDict:
    for key in URL_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and ("?" in value or "#" in value):
            parts = urlsplit(value)
            event_dict[key] = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
    return event_dict


def _round_scores(logger: Any, method: str, event_dict: EventDict) -> EventDict:
    for key, value in event_dict.items():
        if isinstance(value, float) and (key.endswith("_score") or key == "final"):
            event_dict[key] = round(value, SCORE_PRECISION)
    return event_dict


def build_processors(debug: bool) -> list[Processor]:
    """Processor chain: console renderer when debugging, JSON otherwise."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _add_app_info,
        _drop_color_message_key,
        _strip_url_query,
        _round_scores,
    ]
    if debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    return processors


def configure_logging() -> None:
    """Configure structlog and stdlib logging once at application startup."""
    settings = get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    debug = settings.log_level == "DEBUG"

    structlog.configure(
        processors=build_processors(debug),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stdout),
        cache_logger_on_first_use=True,
    )

    # stdlib passthrough for uvicorn / fastapi
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    # SQL statement logging only when debugging
    logging.getLogger("sqlalchemy.engine").setLevel(log_level if debug else logging.WARNING)


def get_logger(name: str = APP_NAME) -> structlog.BoundLogger:
    """
    Return a structlog bound logger.

        log = get_logger(__name__)
        log.info("candidate_scored", candidate_id=cid, final=0.62)

    Bind a report for a whole matching run:
        with structlog.contextvars.bound_contextvars(report_id=report_id):
            log.info("match_search_start")
    """
    return structlog.get_logger(name)
