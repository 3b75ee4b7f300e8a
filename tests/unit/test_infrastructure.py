# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Infrastructure smoke tests.
Config loading and weight validation, score helpers, log processors,
models, and the HTTP surface over the in-memory backend.
"""

from datetime import date

import pytest
from pydantic import ValidationError


# ─── Config ──────────────────────────────────────────────────────────────────

def test_settings_load_defaults():
    from murshid.config import Settings
    s = Settings(_env_file=None, log_level="INFO")
    assert s.text_weight == 0.35
    assert s.image_weight == 0.25
    assert s.location_weight == 0.25
    assert s.time_weight == 0.15
    assert s.min_threshold == 0.40
    assert s.candidate_limit == 50
    assert s.max_date_diff_days == 45
    assert s.fingerprint_mode == "ahash"
    assert s.store_backend == "memory"
    assert s.comparison_concurrency == 1


def test_settings_image_max_bytes():
    from murshid.config import Settings
    s = Settings(_env_file=None, image_max_mb=2)
    assert s.image_max_bytes == 2 * 1024 * 1024


def test_settings_rejects_unknown_fingerprint_mode():
    from murshid.config import Settings
    with pytest.raises(ValidationError):
        Settings(_env_file=None, fingerprint_mode="wavelet")


def test_matching_config_from_settings():
    from murshid.config import MatchingConfig, Settings
    s = Settings(
        _env_file=None,
        text_weight=0.4,
        image_weight=0.2,
        location_weight=0.25,
        time_weight=0.15,
        min_threshold=0.5,
        candidate_limit=10,
        comparison_concurrency=3,
    )
    config = MatchingConfig.from_settings(s)
    assert config.weights.text == 0.4
    assert config.weights.image == 0.2
    assert config.min_threshold == 0.5
    assert config.candidate_limit == 10
    assert config.comparison_concurrency == 3


def test_matching_config_from_settings_rejects_bad_weight_sum():
    from murshid.config import MatchingConfig, Settings
    s = Settings(_env_file=None, text_weight=0.9)
    with pytest.raises(ValidationError):
        MatchingConfig.from_settings(s)


def test_default_weight_groups_sum_to_one():
    from murshid.config import AttributeWeights, ImageWeights, MatchWeights, TextWeights
    m, t, a, i = MatchWeights(), TextWeights(), AttributeWeights(), ImageWeights()
    assert m.text + m.image + m.location + m.time == pytest.approx(1.0)
    assert t.tfidf + t.jaccard + t.ngram == pytest.approx(1.0)
    assert a.title + a.description + a.color + a.marks + a.category == pytest.approx(1.0)
    assert i.phash + i.color == pytest.approx(1.0)


@pytest.mark.parametrize("kwargs", [
    {"text": 0.5},
    {"text": -0.1, "image": 0.7},
])
def test_match_weights_validation(kwargs):
    from murshid.config import MatchWeights
    with pytest.raises(ValidationError):
        MatchWeights(**kwargs)


def test_matching_config_is_frozen():
    from murshid.config import MatchingConfig
    config = MatchingConfig()
    with pytest.raises(ValidationError):
        config.min_threshold = 0.1


# ─── Score helpers ───────────────────────────────────────────────────────────

def test_round_score_halves_go_up():
    from murshid.utils.scoring import round_score
    assert round_score(0.125) == 0.13
    assert round_score(0.124) == 0.12
    assert round_score(1.0) == 1.0


def test_to_percent():
    from murshid.utils.scoring import to_percent
    assert to_percent(0.875) == 88
    assert to_percent(0.4) == 40


# ─── Logging ─────────────────────────────────────────────────────────────────

def test_log_strips_query_from_image_urls():
    from murshid.utils.logger import _strip_url_query
    event = {
        "event": "image_load_failed",
        "url": "https://cdn.example/items/1.jpg?X-Amz-Signature=secret",
        "error": "timeout",
    }
    out = _strip_url_query(None, "warning", event)
    assert out["url"] == "https://cdn.example/items/1.jpg"
    assert out["error"] == "timeout"


def test_log_rounds_score_fields_only():
    from murshid.utils.logger import _round_scores
    out = _round_scores(None, "info", {"final_score": 0.123456789, "final": 0.987654, "elapsed_ms": 1.23456})
    assert out["final_score"] == 0.1235
    assert out["final"] == 0.9877
    assert out["elapsed_ms"] == 1.23456


def test_build_processors_picks_renderer():
    import structlog
    from murshid.utils.logger import build_processors
    assert isinstance(build_processors(debug=False)[-1], structlog.processors.JSONRenderer)
    assert isinstance(build_processors(debug=True)[-1], structlog.dev.ConsoleRenderer)


# ─── Models ──────────────────────────────────────────────────────────────────

def test_report_rejects_out_of_range_coordinates():
    from murshid.models.report import Report
    with pytest.raises(ValidationError):
        Report(
            user_id="u", type="lost", category="bags", title="t", description="d",
            date_occurred=date(2024, 1, 1), location_lat=95.0,
        )


def test_report_requires_type_and_date():
    from murshid.models.report import Report
    with pytest.raises(ValidationError):
        Report(user_id="u", category="bags", title="t", description="d")


def test_report_caps_images():
    from murshid.models.report import Report
    with pytest.raises(ValidationError):
        Report(
            user_id="u", type="found", category="bags", title="t", description="d",
            date_occurred=date(2024, 1, 1), images=[f"{i}.jpg" for i in range(6)],
        )


def test_side_helpers():
    from murshid.models.match import MatchCandidate, Side
    from murshid.models.report import ReportType
    assert Side.of(ReportType.LOST) is Side.LOST
    assert Side.LOST.other() is Side.FOUND
    c = MatchCandidate(lost_report_id="l", found_report_id="f")
    assert c.report_id(Side.FOUND) == "f"
    assert c.pair() == ("l", "f")


# ─── API Smoke Tests ─────────────────────────────────────────────────────────
# ASGITransport + asgi_lifespan so the FastAPI lifespan (init_services) runs.

from contextlib import asynccontextmanager

from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient


@asynccontextmanager
async def lifespan_client():
    """
    Spin up the full app on the in-memory backend with two reports
    seeded, then yield an AsyncClient pointed at it.
    """
    import os
    os.environ["STORE_BACKEND"] = "memory"
    os.environ["LOG_LEVEL"] = "WARNING"
    os.environ["ADMIN_USER_IDS"] = '["admin-1"]'

    # Clear settings cache so env overrides above take effect
    from murshid.config import get_settings
    get_settings.cache_clear()

    from murshid.main import create_app
    test_app = create_app()

    async with LifespanManager(test_app) as manager:
        from murshid.dependencies import get_report_store
        from murshid.models.report import Report, ReportType

        store = get_report_store()
        store.add_report(Report(
            id="A", user_id="owner-a", type=ReportType.LOST, category="electronics",
            title="Black iPhone 13", description="Black iPhone in a clear case",
            location_city="Delhi", location_lat=28.70, location_lng=77.10,
            date_occurred=date(2024, 1, 10),
        ))
        store.add_report(Report(
            id="B", user_id="owner-b", type=ReportType.FOUND, category="electronics",
            title="iPhone 13 black", description="Found a black iPhone with a clear case",
            location_city="Delhi", location_lat=28.705, location_lng=77.105,
            date_occurred=date(2024, 1, 12),
        ))

        transport = ASGITransport(app=manager.app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


@pytest.mark.asyncio
async def test_health_endpoint():
    async with lifespan_client() as c:
        resp = await c.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["service"] == "murshid"
    assert data["store_backend"] == "memory"


@pytest.mark.asyncio
async def test_candidates_preview_does_not_save():
    async with lifespan_client() as c:
        preview = await c.get("/reports/A/candidates")
        listed = await c.get("/matches")
    assert preview.status_code == 200
    [candidate] = preview.json()
    assert candidate["lost_report_id"] == "A"
    assert candidate["found_report_id"] == "B"
    assert listed.json() == []


@pytest.mark.asyncio
async def test_auto_match_then_confirm_flow():
    async with lifespan_client() as c:
        run = await c.post("/reports/A/auto-match")
        again = await c.post("/reports/A/auto-match")
        pending = await c.get("/matches", params={"status": "pending"})
        match_id = pending.json()[0]["id"]
        for_report = await c.get("/reports/B/matches")

        confirm = await c.post(f"/matches/{match_id}/confirm")
        reject_after = await c.post(f"/matches/{match_id}/reject")
        confirmed = await c.get("/matches", params={"status": "confirmed"})

    assert run.json() == {"report_id": "A", "matches_created": 1}
    assert again.json()["matches_created"] == 0
    assert pending.json()[0]["lost_report"]["title"] == "Black iPhone 13"
    assert [m["id"] for m in for_report.json()] == [match_id]

    assert confirm.status_code == 200
    assert confirm.json() == {"ok": True}
    assert reject_after.status_code == 409
    assert reject_after.json()["error"]["code"] == "MATCH_NOT_PENDING"
    assert confirmed.json()[0]["found_report"]["status"] == "matched"


@pytest.mark.asyncio
async def test_reject_flow():
    async with lifespan_client() as c:
        await c.post("/reports/A/auto-match")
        match_id = (await c.get("/matches")).json()[0]["id"]
        reject = await c.post(f"/matches/{match_id}/reject")
        confirm_after = await c.post(f"/matches/{match_id}/confirm")
    assert reject.json() == {"ok": True}
    assert confirm_after.status_code == 409


@pytest.mark.asyncio
async def test_unknown_ids_return_404():
    async with lifespan_client() as c:
        report = await c.post("/reports/missing/auto-match")
        candidates = await c.get("/reports/missing/candidates")
        confirm = await c.post("/matches/missing/confirm")
        reject = await c.post("/matches/missing/reject")
    assert report.status_code == 404
    assert report.json()["error"]["code"] == "REPORT_NOT_FOUND"
    assert candidates.status_code == 404
    assert confirm.status_code == 404
    assert confirm.json()["error"]["code"] == "MATCH_NOT_FOUND"
    assert reject.status_code == 404


@pytest.mark.asyncio
async def test_invalid_status_filter_is_422():
    async with lifespan_client() as c:
        resp = await c.get("/matches", params={"status": "maybe"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_confirm_write_failure_is_retryable_503():
    from murshid.dependencies import get_lifecycle

    class FailingStatusWrites:
        def __init__(self, inner):
            self._inner = inner

        def __getattr__(self, name):
            return getattr(self._inner, name)

        def update_report_status(self, report_id, status):
            raise ConnectionError("database unavailable")

    async with lifespan_client() as c:
        await c.post("/reports/A/auto-match")
        match_id = (await c.get("/matches")).json()[0]["id"]

        lifecycle = get_lifecycle()
        real_store = lifecycle.report_store
        lifecycle.report_store = FailingStatusWrites(real_store)
        failed = await c.post(f"/matches/{match_id}/confirm")
        lifecycle.report_store = real_store

        still_pending = await c.get("/matches", params={"status": "pending"})
        retry = await c.post(f"/matches/{match_id}/confirm")

    assert failed.status_code == 503
    assert failed.json()["error"]["code"] == "MATCH_REVIEW_FAILED"
    assert [m["id"] for m in still_pending.json()] == [match_id]
    assert retry.json() == {"ok": True}
