# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Application Configuration
All settings are loaded from environment variables with the matching
defaults of the reference deployment. Override via .env or environment.

Settings is the mutable, environment-facing layer. The scoring code never
reads it directly: MatchingConfig.from_settings() freezes the weights and
thresholds into immutable value objects that are passed into the engine.
"""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ─── Fusion Weights ──────────────────────────────────────────────────────
    text_weight: float = 0.35
    image_weight: float = 0.25
    location_weight: float = 0.25
    time_weight: float = 0.15

    # ─── Thresholds ──────────────────────────────────────────────────────────
    min_threshold: float = 0.40
    high_threshold: float = 0.70

    # ─── Candidate Scan ──────────────────────────────────────────────────────
    # Most-recent-first cap on opposite-type, same-category reports
    candidate_limit: int = 50
    max_date_diff_days: int = 45
    comparison_concurrency: int = Field(1, ge=1)

    # ─── Image Engine ────────────────────────────────────────────────────────
    fingerprint_mode: Literal["ahash", "phash"] = "ahash"
    image_set_limit: int = 3
    image_fetch_timeout_seconds: float = 10.0
    image_max_mb: int = 5

    # ─── Stores ──────────────────────────────────────────────────────────────
    store_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite:///./murshid.db"
    # Seed for the in-memory user directory (admins receive match alerts)
    admin_user_ids: list[str] = Field(default_factory=list)

    # ─── Logging ─────────────────────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @property
    def image_max_bytes(self) -> int:
        return self.image_max_mb * 1024 * 1024


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached singleton Settings instance."""
    return Settings()


# ─── Immutable Scoring Configuration ─────────────────────────────────────────

def _check_sum(weights: list[float], label: str) -> None:
    if any(w < 0 for w in weights):
        raise ValueError(f"{label} weights must be non-negative")
    if not math.isclose(sum(weights), 1.0, abs_tol=1e-9):
        raise ValueError(f"{label} weights must sum to 1.0, got {sum(weights):.4f}")


class MatchWeights(BaseModel):
    """Final-score fusion weights across the four dimensions."""
    model_config = ConfigDict(frozen=True)

    text: float = 0.35
    image: float = 0.25
    location: float = 0.25
    time: float = 0.15

    @model_validator(mode="after")
    def _sum_to_one(self) -> "MatchWeights":
        _check_sum([self.text, self.image, self.location, self.time], "match")
        return self


class TextWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    tfidf: float = 0.5
    jaccard: float = 0.3
    ngram: float = 0.2

    @model_validator(mode="after")
    def _sum_to_one(self) -> "TextWeights":
        _check_sum([self.tfidf, self.jaccard, self.ngram], "text")
        return self


class AttributeWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: float = 0.30
    description: float = 0.40
    color: float = 0.15
    marks: float = 0.10
    category: float = 0.05

    @model_validator(mode="after")
    def _sum_to_one(self) -> "AttributeWeights":
        _check_sum(
            [self.title, self.description, self.color, self.marks, self.category],
            "attribute",
        )
        return self


class ImageWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    phash: float = 0.6
    color: float = 0.4

    @model_validator(mode="after")
    def _sum_to_one(self) -> "ImageWeights":
        _check_sum([self.phash, self.color], "image")
        return self


class MatchingConfig(BaseModel):
    """
    Everything the finder needs to score a candidate, frozen at construction.
    One instance is shared by reference across concurrent matching runs.
    """
    model_config = ConfigDict(frozen=True)

    weights: MatchWeights = Field(default_factory=MatchWeights)
    text_weights: TextWeights = Field(default_factory=TextWeights)
    attribute_weights: AttributeWeights = Field(default_factory=AttributeWeights)
    image_weights: ImageWeights = Field(default_factory=ImageWeights)

    min_threshold: float = Field(0.40, ge=0.0, le=1.0)
    high_threshold: float = Field(0.70, ge=0.0, le=1.0)
    candidate_limit: int = Field(50, ge=1)
    max_date_diff_days: int = Field(45, ge=1)
    image_set_limit: int = Field(3, ge=1)
    comparison_concurrency: int = Field(1, ge=1)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "MatchingConfig":
        settings = settings or get_settings()
        return cls(
            weights=MatchWeights(
                text=settings.text_weight,
                image=settings.image_weight,
                location=settings.location_weight,
                time=settings.time_weight,
            ),
            min_threshold=settings.min_threshold,
            high_threshold=settings.high_threshold,
            candidate_limit=settings.candidate_limit,
            max_date_diff_days=settings.max_date_diff_days,
            image_set_limit=settings.image_set_limit,
            comparison_concurrency=settings.comparison_concurrency,
        )
