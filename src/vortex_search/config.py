"""Centralized configuration for vortex-search using Pydantic Settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``VORTEX_*`` environment variables.

    Values are validated when the object is created, so a bad environment
    fails at startup rather than on the first query.
    """

    model_config = SettingsConfigDict(
        env_prefix="VORTEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Ranking
    bm25_k1: float = Field(default=1.5, gt=0.0, le=3.0, description="BM25 term frequency saturation")
    bm25_b: float = Field(default=0.75, ge=0.0, le=1.0, description="BM25 document length normalization")

    # Query processing
    enable_fuzzy: bool = Field(default=True, description="Correct unknown query tokens against the vocabulary")
    max_edit_distance: int = Field(default=2, ge=0, description="Largest edit distance accepted as a correction")
    enable_synonyms: bool = Field(default=True, description="Expand queries with the synonym table")

    # Persistence
    snapshot_path: Path | None = Field(default=None, description="Default JSON snapshot location for save/load")

    # Logging
    log_level: Literal["debug", "info", "warning", "error", "critical"] = Field(
        default="info", description="Root logging level"
    )
    log_json: bool = Field(default=True, description="Emit structured JSON log lines")

    @field_validator("log_level", mode="before")
    @classmethod
    def _lowercase_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value
