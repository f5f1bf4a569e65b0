"""Engine settings with environment variable support.

Uses pydantic-settings for typed configuration validation.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class EngineSettings(BaseSettings):
    """Engine configuration loaded from environment variables."""

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Render log events as JSON")

    # Scoring
    pillar_set: Literal["full", "minimal"] = Field(
        default="full", description="Committee pillars (full) or market/ratio pillars only (minimal)"
    )
    default_profile: str = Field(default="particulier", description="Profile used when the operation has none")
    max_missing_penalty: int = Field(default=40, ge=0, le=100, description="Cap on the total missing-data penalty")

    # Financial defaults
    default_interest_rate_pct: float = Field(default=3.5, ge=0, le=20)

    # Guards
    max_collection_items: int = Field(default=200, ge=1, description="Max items kept per input list")
    acceptance_top_n: int | None = Field(default=None, ge=1, description="Keep only the N strongest drivers")

    model_config = {
        "env_prefix": "COMMITTEE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> EngineSettings:
    """Get cached engine settings."""
    return EngineSettings()
