"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dexarb.config.constants import (
    DEFAULT_BATCH_DELAY_S,
    DEFAULT_BATCH_SIZE,
    DEFAULT_HISTORY_SIZE,
    DEFAULT_MIN_LIQUIDITY,
    DEFAULT_MIN_PROFIT_THRESHOLD_PCT,
    DEFAULT_STARTING_NOTIONAL,
    DEFAULT_UPDATE_INTERVAL_MS,
    MIN_UPDATE_INTERVAL_MS,
)
from dexarb.config.venues import DEFAULT_FOCUSED_TRIANGLES, VENUES, get_venue
from dexarb.core.types import Triangle, VenueConfig


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via DEXARB_* environment variables.
    List values are given as JSON, e.g.
    DEXARB_ENABLED_VENUES='["traderjoe", "raydium"]'.
    """

    model_config = SettingsConfigDict(
        env_prefix="DEXARB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Viability Thresholds
    # =========================================================================

    min_profit_threshold_pct: float = Field(
        default=DEFAULT_MIN_PROFIT_THRESHOLD_PCT,
        ge=-100.0,
        le=100.0,
        description="Minimum net profit in percent for an opportunity to be viable",
    )

    min_liquidity: float = Field(
        default=DEFAULT_MIN_LIQUIDITY,
        ge=0.0,
        description="Minimum depth of the shallowest leg for an opportunity to be viable",
    )

    starting_notional: float = Field(
        default=DEFAULT_STARTING_NOTIONAL,
        gt=0.0,
        description="Hypothetical cycle size used to express gas as a percentage",
    )

    # =========================================================================
    # Scanning
    # =========================================================================

    enabled_venues: list[str] = Field(
        default_factory=lambda: list(VENUES),
        description="Venue keys to scan",
    )

    focused_triangles: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FOCUSED_TRIANGLES),
        description="Triangles to evaluate, written A-B-C",
    )

    update_interval_ms: int = Field(
        default=DEFAULT_UPDATE_INTERVAL_MS,
        ge=MIN_UPDATE_INTERVAL_MS,
        description="Delay between scans in milliseconds",
    )

    batch_size: int = Field(
        default=DEFAULT_BATCH_SIZE,
        ge=1,
        le=50,
        description="Triangles evaluated concurrently per batch",
    )

    batch_delay_s: float = Field(
        default=DEFAULT_BATCH_DELAY_S,
        ge=0.0,
        le=60.0,
        description="Pause between batches to respect upstream rate limits",
    )

    history_size: int = Field(
        default=DEFAULT_HISTORY_SIZE,
        ge=1,
        le=10_000,
        description="Most recent opportunities retained in memory",
    )

    # =========================================================================
    # Price Sources
    # =========================================================================

    price_source: Literal["simulated", "dexscreener"] = Field(
        default="simulated",
        description="Quote provider; dexscreener falls back to simulated quotes",
    )

    simulated_latency: bool = Field(
        default=False,
        description="Add per-chain API latency to simulated quotes",
    )

    random_seed: int | None = Field(
        default=None,
        description="Seed for simulated quotes and gas sampling",
    )

    # =========================================================================
    # Operation
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional log file path",
    )

    export_on_exit: Path | None = Field(
        default=None,
        description="Write a JSON export to this path when the CLI exits",
    )

    dashboard_host: str = Field(default="127.0.0.1")
    dashboard_port: int = Field(default=8000, ge=1, le=65535)

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("enabled_venues", mode="after")
    @classmethod
    def validate_venues(cls, v: list[str]) -> list[str]:
        """Ensure every venue is registered."""
        unknown = [key for key in v if key not in VENUES]
        if unknown:
            raise ValueError(f"Unknown venues: {', '.join(unknown)}")
        return v

    @field_validator("focused_triangles", mode="after")
    @classmethod
    def validate_triangles(cls, v: list[str]) -> list[str]:
        """Ensure triangles use the A-B-C notation."""
        for text in v:
            Triangle.parse(text)
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def venues(self) -> list[VenueConfig]:
        """Enabled venue configurations."""
        return [get_venue(key) for key in self.enabled_venues]

    @property
    def triangles(self) -> list[Triangle]:
        """Parsed focused triangles."""
        return [Triangle.parse(text) for text in self.focused_triangles]

    @property
    def update_interval_s(self) -> float:
        return self.update_interval_ms / 1000.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()
