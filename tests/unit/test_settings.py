"""
Unit tests for settings loading and validation.
"""

from collections.abc import Iterator

import pytest
from pydantic import ValidationError

from dexarb.config.constants import DEFAULT_MIN_LIQUIDITY, DEFAULT_MIN_PROFIT_THRESHOLD_PCT
from dexarb.config.settings import Settings, get_settings
from dexarb.config.venues import VENUES


@pytest.fixture
def clean_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        """Test defaults cover every venue and the default thresholds."""
        settings = Settings(_env_file=None)

        assert settings.min_profit_threshold_pct == DEFAULT_MIN_PROFIT_THRESHOLD_PCT
        assert settings.min_liquidity == DEFAULT_MIN_LIQUIDITY
        assert settings.enabled_venues == list(VENUES)
        assert settings.price_source == "simulated"
        assert len(settings.triangles) == len(settings.focused_triangles)

    def test_computed_properties(self, settings: Settings) -> None:
        assert [v.key for v in settings.venues] == ["traderjoe"]
        assert settings.triangles[0].assets == ("AVAX", "JOE", "USDC.e")
        assert settings.update_interval_s == 1.0

    def test_unknown_venue_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Unknown venues: nowhere"):
            Settings(enabled_venues=["traderjoe", "nowhere"], _env_file=None)

    def test_malformed_triangle_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(focused_triangles=["AVAX-JOE"], _env_file=None)

    def test_interval_lower_bound(self) -> None:
        """Test that polling faster than once a second is rejected."""
        with pytest.raises(ValidationError):
            Settings(update_interval_ms=500, _env_file=None)

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test DEXARB_* variables override defaults."""
        monkeypatch.setenv("DEXARB_MIN_LIQUIDITY", "2500")
        monkeypatch.setenv("DEXARB_ENABLED_VENUES", '["gmx", "camelot"]')
        monkeypatch.setenv("DEXARB_PRICE_SOURCE", "dexscreener")

        settings = Settings(_env_file=None)

        assert settings.min_liquidity == 2500.0
        assert settings.enabled_venues == ["gmx", "camelot"]
        assert settings.price_source == "dexscreener"

    def test_get_settings_cached(
        self,
        monkeypatch: pytest.MonkeyPatch,
        clean_settings_cache: None,
    ) -> None:
        monkeypatch.setenv("DEXARB_BATCH_SIZE", "7")

        first = get_settings()

        assert first.batch_size == 7
        assert get_settings() is first
