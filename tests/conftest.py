"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

import pytest

from dexarb.config.settings import Settings
from dexarb.config.venues import get_venue
from dexarb.core.event_bus import EventBus
from dexarb.core.types import Quote, Triangle, VenueConfig
from dexarb.telemetry.metrics import MetricsCollector
from dexarb.utils.time import get_timestamp_us
from tests.mocks import CONSISTENT_RATES, MISPRICED_RATES, StaticPriceSource


# =============================================================================
# Venue Fixtures
# =============================================================================


@pytest.fixture
def venue() -> VenueConfig:
    """Trader Joe on Avalanche, 0.3% per trade."""
    return get_venue("traderjoe")


@pytest.fixture
def triangle() -> Triangle:
    """AVAX-JOE-USDC.e triangle."""
    return Triangle.parse("AVAX-JOE-USDC.e")


# =============================================================================
# Quote Fixtures
# =============================================================================


def make_quote(base: str, quote: str, rate: float, liquidity: float = 5000.0) -> Quote:
    """Build a quote stamped with the current time."""
    return Quote(
        pair=(base, quote),
        rate=rate,
        liquidity=liquidity,
        source="test",
        timestamp_us=get_timestamp_us(),
    )


@pytest.fixture
def mispriced_quotes() -> tuple[Quote, Quote, Quote]:
    """A/C, B/C and A/B quotes with a profitable forward cycle."""
    return (
        make_quote("AVAX", "USDC.e", 30.0),
        make_quote("JOE", "USDC.e", 3.0),
        make_quote("AVAX", "JOE", 10.2),
    )


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Single venue, single triangle, no batch pauses."""
    return Settings(
        enabled_venues=["traderjoe"],
        focused_triangles=["AVAX-JOE-USDC.e"],
        min_profit_threshold_pct=0.1,
        min_liquidity=1000.0,
        batch_delay_s=0,
        update_interval_ms=1000,
        random_seed=1,
        _env_file=None,
    )


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def event_bus() -> EventBus:
    """Fresh event bus."""
    return EventBus()


@pytest.fixture
def metrics() -> MetricsCollector:
    """Fresh metrics collector."""
    return MetricsCollector()


@pytest.fixture
def mispriced_source() -> StaticPriceSource:
    """Static source quoting the mispriced AVAX-JOE-USDC.e triangle."""
    return StaticPriceSource(MISPRICED_RATES)


@pytest.fixture
def consistent_source() -> StaticPriceSource:
    """Static source with no cross-rate dislocation."""
    return StaticPriceSource(CONSISTENT_RATES)
