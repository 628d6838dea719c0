"""Mock implementations for testing."""

from tests.mocks.opportunities import make_opportunity
from tests.mocks.price_source import CONSISTENT_RATES, MISPRICED_RATES, StaticPriceSource


__all__ = [
    "CONSISTENT_RATES",
    "MISPRICED_RATES",
    "StaticPriceSource",
    "make_opportunity",
]
