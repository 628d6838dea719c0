"""Configuration module for the scanner."""

from dexarb.config.constants import (
    DEFAULT_MIN_LIQUIDITY,
    DEFAULT_MIN_PROFIT_THRESHOLD_PCT,
    DEFAULT_STARTING_NOTIONAL,
    SANITY_CEILING_PERCENT,
)


__all__ = [
    "DEFAULT_MIN_LIQUIDITY",
    "DEFAULT_MIN_PROFIT_THRESHOLD_PCT",
    "DEFAULT_STARTING_NOTIONAL",
    "SANITY_CEILING_PERCENT",
]
