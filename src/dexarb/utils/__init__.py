"""Utility functions for the arbitrage scanner."""

from dexarb.utils.math import (
    finite_or,
    format_profit,
    is_valid_rate,
    non_negative,
)
from dexarb.utils.time import (
    LatencyTimer,
    format_timestamp_us,
    get_timestamp_ms,
    get_timestamp_us,
)


__all__ = [
    "LatencyTimer",
    "finite_or",
    "format_profit",
    "format_timestamp_us",
    "get_timestamp_ms",
    "get_timestamp_us",
    "is_valid_rate",
    "non_negative",
]
