"""
Numeric helpers for rate and profit calculations.

Quotes arrive from loosely validated public APIs, so every helper here
tolerates None, NaN and infinities instead of raising.
"""

import math


def is_valid_rate(value: float | None) -> bool:
    """
    Check that a rate is present, finite and strictly positive.

    Args:
        value: Candidate rate.

    Returns:
        True if the rate can be used in a conversion.
    """
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value) and value > 0
    except TypeError:
        return False


def finite_or(value: float | None, default: float = 0.0) -> float:
    """
    Return value if it is a finite number, otherwise default.

    Example:
        >>> finite_or(float("inf"))
        0.0
        >>> finite_or(2.5)
        2.5
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value) if math.isfinite(value) else default
    except TypeError:
        return default


def non_negative(value: float | None, default: float = 0.0) -> float:
    """Clamp to a finite non-negative number."""
    value = finite_or(value, default)
    return value if value >= 0 else default


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def format_profit(profit_pct: float) -> str:
    """
    Format profit percentage for display.

    Example:
        >>> format_profit(1.04321)
        '+1.0432%'
    """
    sign = "+" if profit_pct >= 0 else ""
    return f"{sign}{profit_pct:.4f}%"


def format_usd(amount: float) -> str:
    """Format a dollar amount with thousand separators."""
    return f"${amount:,.2f}"
