"""
Type definitions for the arbitrage scanner.

This module contains all dataclasses, enums and Protocol definitions
used throughout the application. Value records are frozen and use
slots so they can be shared freely between the scanner, the analytics
and the dashboard.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from dexarb.config.constants import LEGS_PER_CYCLE


# =============================================================================
# Enums
# =============================================================================


class CycleDirection(str, Enum):
    """
    Direction of a triangular cycle over assets (A, B, C).

    Both directions start and end in C. FORWARD trades C->A->B->C,
    which is the cycle A->B->C->A; REVERSE trades C->B->A->C.
    """

    FORWARD = "A→B→C→A"
    REVERSE = "A→C→B→A"

    def route(self, assets: tuple[str, str, str]) -> str:
        """Render the trade route starting and ending in asset C."""
        a, b, c = assets
        hops = (c, a, b, c) if self is CycleDirection.FORWARD else (c, b, a, c)
        return " → ".join(hops)


class ConnectionStatus(str, Enum):
    """Venue connection status shown on the dashboard."""

    OFFLINE = "offline"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"
    RATE_LIMITED = "rate_limited"


# =============================================================================
# Venue Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class GasProfile:
    """
    Estimated gas cost of one full cycle, in quote currency units.

    A constant when low == high, otherwise a uniform range.
    """

    low: float
    high: float

    def __post_init__(self) -> None:
        if self.low < 0 or self.high < self.low:
            raise ValueError(f"Invalid gas range: {self.low}..{self.high}")

    @classmethod
    def constant(cls, value: float) -> "GasProfile":
        """Create a fixed-cost profile."""
        return cls(value, value)

    @property
    def is_constant(self) -> bool:
        return self.low == self.high

    def sample(self, rng: random.Random | None = None) -> float:
        """Draw a gas estimate from the profile."""
        if self.is_constant:
            return self.low
        return (rng or random).uniform(self.low, self.high)


@dataclass(slots=True, frozen=True)
class VenueConfig:
    """
    Static configuration for one decentralized exchange.

    Constant for the lifetime of the venue.
    """

    key: str
    name: str
    chain: str
    fee_percent_per_trade: float
    gas_profile: GasProfile
    min_liquidity: float = 0.0
    price_url: str = ""

    @property
    def fees_total_percent(self) -> float:
        """Nominal fee across all legs of a cycle."""
        return self.fee_percent_per_trade * LEGS_PER_CYCLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "chain": self.chain,
            "fee_percent_per_trade": self.fee_percent_per_trade,
            "gas_profile": {"low": self.gas_profile.low, "high": self.gas_profile.high},
            "min_liquidity": self.min_liquidity,
            "price_url": self.price_url,
        }


# =============================================================================
# Market Data Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class Quote:
    """
    Spot rate for a pair on one venue.

    `rate` is the number of `pair[1]` units obtainable per unit of `pair[0]`.
    """

    pair: tuple[str, str]
    rate: float
    liquidity: float = 0.0
    volume_24h: float = 0.0
    source: str = ""
    timestamp_us: int = 0

    @property
    def symbol(self) -> str:
        return f"{self.pair[0]}/{self.pair[1]}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "rate": self.rate,
            "liquidity": self.liquidity,
            "volume_24h": self.volume_24h,
            "source": self.source,
            "timestamp_us": self.timestamp_us,
        }


# =============================================================================
# Triangle Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class Triangle:
    """
    Three assets forming a closed cycle that starts and ends in `c`.

    Written "A-B-C" in settings, e.g. "AVAX-JOE-USDC.e".
    """

    a: str
    b: str
    c: str

    @classmethod
    def parse(cls, text: str) -> "Triangle":
        """Parse the "A-B-C" notation."""
        parts = [p.strip() for p in text.split("-")]
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"Triangle must have exactly three assets: {text!r}")
        if len(set(parts)) != 3:
            raise ValueError(f"Triangle assets must be distinct: {text!r}")
        return cls(*parts)

    @property
    def id(self) -> str:
        return f"{self.a}-{self.b}-{self.c}"

    @property
    def assets(self) -> tuple[str, str, str]:
        return (self.a, self.b, self.c)

    def __str__(self) -> str:
        return self.id


# =============================================================================
# Result Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class ArbitrageResult:
    """
    Outcome of one triangular evaluation.

    Created once per evaluation and never mutated; callers decide
    how long to retain it.
    """

    assets: tuple[str, str, str]
    best_cycle_direction: CycleDirection
    gross_profit_percent: float
    net_profit_percent: float
    fees_total_percent: float
    gas_estimate: float
    min_liquidity_across_legs: float
    cross_rate_inefficiency_percent: float
    viable: bool
    forward_profit_percent: float = 0.0
    reverse_profit_percent: float = 0.0

    @property
    def route(self) -> str:
        return self.best_cycle_direction.route(self.assets)

    def to_dict(self) -> dict[str, Any]:
        return {
            "assets": list(self.assets),
            "best_cycle_direction": self.best_cycle_direction.value,
            "route": self.route,
            "gross_profit_percent": self.gross_profit_percent,
            "net_profit_percent": self.net_profit_percent,
            "fees_total_percent": self.fees_total_percent,
            "gas_estimate": self.gas_estimate,
            "min_liquidity_across_legs": self.min_liquidity_across_legs,
            "cross_rate_inefficiency_percent": self.cross_rate_inefficiency_percent,
            "viable": self.viable,
            "forward_profit_percent": self.forward_profit_percent,
            "reverse_profit_percent": self.reverse_profit_percent,
        }


@dataclass(slots=True, frozen=True)
class Opportunity:
    """
    An evaluated triangle on a specific venue.

    Quotes are ordered A/C, B/C, A/B to match the evaluator inputs.
    """

    id: str
    venue: str
    triangle: Triangle
    result: ArbitrageResult
    quotes: tuple[Quote, Quote, Quote]
    timestamp_us: int

    @property
    def pairs(self) -> str:
        return self.triangle.id

    @property
    def route(self) -> str:
        return self.result.route

    @property
    def profit(self) -> float:
        """Net profit percentage."""
        return self.result.net_profit_percent

    @property
    def viable(self) -> bool:
        return self.result.viable

    @property
    def min_liquidity(self) -> float:
        return self.result.min_liquidity_across_legs

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "exchange": self.venue,
            "pairs": self.pairs,
            "route": self.route,
            "profit": self.profit,
            "viable": self.viable,
            "timestamp_us": self.timestamp_us,
            "result": self.result.to_dict(),
            "quotes": [q.to_dict() for q in self.quotes],
        }


@dataclass(slots=True)
class VenueState:
    """Mutable per-venue connection bookkeeping owned by the scanner."""

    venue: str
    status: ConnectionStatus = ConnectionStatus.OFFLINE
    last_error: str = ""
    last_scan_us: int = 0
    opportunities: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "venue": self.venue,
            "status": self.status.value,
            "last_error": self.last_error,
            "last_scan_us": self.last_scan_us,
            "opportunities": self.opportunities,
        }


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


class PriceSource(Protocol):
    """Pluggable capability producing quotes for a venue."""

    async def get_quote(
        self,
        venue: VenueConfig,
        base: str,
        quote: str,
    ) -> Quote | None:
        """Return the venue's current base/quote rate, or None if unavailable."""
        ...

