"""Core module containing the event bus, exceptions and type definitions."""

from dexarb.core.event_bus import Event, EventBus, EventType
from dexarb.core.exceptions import (
    DexarbError,
    PriceSourceError,
    RateLimitedError,
    UnknownVenueError,
)
from dexarb.core.types import (
    ArbitrageResult,
    ConnectionStatus,
    CycleDirection,
    GasProfile,
    Opportunity,
    PriceSource,
    Quote,
    Triangle,
    VenueConfig,
)


__all__ = [
    "ArbitrageResult",
    "ConnectionStatus",
    "CycleDirection",
    "DexarbError",
    "Event",
    "EventBus",
    "EventType",
    "GasProfile",
    "Opportunity",
    "PriceSource",
    "PriceSourceError",
    "Quote",
    "RateLimitedError",
    "Triangle",
    "UnknownVenueError",
    "VenueConfig",
]
