"""Market data module: price sources and request throttling."""

from dexarb.market.dexscreener import DexScreenerPriceSource, parse_search_response
from dexarb.market.fallback import FallbackPriceSource
from dexarb.market.rate_limiter import TokenBucket
from dexarb.market.simulated import SimulatedPriceSource


__all__ = [
    "DexScreenerPriceSource",
    "FallbackPriceSource",
    "SimulatedPriceSource",
    "TokenBucket",
    "parse_search_response",
]
