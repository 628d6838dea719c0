"""Opportunity factory for tests."""

import itertools

from dexarb.core.types import ArbitrageResult, CycleDirection, Opportunity, Quote, Triangle


_ids = itertools.count(1)


def make_opportunity(
    profit: float = 0.5,
    viable: bool = True,
    venue: str = "Trader Joe",
    triangle: str = "AVAX-JOE-USDC.e",
    min_liquidity: float = 5000.0,
    timestamp_us: int = 0,
) -> Opportunity:
    """Build an opportunity with a fixed net profit and viability."""
    parsed = Triangle.parse(triangle)
    a, b, c = parsed.assets
    result = ArbitrageResult(
        assets=parsed.assets,
        best_cycle_direction=CycleDirection.FORWARD,
        gross_profit_percent=profit + 0.05,
        net_profit_percent=profit,
        fees_total_percent=0.9,
        gas_estimate=0.5,
        min_liquidity_across_legs=min_liquidity,
        cross_rate_inefficiency_percent=2.0,
        viable=viable,
        forward_profit_percent=profit + 0.05,
        reverse_profit_percent=-3.0,
    )
    quotes = (
        Quote(pair=(a, c), rate=30.0, liquidity=min_liquidity),
        Quote(pair=(b, c), rate=3.0, liquidity=min_liquidity),
        Quote(pair=(a, b), rate=10.2, liquidity=min_liquidity),
    )
    return Opportunity(
        id=f"test-{next(_ids)}",
        venue=venue,
        triangle=parsed,
        result=result,
        quotes=quotes,
        timestamp_us=timestamp_us,
    )
