"""
Triangular arbitrage evaluation.

Computes the profit of both closed cycles through three assets quoted
on a single venue, after per-leg fees and an estimated gas cost, and
classifies the opportunity as viable against caller thresholds.
"""

import logging
import math
from collections.abc import Sequence

from dexarb.config.constants import (
    DEFAULT_STARTING_NOTIONAL,
    LEGS_PER_CYCLE,
    SANITY_CEILING_PERCENT,
)
from dexarb.core.types import ArbitrageResult, CycleDirection, Quote, Triangle, VenueConfig
from dexarb.utils.math import clamp, finite_or, is_valid_rate, non_negative


logger = logging.getLogger(__name__)


def _leg_liquidities(liquidity_per_leg: Sequence[float | None] | None) -> tuple[float, float, float]:
    """Normalize leg depths, treating missing or garbage values as zero."""
    values = list(liquidity_per_leg or ())[:LEGS_PER_CYCLE]
    values += [0.0] * (LEGS_PER_CYCLE - len(values))
    return (non_negative(values[0]), non_negative(values[1]), non_negative(values[2]))


def evaluate_triangle(
    rate_ac: float | None,
    rate_bc: float | None,
    rate_ab: float | None,
    *,
    fee_percent: float | None = 0.0,
    starting_notional: float | None = DEFAULT_STARTING_NOTIONAL,
    gas_estimate: float | None = 0.0,
    min_profit_threshold_percent: float | None = 0.0,
    min_liquidity_threshold: float | None = 0.0,
    liquidity_per_leg: Sequence[float | None] | None = None,
    assets: tuple[str, str, str] = ("A", "B", "C"),
) -> ArbitrageResult | None:
    """
    Evaluate both triangular cycles that start and end in asset C.

    Cycle FORWARD trades C->A->B->C and cycle REVERSE trades C->B->A->C.
    The fee is applied after every leg. Pure: identical inputs always
    produce identical outputs.

    Args:
        rate_ac: Units of C per unit of A.
        rate_bc: Units of C per unit of B.
        rate_ab: Units of B per unit of A.
        fee_percent: Fee per leg in percent, e.g. 0.3 for 0.3%.
        starting_notional: Amount of C committed to the cycle.
        gas_estimate: Gas cost of the whole cycle in units of C.
        min_profit_threshold_percent: Net profit must exceed this.
        min_liquidity_threshold: Shallowest leg must exceed this.
        liquidity_per_leg: Depth of the A/C, B/C and A/B quotes.
        assets: Asset names (A, B, C), carried into the result.

    Returns:
        ArbitrageResult, or None if any rate is missing, non-positive
        or non-finite.
    """
    if not (is_valid_rate(rate_ac) and is_valid_rate(rate_bc) and is_valid_rate(rate_ab)):
        return None

    fee = clamp(non_negative(fee_percent), 0.0, 100.0)
    notional = finite_or(starting_notional, DEFAULT_STARTING_NOTIONAL)
    if notional <= 0:
        notional = DEFAULT_STARTING_NOTIONAL
    gas = non_negative(gas_estimate)
    min_profit = finite_or(min_profit_threshold_percent)
    min_liquidity = finite_or(min_liquidity_threshold)

    keep = 1.0 - fee / 100.0

    # C -> A -> B -> C
    amount = notional / rate_ac * keep
    amount = amount * rate_ab * keep
    amount = amount * rate_bc * keep
    forward_pct = (amount - notional) / notional * 100.0

    # C -> B -> A -> C
    amount = notional / rate_bc * keep
    amount = amount / rate_ab * keep
    amount = amount * rate_ac * keep
    reverse_pct = (amount - notional) / notional * 100.0

    if forward_pct > reverse_pct:
        direction = CycleDirection.FORWARD
        best_pct = forward_pct
    else:
        direction = CycleDirection.REVERSE
        best_pct = reverse_pct
    if math.isnan(forward_pct) or math.isnan(reverse_pct):
        best_pct = math.nan

    implied_cross = rate_ac / rate_bc
    inefficiency_pct = abs(implied_cross - rate_ab) / rate_ab * 100.0

    gas_impact_pct = gas / notional * 100.0
    net_pct = best_pct - gas_impact_pct

    legs = _leg_liquidities(liquidity_per_leg)
    min_leg = min(legs)

    viable = (
        net_pct > min_profit
        and min_leg > min_liquidity
        and math.isfinite(net_pct)
        and abs(net_pct) < SANITY_CEILING_PERCENT
    )

    if not math.isfinite(net_pct):
        logger.debug(
            "Non-finite profit for %s (rates %s, %s, %s)",
            "-".join(assets), rate_ac, rate_bc, rate_ab,
        )

    return ArbitrageResult(
        assets=assets,
        best_cycle_direction=direction,
        gross_profit_percent=finite_or(best_pct),
        net_profit_percent=finite_or(net_pct),
        fees_total_percent=fee * LEGS_PER_CYCLE,
        gas_estimate=gas,
        min_liquidity_across_legs=min_leg,
        cross_rate_inefficiency_percent=finite_or(inefficiency_pct),
        viable=viable,
        forward_profit_percent=finite_or(forward_pct),
        reverse_profit_percent=finite_or(reverse_pct),
    )


class TriangularEvaluator:
    """
    Evaluates triangles for one venue.

    Binds the venue's fee and the caller's thresholds so the polling
    loop only supplies fresh quotes and a gas estimate.
    """

    __slots__ = ("_venue", "_min_profit_pct", "_min_liquidity", "_starting_notional")

    def __init__(
        self,
        venue: VenueConfig,
        min_profit_threshold_pct: float = 0.0,
        min_liquidity: float = 0.0,
        starting_notional: float = DEFAULT_STARTING_NOTIONAL,
    ) -> None:
        """
        Initialize evaluator.

        Args:
            venue: Venue whose fee applies to every leg.
            min_profit_threshold_pct: Viability cutoff for net profit (percent).
            min_liquidity: Viability cutoff for the shallowest leg.
            starting_notional: Hypothetical cycle size in the closing asset.
        """
        self._venue = venue
        self._min_profit_pct = min_profit_threshold_pct
        self._min_liquidity = min_liquidity
        self._starting_notional = starting_notional

    def evaluate(
        self,
        triangle: Triangle,
        quote_ac: Quote,
        quote_bc: Quote,
        quote_ab: Quote,
        gas_estimate: float,
    ) -> ArbitrageResult | None:
        """
        Evaluate a triangle from its three quotes.

        Args:
            triangle: Assets (A, B, C).
            quote_ac: A/C quote.
            quote_bc: B/C quote.
            quote_ab: A/B quote.
            gas_estimate: Cycle gas cost in units of C.

        Returns:
            ArbitrageResult or None for unusable rates.
        """
        return evaluate_triangle(
            quote_ac.rate,
            quote_bc.rate,
            quote_ab.rate,
            fee_percent=self._venue.fee_percent_per_trade,
            starting_notional=self._starting_notional,
            gas_estimate=gas_estimate,
            min_profit_threshold_percent=self._min_profit_pct,
            min_liquidity_threshold=self._min_liquidity,
            liquidity_per_leg=(quote_ac.liquidity, quote_bc.liquidity, quote_ab.liquidity),
            assets=triangle.assets,
        )

    @property
    def venue(self) -> VenueConfig:
        return self._venue

    @property
    def min_profit_threshold_pct(self) -> float:
        return self._min_profit_pct

    @property
    def min_liquidity(self) -> float:
        return self._min_liquidity

    @property
    def starting_notional(self) -> float:
        return self._starting_notional
