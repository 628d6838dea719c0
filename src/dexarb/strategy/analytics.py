"""
Session analytics.

Cumulative statistics over every opportunity evaluated since the last
reset: how many were seen, how profitable the viable ones were, and
which triangles and venues produce them most often.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from dexarb.config.constants import TOP_EXCHANGES_LIMIT, TOP_PAIRS_LIMIT
from dexarb.core.types import Opportunity


@dataclass(slots=True, frozen=True)
class PairStats:
    """Viable opportunity count and mean net profit for one triangle."""

    pair: str
    count: int
    avg_profit: float

    def to_dict(self) -> dict[str, Any]:
        return {"pair": self.pair, "count": self.count, "avg_profit": self.avg_profit}


@dataclass(slots=True, frozen=True)
class ExchangeStats:
    """Viable opportunity count and mean net profit for one venue."""

    exchange: str
    count: int
    avg_profit: float

    def to_dict(self) -> dict[str, Any]:
        return {"exchange": self.exchange, "count": self.count, "avg_profit": self.avg_profit}


@dataclass(slots=True, frozen=True)
class Analytics:
    """Immutable analytics snapshot."""

    total_opportunities: int = 0
    viable_opportunities: int = 0
    average_profit: float = 0.0
    best_profit: float = 0.0
    total_volume: float = 0.0
    top_pairs: tuple[PairStats, ...] = ()
    top_exchanges: tuple[ExchangeStats, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_opportunities": self.total_opportunities,
            "viable_opportunities": self.viable_opportunities,
            "average_profit": self.average_profit,
            "best_profit": self.best_profit,
            "total_volume": self.total_volume,
            "top_pairs": [p.to_dict() for p in self.top_pairs],
            "top_exchanges": [e.to_dict() for e in self.top_exchanges],
        }


@dataclass
class _ProfitAccumulator:
    count: int = 0
    profit_sum: float = 0.0


@dataclass
class AnalyticsAggregator:
    """
    Folds scan batches into running totals.

    Only viable opportunities contribute to profit averages and the
    top-pair and top-exchange rankings; every evaluated opportunity
    counts toward the total and the volume.
    """

    top_pairs_limit: int = TOP_PAIRS_LIMIT
    top_exchanges_limit: int = TOP_EXCHANGES_LIMIT
    _total: int = field(default=0, init=False)
    _viable: int = field(default=0, init=False)
    _profit_sum: float = field(default=0.0, init=False)
    _best_profit: float | None = field(default=None, init=False)
    _volume: float = field(default=0.0, init=False)
    _pairs: dict[str, _ProfitAccumulator] = field(default_factory=dict, init=False)
    _exchanges: dict[str, _ProfitAccumulator] = field(default_factory=dict, init=False)

    def record(self, opportunity: Opportunity) -> None:
        """Fold one opportunity into the totals."""
        self._total += 1
        self._volume += opportunity.min_liquidity

        if not opportunity.viable:
            return

        profit = opportunity.profit
        self._viable += 1
        self._profit_sum += profit
        if self._best_profit is None or profit > self._best_profit:
            self._best_profit = profit

        for acc in (
            self._pairs.setdefault(opportunity.pairs, _ProfitAccumulator()),
            self._exchanges.setdefault(opportunity.venue, _ProfitAccumulator()),
        ):
            acc.count += 1
            acc.profit_sum += profit

    def record_batch(self, opportunities: Iterable[Opportunity]) -> None:
        for opportunity in opportunities:
            self.record(opportunity)

    def snapshot(self) -> Analytics:
        """Current totals and rankings."""
        pairs = sorted(
            (
                PairStats(pair=name, count=acc.count, avg_profit=acc.profit_sum / acc.count)
                for name, acc in self._pairs.items()
            ),
            key=lambda p: (-p.count, -p.avg_profit, p.pair),
        )
        exchanges = sorted(
            (
                ExchangeStats(exchange=name, count=acc.count, avg_profit=acc.profit_sum / acc.count)
                for name, acc in self._exchanges.items()
            ),
            key=lambda e: (-e.count, -e.avg_profit, e.exchange),
        )

        return Analytics(
            total_opportunities=self._total,
            viable_opportunities=self._viable,
            average_profit=self._profit_sum / self._viable if self._viable else 0.0,
            best_profit=self._best_profit if self._best_profit is not None else 0.0,
            total_volume=self._volume,
            top_pairs=tuple(pairs[: self.top_pairs_limit]),
            top_exchanges=tuple(exchanges[: self.top_exchanges_limit]),
        )

    def reset(self) -> None:
        """Clear all totals."""
        self._total = 0
        self._viable = 0
        self._profit_sum = 0.0
        self._best_profit = None
        self._volume = 0.0
        self._pairs.clear()
        self._exchanges.clear()
