"""
Opportunity scanner.

The polling loop: on every tick it quotes each focused triangle on each
enabled venue, evaluates both cycles, records the results and publishes
scan events for the dashboard and CLI.
"""

import asyncio
import contextlib
import itertools
import logging
import random
from collections.abc import Sequence

from dexarb.config.settings import Settings
from dexarb.core.event_bus import Event, EventBus, EventType
from dexarb.core.exceptions import PriceSourceError, RateLimitedError
from dexarb.core.types import (
    ConnectionStatus,
    Opportunity,
    PriceSource,
    Quote,
    Triangle,
    VenueConfig,
    VenueState,
)
from dexarb.market.dexscreener import DexScreenerPriceSource
from dexarb.market.fallback import FallbackPriceSource
from dexarb.market.simulated import SimulatedPriceSource
from dexarb.strategy.analytics import Analytics, AnalyticsAggregator
from dexarb.strategy.evaluator import TriangularEvaluator
from dexarb.strategy.history import OpportunityHistory
from dexarb.telemetry.metrics import (
    API_CALLS,
    OPPORTUNITIES_EVALUATED,
    OPPORTUNITIES_VIABLE,
    QUOTE_LATENCY,
    QUOTES_FAILED,
    SCAN_LATENCY,
    SCANS,
    MetricsCollector,
)
from dexarb.utils.time import LatencyTimer, get_timestamp_us


logger = logging.getLogger(__name__)

EVENT_SOURCE = "scanner"


def batched(items: Sequence[Triangle], size: int) -> list[list[Triangle]]:
    """Split triangles into consecutive batches of at most `size`."""
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def build_price_source(settings: Settings, rng: random.Random | None = None) -> PriceSource:
    """
    Create the configured quote provider.

    The live source always falls back to simulated quotes so the
    dashboard keeps working when the upstream API is unreachable.
    """
    simulated = SimulatedPriceSource(
        rng=rng or random.Random(settings.random_seed),
        simulate_latency=settings.simulated_latency,
        liquidity_floor=settings.min_liquidity,
    )
    if settings.price_source == "dexscreener":
        return FallbackPriceSource(DexScreenerPriceSource(), simulated)
    return simulated


class OpportunityScanner:
    """
    Polls venues for triangular arbitrage opportunities.

    Features:
    - Venues scanned concurrently, triangles in throttled batches
    - Per-venue connection status tracking
    - Bounded history and cumulative analytics
    - Event bus notifications for every scan stage
    """

    def __init__(
        self,
        settings: Settings,
        source: PriceSource,
        event_bus: EventBus | None = None,
        metrics: MetricsCollector | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the scanner.

        Args:
            settings: Thresholds, venues, triangles and timing.
            source: Quote provider.
            event_bus: Bus for scan events (a private one if omitted).
            metrics: Collector for counters and latencies.
            rng: Random generator used for gas sampling.
        """
        self._settings = settings
        self._source = source
        self._event_bus = event_bus or EventBus()
        self._metrics = metrics or MetricsCollector()
        self._rng = rng or random.Random(settings.random_seed)

        self._history = OpportunityHistory(settings.history_size)
        self._analytics = AnalyticsAggregator()
        self._states: dict[str, VenueState] = {}
        self._sync_states()

        self._ids = itertools.count(1)
        self._running = False
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._last_scan_us = 0
        self._scan_count = 0

    # =========================================================================
    # Scanning
    # =========================================================================

    async def scan_once(self) -> list[Opportunity]:
        """
        Run one full scan over every enabled venue.

        Returns:
            Opportunities evaluated in this scan, viable or not.
        """
        venues = self._settings.venues
        triangles = self._settings.triangles

        await self._publish(EventType.SCAN_STARTED, {
            "venues": [v.key for v in venues],
            "triangles": len(triangles),
        })

        with LatencyTimer() as timer:
            per_venue = await asyncio.gather(
                *(self._scan_venue(venue, triangles) for venue in venues)
            )

        opportunities = [o for found in per_venue for o in found]
        self._history.extend(opportunities)
        self._analytics.record_batch(opportunities)

        viable = sum(1 for o in opportunities if o.viable)
        self._last_scan_us = get_timestamp_us()
        self._scan_count += 1
        self._metrics.increment_counter(SCANS)
        self._metrics.record_latency(SCAN_LATENCY, timer.latency_us)

        logger.info(
            "Scan %d: %d evaluated, %d viable in %.2fs",
            self._scan_count, len(opportunities), viable, timer.latency_us / 1_000_000,
        )

        await self._publish(EventType.SCAN_COMPLETE, {
            "scan": self._scan_count,
            "evaluated": len(opportunities),
            "viable": viable,
            "latency_us": timer.latency_us,
            "analytics": self._analytics.snapshot().to_dict(),
        })

        return opportunities

    async def _scan_venue(self, venue: VenueConfig, triangles: Sequence[Triangle]) -> list[Opportunity]:
        """
        Evaluate every triangle on one venue, batch by batch.

        A triangle whose quotes fail is skipped and the rest of the venue
        is still scanned. A rate limit stops the remaining batches. Any
        other error marks only this venue as failed; opportunities found
        before it are kept.
        """
        await self._set_status(venue.key, ConnectionStatus.CONNECTING)

        evaluator = TriangularEvaluator(
            venue,
            min_profit_threshold_pct=self._settings.min_profit_threshold_pct,
            min_liquidity=self._settings.min_liquidity,
            starting_notional=self._settings.starting_notional,
        )

        found: list[Opportunity] = []
        failed: list[PriceSourceError] = []
        batches = batched(triangles, self._settings.batch_size)

        try:
            for i, batch in enumerate(batches):
                results = await asyncio.gather(
                    *(self._evaluate(venue, evaluator, t) for t in batch),
                    return_exceptions=True,
                )

                rate_limited: RateLimitedError | None = None
                for triangle, result in zip(batch, results, strict=True):
                    if isinstance(result, RateLimitedError):
                        rate_limited = result
                    elif isinstance(result, PriceSourceError):
                        logger.warning("%s: %s skipped: %s", venue.name, triangle, result)
                        failed.append(result)
                    elif isinstance(result, BaseException):
                        raise result
                    elif result is not None:
                        found.append(result)

                if rate_limited is not None:
                    logger.warning("%s rate limited: %s", venue.name, rate_limited)
                    await self._set_status(venue.key, ConnectionStatus.RATE_LIMITED, str(rate_limited))
                    return found

                if i < len(batches) - 1 and self._settings.batch_delay_s > 0:
                    await asyncio.sleep(self._settings.batch_delay_s)

        except Exception as e:
            logger.exception("%s scan failed", venue.name)
            await self._set_status(venue.key, ConnectionStatus.ERROR, str(e))
            return found

        if failed and len(failed) == len(triangles):
            logger.error("%s scan failed: %s", venue.name, failed[-1])
            await self._set_status(venue.key, ConnectionStatus.ERROR, str(failed[-1]))
            return found

        state = self._states.setdefault(venue.key, VenueState(venue=venue.key))
        state.last_scan_us = get_timestamp_us()
        state.opportunities += sum(1 for o in found if o.viable)
        await self._set_status(venue.key, ConnectionStatus.CONNECTED)
        return found

    async def _evaluate(
        self,
        venue: VenueConfig,
        evaluator: TriangularEvaluator,
        triangle: Triangle,
    ) -> Opportunity | None:
        """Quote and evaluate one triangle; None if any leg is unavailable."""
        a, b, c = triangle.assets
        quotes: list[Quote] = []
        for base, quote in ((a, c), (b, c), (a, b)):
            q = await self._fetch(venue, base, quote)
            if q is None:
                return None
            quotes.append(q)

        quote_ac, quote_bc, quote_ab = quotes
        gas = venue.gas_profile.sample(self._rng)
        result = evaluator.evaluate(triangle, quote_ac, quote_bc, quote_ab, gas)
        if result is None:
            return None

        opportunity = Opportunity(
            id=f"{venue.key}-{triangle.id}-{next(self._ids)}",
            venue=venue.name,
            triangle=triangle,
            result=result,
            quotes=(quote_ac, quote_bc, quote_ab),
            timestamp_us=get_timestamp_us(),
        )

        self._metrics.increment_counter(OPPORTUNITIES_EVALUATED)
        if opportunity.viable:
            self._metrics.increment_counter(OPPORTUNITIES_VIABLE)
            logger.debug(
                "Viable %s on %s: %s net=%.4f%%",
                triangle, venue.name, opportunity.route, opportunity.profit,
            )
            await self._publish(EventType.OPPORTUNITY_FOUND, opportunity.to_dict())

        return opportunity

    async def _fetch(self, venue: VenueConfig, base: str, quote: str) -> Quote | None:
        self._metrics.increment_counter(API_CALLS)
        with LatencyTimer() as timer:
            result = await self._source.get_quote(venue, base, quote)
        self._metrics.record_latency(QUOTE_LATENCY, timer.latency_us)

        if result is None:
            self._metrics.increment_counter(QUOTES_FAILED)
        return result

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def run(self) -> None:
        """Scan every `update_interval_ms` until stopped."""
        self._running = True
        self._stop_event.clear()
        logger.info(
            "Scanner running: %d venues, %d triangles, every %dms",
            len(self._settings.enabled_venues),
            len(self._settings.focused_triangles),
            self._settings.update_interval_ms,
        )

        while self._running:
            try:
                await self.scan_once()
            except Exception:
                logger.exception("Scan failed")
                await self._publish(EventType.ERROR, {"message": "Scan failed"})

            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self._settings.update_interval_s
                )

    def start(self) -> asyncio.Task[None]:
        """Reset state and start scanning in a background task."""
        if self._task and not self._task.done():
            return self._task

        self.reset()
        self._running = True
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Stop scanning and mark every venue offline."""
        self._running = False
        self._stop_event.set()

        if self._task and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None

        for key in self._states:
            await self._set_status(key, ConnectionStatus.OFFLINE)
        await self._publish(EventType.SHUTDOWN, {"scans": self._scan_count})
        logger.info("Scanner stopped after %d scans", self._scan_count)

    async def close(self) -> None:
        """Stop scanning and release the price source's connections."""
        if self._running or self._task:
            await self.stop()
        close = getattr(self._source, "close", None)
        if close is not None:
            await close()

    def reset(self) -> None:
        """Clear history, analytics and venue statuses."""
        self._history.clear()
        self._analytics.reset()
        self._states = {}
        self._sync_states()
        self._last_scan_us = 0
        self._scan_count = 0

    def update_settings(self, settings: Settings) -> None:
        """Apply new settings from the next scan on."""
        if settings.history_size != self._history.maxlen:
            retained = list(self._history)
            self._history = OpportunityHistory(settings.history_size)
            self._history.extend(retained)
        self._settings = settings
        self._sync_states()

    def _sync_states(self) -> None:
        # Keep counters for venues that stay enabled
        self._states = {
            key: self._states.get(key) or VenueState(venue=key)
            for key in self._settings.enabled_venues
        }

    async def _set_status(
        self,
        key: str,
        status: ConnectionStatus,
        error: str = "",
    ) -> None:
        state = self._states.setdefault(key, VenueState(venue=key))
        state.status = status
        state.last_error = error
        await self._publish(EventType.VENUE_STATUS, state.to_dict())

    async def _publish(self, event_type: EventType, payload: dict[str, object]) -> None:
        await self._event_bus.publish(
            Event(type=event_type, payload=payload, timestamp_us=get_timestamp_us(), source=EVENT_SOURCE)
        )

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def history(self) -> OpportunityHistory:
        return self._history

    @property
    def analytics(self) -> Analytics:
        """Current analytics snapshot."""
        return self._analytics.snapshot()

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def venue_states(self) -> dict[str, VenueState]:
        return dict(self._states)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_scan_us(self) -> int:
        return self._last_scan_us

    @property
    def scan_count(self) -> int:
        return self._scan_count

    def status(self) -> dict[str, object]:
        """Running state, venue statuses and call counts."""
        return {
            "running": self._running,
            "scan_count": self._scan_count,
            "last_scan_us": self._last_scan_us,
            "venues": [s.to_dict() for s in self._states.values()],
            "api_calls": self._metrics.get_counter(API_CALLS),
            "history_size": len(self._history),
        }
