"""
Integration tests for the opportunity scanner.

Runs full scans against static price sources and checks history,
analytics, venue statuses, metrics and published events.
"""

import asyncio
from typing import Any

import pytest

from dexarb.config.settings import Settings
from dexarb.core.event_bus import Event, EventBus, EventType
from dexarb.core.exceptions import PriceSourceError, RateLimitedError
from dexarb.core.types import ConnectionStatus
from dexarb.engine.scanner import OpportunityScanner, batched, build_price_source
from dexarb.market.fallback import FallbackPriceSource
from dexarb.market.simulated import SimulatedPriceSource
from dexarb.telemetry.metrics import (
    API_CALLS,
    OPPORTUNITIES_EVALUATED,
    OPPORTUNITIES_VIABLE,
    QUOTES_FAILED,
    SCANS,
    MetricsCollector,
)
from tests.mocks import MISPRICED_RATES, StaticPriceSource


def _collect(event_bus: EventBus) -> list[Event[Any]]:
    events: list[Event[Any]] = []

    def record(event: Event[Any]) -> None:
        events.append(event)

    for event_type in EventType:
        event_bus.subscribe_sync(event_type, record)
    return events


class TestScanOnce:
    """Tests for a single scan pass."""

    @pytest.mark.asyncio
    async def test_viable_opportunity_recorded(
        self,
        settings: Settings,
        mispriced_source: StaticPriceSource,
        metrics: MetricsCollector,
    ) -> None:
        scanner = OpportunityScanner(settings, mispriced_source, metrics=metrics)

        found = await scanner.scan_once()

        assert len(found) == 1
        opportunity = found[0]
        assert opportunity.viable
        assert opportunity.venue == "Trader Joe"
        assert opportunity.pairs == "AVAX-JOE-USDC.e"
        assert opportunity.route == "USDC.e → AVAX → JOE → USDC.e"
        assert opportunity.id.startswith("traderjoe-AVAX-JOE-USDC.e-")
        assert [q.pair for q in opportunity.quotes] == [
            ("AVAX", "USDC.e"),
            ("JOE", "USDC.e"),
            ("AVAX", "JOE"),
        ]

        assert scanner.history.recent() == found
        assert scanner.analytics.viable_opportunities == 1
        assert scanner.scan_count == 1
        assert scanner.last_scan_us > 0

        assert metrics.get_counter(API_CALLS) == 3
        assert metrics.get_counter(OPPORTUNITIES_EVALUATED) == 1
        assert metrics.get_counter(OPPORTUNITIES_VIABLE) == 1
        assert metrics.get_counter(SCANS) == 1

    @pytest.mark.asyncio
    async def test_consistent_rates_not_viable(
        self,
        settings: Settings,
        consistent_source: StaticPriceSource,
    ) -> None:
        scanner = OpportunityScanner(settings, consistent_source)

        found = await scanner.scan_once()

        assert len(found) == 1
        assert not found[0].viable
        assert scanner.analytics.total_opportunities == 1
        assert scanner.analytics.viable_opportunities == 0

    @pytest.mark.asyncio
    async def test_missing_leg_skips_triangle(
        self,
        settings: Settings,
        metrics: MetricsCollector,
    ) -> None:
        """Test a triangle with an unquoted leg is skipped without error."""
        rates = {k: v for k, v in MISPRICED_RATES.items() if k != ("JOE", "USDC.e")}
        scanner = OpportunityScanner(settings, StaticPriceSource(rates), metrics=metrics)

        found = await scanner.scan_once()

        assert found == []
        assert metrics.get_counter(QUOTES_FAILED) == 1
        assert scanner.venue_states["traderjoe"].status is ConnectionStatus.CONNECTED

    @pytest.mark.asyncio
    async def test_venue_status_connected(
        self,
        settings: Settings,
        mispriced_source: StaticPriceSource,
    ) -> None:
        scanner = OpportunityScanner(settings, mispriced_source)
        assert scanner.venue_states["traderjoe"].status is ConnectionStatus.OFFLINE

        await scanner.scan_once()

        state = scanner.venue_states["traderjoe"]
        assert state.status is ConnectionStatus.CONNECTED
        assert state.opportunities == 1
        assert state.last_scan_us > 0

    @pytest.mark.asyncio
    async def test_rate_limited_venue(self, settings: Settings) -> None:
        source = StaticPriceSource(MISPRICED_RATES, fail_with=RateLimitedError)
        scanner = OpportunityScanner(settings, source)

        found = await scanner.scan_once()

        assert found == []
        state = scanner.venue_states["traderjoe"]
        assert state.status is ConnectionStatus.RATE_LIMITED
        assert "rate limit" in state.last_error

    @pytest.mark.asyncio
    async def test_source_error_marks_venue(self, settings: Settings) -> None:
        source = StaticPriceSource(MISPRICED_RATES, fail_with=PriceSourceError)
        scanner = OpportunityScanner(settings, source)

        await scanner.scan_once()

        assert scanner.venue_states["traderjoe"].status is ConnectionStatus.ERROR

    @pytest.mark.asyncio
    async def test_failing_venue_isolated(self) -> None:
        """Test an unexpected error on one venue leaves the others reporting."""
        settings = Settings(
            enabled_venues=["traderjoe", "raydium"],
            focused_triangles=["AVAX-JOE-USDC.e"],
            batch_delay_s=0,
            _env_file=None,
        )
        source = StaticPriceSource(MISPRICED_RATES, fail_with=ValueError, fail_venues={"raydium"})
        scanner = OpportunityScanner(settings, source)

        found = await scanner.scan_once()

        assert [o.venue for o in found] == ["Trader Joe"]
        assert len(scanner.history) == 1
        assert scanner.venue_states["traderjoe"].status is ConnectionStatus.CONNECTED
        raydium = scanner.venue_states["raydium"]
        assert raydium.status is ConnectionStatus.ERROR
        assert raydium.last_error == "Mock failure"

    @pytest.mark.asyncio
    async def test_failing_triangle_isolated(self, metrics: MetricsCollector) -> None:
        """Test one triangle's quote failure does not drop the venue's others."""
        settings = Settings(
            enabled_venues=["traderjoe"],
            focused_triangles=["AVAX-JOE-USDC.e", "SOL-RAY-USDC"],
            batch_delay_s=0,
            _env_file=None,
        )
        source = StaticPriceSource(MISPRICED_RATES, fail_with=PriceSourceError, fail_bases={"SOL"})
        scanner = OpportunityScanner(settings, source, metrics=metrics)

        found = await scanner.scan_once()

        assert [o.pairs for o in found] == ["AVAX-JOE-USDC.e"]
        assert metrics.get_counter(OPPORTUNITIES_VIABLE) == 1
        state = scanner.venue_states["traderjoe"]
        assert state.status is ConnectionStatus.CONNECTED
        assert state.opportunities == 1

    @pytest.mark.asyncio
    async def test_rate_limit_keeps_earlier_batches(self) -> None:
        """Test a rate limit stops later batches but keeps what was found."""
        settings = Settings(
            enabled_venues=["traderjoe"],
            focused_triangles=["AVAX-JOE-USDC.e", "SOL-RAY-USDC", "ARB-GMX-USDC"],
            batch_size=1,
            batch_delay_s=0,
            _env_file=None,
        )
        source = StaticPriceSource(MISPRICED_RATES, fail_with=RateLimitedError, fail_bases={"SOL"})
        scanner = OpportunityScanner(settings, source)

        found = await scanner.scan_once()

        assert [o.pairs for o in found] == ["AVAX-JOE-USDC.e"]
        assert scanner.venue_states["traderjoe"].status is ConnectionStatus.RATE_LIMITED
        assert all(base != "ARB" for _, base, _ in source.calls)

    @pytest.mark.asyncio
    async def test_events_published(
        self,
        settings: Settings,
        mispriced_source: StaticPriceSource,
        event_bus: EventBus,
    ) -> None:
        """Test the scan lifecycle is announced in order."""
        events = _collect(event_bus)
        scanner = OpportunityScanner(settings, mispriced_source, event_bus=event_bus)

        await scanner.scan_once()

        types = [e.type for e in events]
        assert types[0] is EventType.SCAN_STARTED
        assert types[-1] is EventType.SCAN_COMPLETE
        assert EventType.OPPORTUNITY_FOUND in types

        statuses = [e.payload["status"] for e in events if e.type is EventType.VENUE_STATUS]
        assert statuses == ["connecting", "connected"]

        complete = events[-1].payload
        assert complete["evaluated"] == 1
        assert complete["viable"] == 1
        assert complete["analytics"]["viable_opportunities"] == 1
        assert all(e.source == "scanner" for e in events)

    @pytest.mark.asyncio
    async def test_multiple_venues_and_batches(self, mispriced_source: StaticPriceSource) -> None:
        """Test every venue quotes every triangle across batches."""
        settings = Settings(
            enabled_venues=["traderjoe", "gmx", "raydium"],
            focused_triangles=["AVAX-JOE-USDC.e", "SOL-RAY-USDC", "ARB-GMX-USDC"],
            batch_size=2,
            batch_delay_s=0,
            _env_file=None,
        )
        scanner = OpportunityScanner(settings, mispriced_source)

        found = await scanner.scan_once()

        # Only AVAX-JOE-USDC.e is quoted by the static source
        assert len(found) == 3
        assert {o.venue for o in found} == {"Trader Joe", "GMX", "Raydium"}
        assert len(mispriced_source.calls) == 3 * 3 + 3 * 2

    @pytest.mark.asyncio
    async def test_history_bounded(self, mispriced_source: StaticPriceSource) -> None:
        settings = Settings(
            enabled_venues=["traderjoe"],
            focused_triangles=["AVAX-JOE-USDC.e"],
            history_size=2,
            batch_delay_s=0,
            _env_file=None,
        )
        scanner = OpportunityScanner(settings, mispriced_source)

        for _ in range(4):
            await scanner.scan_once()

        assert len(scanner.history) == 2
        assert scanner.analytics.total_opportunities == 4


class TestScannerLifecycle:
    """Tests for start, stop, reset and settings updates."""

    @pytest.mark.asyncio
    async def test_start_and_stop(
        self,
        settings: Settings,
        mispriced_source: StaticPriceSource,
        event_bus: EventBus,
    ) -> None:
        events = _collect(event_bus)
        scanner = OpportunityScanner(settings, mispriced_source, event_bus=event_bus)

        task = scanner.start()
        assert scanner.start() is task

        for _ in range(100):
            if scanner.scan_count:
                break
            await asyncio.sleep(0.01)

        assert scanner.is_running
        await scanner.stop()

        assert not scanner.is_running
        assert task.done()
        assert scanner.scan_count >= 1
        assert scanner.venue_states["traderjoe"].status is ConnectionStatus.OFFLINE
        assert events[-1].type is EventType.SHUTDOWN

    @pytest.mark.asyncio
    async def test_run_survives_failing_scan(
        self,
        settings: Settings,
        event_bus: EventBus,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test an unexpected scan error is reported and the loop continues."""
        events = _collect(event_bus)
        scanner = OpportunityScanner(settings, StaticPriceSource(), event_bus=event_bus)

        async def broken_scan() -> list[object]:
            raise RuntimeError("boom")

        monkeypatch.setattr(scanner, "scan_once", broken_scan)
        scanner.start()
        for _ in range(100):
            if any(e.type is EventType.ERROR for e in events):
                break
            await asyncio.sleep(0.01)

        assert scanner.is_running
        await scanner.stop()
        assert any(e.type is EventType.ERROR for e in events)

    @pytest.mark.asyncio
    async def test_close_closes_source(
        self,
        settings: Settings,
        mispriced_source: StaticPriceSource,
    ) -> None:
        scanner = OpportunityScanner(settings, mispriced_source)
        scanner.start()

        await scanner.close()

        assert mispriced_source.closed
        assert not scanner.is_running

    @pytest.mark.asyncio
    async def test_reset(self, settings: Settings, mispriced_source: StaticPriceSource) -> None:
        scanner = OpportunityScanner(settings, mispriced_source)
        await scanner.scan_once()

        scanner.reset()

        assert len(scanner.history) == 0
        assert scanner.analytics.total_opportunities == 0
        assert scanner.scan_count == 0
        assert scanner.venue_states["traderjoe"].opportunities == 0

    @pytest.mark.asyncio
    async def test_update_settings(self, settings: Settings, mispriced_source: StaticPriceSource) -> None:
        """Test new thresholds apply from the next scan and history is kept."""
        scanner = OpportunityScanner(settings, mispriced_source)
        await scanner.scan_once()

        scanner.update_settings(settings.model_copy(update={"min_profit_threshold_pct": 5.0, "history_size": 50}))
        found = await scanner.scan_once()

        assert not found[0].viable
        assert scanner.history.maxlen == 50
        assert len(scanner.history) == 2

    def test_update_settings_venues(self, settings: Settings, mispriced_source: StaticPriceSource) -> None:
        scanner = OpportunityScanner(settings, mispriced_source)

        scanner.update_settings(settings.model_copy(update={"enabled_venues": ["gmx"]}))

        assert list(scanner.venue_states) == ["gmx"]

    def test_status(self, settings: Settings, mispriced_source: StaticPriceSource) -> None:
        status = OpportunityScanner(settings, mispriced_source).status()

        assert status["running"] is False
        assert status["scan_count"] == 0
        assert status["venues"][0]["venue"] == "traderjoe"


class TestHelpers:
    """Tests for scanner helpers."""

    def test_batched(self, settings: Settings) -> None:
        triangles = Settings(_env_file=None).triangles[:5]

        batches = batched(triangles, 2)

        assert [len(b) for b in batches] == [2, 2, 1]
        assert [t for b in batches for t in b] == triangles

    def test_build_simulated_source(self, settings: Settings) -> None:
        assert isinstance(build_price_source(settings), SimulatedPriceSource)

    def test_build_live_source_with_fallback(self, settings: Settings) -> None:
        live = settings.model_copy(update={"price_source": "dexscreener"})

        assert isinstance(build_price_source(live), FallbackPriceSource)
