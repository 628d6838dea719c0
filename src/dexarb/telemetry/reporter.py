"""
CLI reporter for scan results.

Renders a terminal panel with scan health, latency, analytics and the
most profitable recent opportunities, refreshed after every scan.
"""

import sys
from datetime import timedelta
from typing import Any, TextIO

from dexarb import __version__
from dexarb.core.event_bus import Event, EventBus, EventType
from dexarb.core.types import ConnectionStatus
from dexarb.engine.scanner import OpportunityScanner
from dexarb.telemetry.metrics import API_CALLS, QUOTE_LATENCY, QUOTES_FAILED, SCAN_LATENCY
from dexarb.utils.math import format_profit, format_usd
from dexarb.utils.time import format_duration_us, format_timestamp_us


class CLIReporter:
    """
    Terminal dashboard for the scanner.

    Displays a formatted status panel with:
    - Scan health and venue statuses
    - Latency metrics
    - Opportunity counts and profit
    - Best recent viable opportunities
    """

    # Box drawing characters
    BOX_TL = "\u2554"  # ╔
    BOX_TR = "\u2557"  # ╗
    BOX_BL = "\u255a"  # ╚
    BOX_BR = "\u255d"  # ╝
    BOX_H = "\u2550"  # ═
    BOX_V = "\u2551"  # ║
    BOX_LT = "\u2560"  # ╠
    BOX_RT = "\u2563"  # ╣
    THIN_V = "\u2502"  # │

    def __init__(
        self,
        scanner: OpportunityScanner,
        width: int = 78,
        output: TextIO | None = None,
        top_n: int = 8,
        clear_screen: bool = True,
    ) -> None:
        """
        Initialize CLI reporter.

        Args:
            scanner: Scanner whose state is rendered.
            width: Panel width in characters.
            output: Output stream (default: stdout).
            top_n: Number of opportunities listed.
            clear_screen: Clear the terminal before each refresh.
        """
        self._scanner = scanner
        self._width = width
        self._output = output or sys.stdout
        self._top_n = top_n
        self._clear_screen = clear_screen

    def attach(self, event_bus: EventBus) -> None:
        """Refresh the panel whenever a scan completes."""
        event_bus.subscribe_sync(EventType.SCAN_COMPLETE, self._on_scan_complete)

    def _on_scan_complete(self, event: Event[Any]) -> None:
        self.display()

    def _format_uptime(self, seconds: float) -> str:
        """Format uptime as HH:MM:SS."""
        total = int(timedelta(seconds=int(seconds)).total_seconds())
        hours, remainder = divmod(total, 3600)
        minutes, secs = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"

    def _pad(self, text: str, width: int) -> str:
        return text.ljust(width)[:width]

    def _line(self, content: str) -> str:
        return f"{self.BOX_V}{self._pad(content, self._width - 2)}{self.BOX_V}"

    def _divider(self, left: str = BOX_LT, right: str = BOX_RT) -> str:
        return f"{left}{self.BOX_H * (self._width - 2)}{right}"

    def render(self) -> str:
        """
        Render the panel.

        Returns:
            Formatted panel string.
        """
        scanner = self._scanner
        settings = scanner.settings
        metrics = scanner.metrics
        analytics = scanner.analytics
        scan_latency = metrics.get_latency_stats(SCAN_LATENCY)
        quote_latency = metrics.get_latency_stats(QUOTE_LATENCY)

        statuses = [s.status for s in scanner.venue_states.values()]
        connected = statuses.count(ConnectionStatus.CONNECTED)
        errors = statuses.count(ConnectionStatus.ERROR)
        limited = statuses.count(ConnectionStatus.RATE_LIMITED)

        lines = [f"{self.BOX_TL}{self.BOX_H * (self._width - 2)}{self.BOX_TR}"]

        header = f"  DEX ARBITRAGE SCANNER v{__version__} | {settings.price_source.upper()} | Scans: {scanner.scan_count}"
        lines.append(self._line(header))
        lines.append(self._divider())

        status = (
            f"  Uptime: {self._format_uptime(metrics.uptime_seconds)}  |  "
            f"Venues: {len(settings.enabled_venues)}  |  Triangles: {len(settings.focused_triangles)}"
            f"  |  Last: {format_timestamp_us(scanner.last_scan_us) if scanner.last_scan_us else '---'}"
        )
        lines.append(self._line(status))
        lines.append(self._divider())

        scan_avg = format_duration_us(int(scan_latency.avg_us)) if scan_latency.count else "---"
        quote_avg = format_duration_us(int(quote_latency.avg_us)) if quote_latency.count else "---"
        v = self.THIN_V
        lines.append(self._line(f"  {'LATENCY':<22}{v}  {'OPPORTUNITIES':<22}{v}  {'VENUES':<18}"))
        lines.append(self._line(
            f"  Scan:  {scan_avg:<15}{v}  Evaluated: {analytics.total_opportunities:<11}{v}  Connected: {connected:<7}"
        ))
        lines.append(self._line(
            f"  Quote: {quote_avg:<15}{v}  Viable: {analytics.viable_opportunities:<14}{v}  Errors: {errors:<10}"
        ))
        lines.append(self._line(
            f"  Calls: {metrics.get_counter(API_CALLS):<15}{v}  Avg: {format_profit(analytics.average_profit):<17}{v}  Limited: {limited:<9}"
        ))
        lines.append(self._divider())

        best = sorted(scanner.history.viable(), key=lambda o: o.profit, reverse=True)[: self._top_n]
        if best:
            lines.append(self._line(f"  {'TRIANGLE':<20}{'VENUE':<14}{'NET':<11}{'MIN LIQ':<11}ROUTE"))
            for o in best:
                lines.append(self._line(
                    f"  {o.pairs:<20}{o.venue:<14}{format_profit(o.profit):<11}"
                    f"{format_usd(o.min_liquidity):<11}{o.route}"
                ))
        else:
            lines.append(self._line("  No viable opportunities yet"))

        lines.append(self._divider())
        failed = metrics.get_counter(QUOTES_FAILED)
        footer = (
            f"  Min profit: {settings.min_profit_threshold_pct:.2f}%  |  "
            f"Min liquidity: {format_usd(settings.min_liquidity)}  |  Failed quotes: {failed}"
        )
        lines.append(self._line(footer))
        lines.append(f"{self.BOX_BL}{self.BOX_H * (self._width - 2)}{self.BOX_BR}")

        return "\n".join(lines)

    def display(self) -> None:
        """Display the panel once."""
        if self._clear_screen:
            self._output.write("\033[2J\033[H")
        self._output.write(self.render())
        self._output.write("\n")
        self._output.flush()

    def print_summary(self) -> None:
        """Print a final summary."""
        scanner = self._scanner
        analytics = scanner.analytics
        best = scanner.history.best()
        out = self._output

        out.write("\n" + "=" * 50 + "\n")
        out.write("  SESSION SUMMARY\n")
        out.write("=" * 50 + "\n")
        out.write(f"  Uptime: {self._format_uptime(scanner.metrics.uptime_seconds)}\n")
        out.write(f"  Scans:  {scanner.scan_count:,}\n\n")
        out.write("  OPPORTUNITIES:\n")
        out.write(f"    Evaluated:    {analytics.total_opportunities:,}\n")
        out.write(f"    Viable:       {analytics.viable_opportunities:,}\n")
        out.write(f"    Success rate: {scanner.history.success_rate:.1f}%\n")
        out.write(f"    Avg profit:   {format_profit(analytics.average_profit)}\n")
        if best:
            out.write(f"    Best:         {best.pairs} on {best.venue} {format_profit(best.profit)}\n")
        out.write(f"\n  API calls: {scanner.metrics.get_counter(API_CALLS):,}\n")
        out.write("=" * 50 + "\n")
        out.flush()
