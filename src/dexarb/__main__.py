"""
Entry point for the arbitrage scanner.

Usage:
    python -m dexarb
    dexarb  # if installed via pip
"""

import asyncio
import sys


# Try to use uvloop for better performance
try:
    import uvloop

    uvloop.install()
    UVLOOP_ENABLED = True
except ImportError:
    UVLOOP_ENABLED = False


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success).
    """
    from pydantic import ValidationError

    from dexarb import __version__
    from dexarb.config.settings import get_settings
    from dexarb.core.event_bus import EventBus
    from dexarb.engine.scanner import OpportunityScanner, build_price_source
    from dexarb.telemetry.export import build_export, export_to_file
    from dexarb.telemetry.logger import setup_logging
    from dexarb.telemetry.metrics import MetricsCollector
    from dexarb.telemetry.reporter import CLIReporter

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     DEX TRIANGULAR ARBITRAGE SCANNER v{__version__:<18}      ║
║                                                               ║
║     Fee- and gas-aware cycle evaluation across DEX venues     ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Configuration error: {e}")
        print("\nCheck your DEXARB_* environment variables or .env file.")
        return 1

    print("Configuration:")
    print(f"  Price source:   {settings.price_source}")
    print(f"  Venues:         {', '.join(settings.enabled_venues)}")
    print(f"  Triangles:      {len(settings.focused_triangles)}")
    print(f"  Min profit:     {settings.min_profit_threshold_pct:.3f}%")
    print(f"  Min liquidity:  ${settings.min_liquidity:,.0f}")
    print(f"  Interval:       {settings.update_interval_ms}ms")
    print(f"  uvloop:         {'Enabled' if UVLOOP_ENABLED else 'Disabled'}")
    print()

    async_logger = setup_logging(settings.log_level, settings.log_file)

    async def run_scanner() -> int:
        event_bus = EventBus()
        scanner = OpportunityScanner(
            settings,
            build_price_source(settings),
            event_bus=event_bus,
            metrics=MetricsCollector(),
        )
        reporter = CLIReporter(scanner)
        reporter.attach(event_bus)

        try:
            await scanner.run()
            return 0

        except Exception as e:
            print(f"\nFatal error: {e}")
            import traceback

            traceback.print_exc()
            return 1

        finally:
            await scanner.close()
            reporter.print_summary()
            if settings.export_on_exit:
                document = build_export(
                    scanner.history, scanner.analytics, settings, scanner.metrics
                )
                path = export_to_file(document, settings.export_on_exit)
                print(f"Export written to {path}")

    try:
        return asyncio.run(run_scanner())
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 0
    finally:
        async_logger.stop()


if __name__ == "__main__":
    sys.exit(main())
