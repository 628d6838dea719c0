"""Telemetry module: logging, metrics, terminal reporting and exports."""

from dexarb.telemetry.logger import AsyncLogger, setup_logging
from dexarb.telemetry.metrics import LatencyStats, MetricsCollector


__all__ = [
    "AsyncLogger",
    "LatencyStats",
    "MetricsCollector",
    "setup_logging",
]
