"""
Session export.

Serializes the opportunity history, analytics and active settings to a
JSON document for offline analysis.
"""

import logging
from pathlib import Path
from typing import Any

import orjson

from dexarb.config.constants import EXPORT_FILENAME_TEMPLATE
from dexarb.config.settings import Settings
from dexarb.strategy.analytics import Analytics
from dexarb.strategy.history import OpportunityHistory
from dexarb.telemetry.metrics import API_CALLS, MetricsCollector
from dexarb.utils.time import utc_now_iso, utc_today


logger = logging.getLogger(__name__)

# Settings fields included in exports
EXPORTED_SETTINGS = (
    "min_profit_threshold_pct",
    "min_liquidity",
    "starting_notional",
    "update_interval_ms",
    "enabled_venues",
    "focused_triangles",
    "price_source",
)


def default_export_filename() -> str:
    """File name stamped with today's UTC date."""
    return EXPORT_FILENAME_TEMPLATE.format(date=utc_today())


def build_export(
    history: OpportunityHistory,
    analytics: Analytics,
    settings: Settings,
    metrics: MetricsCollector | None = None,
) -> dict[str, Any]:
    """
    Assemble the export document.

    Args:
        history: Retained opportunities, newest first.
        analytics: Analytics snapshot.
        settings: Active settings.
        metrics: Optional collector for the API call total.

    Returns:
        JSON-serializable dict.
    """
    viable = history.viable()
    best = history.best()
    avg_viable = sum(o.profit for o in viable) / len(viable) if viable else 0.0

    return {
        "timestamp": utc_now_iso(),
        "opportunities": [o.to_dict() for o in history],
        "analytics": analytics.to_dict(),
        "settings": settings.model_dump(mode="json", include=set(EXPORTED_SETTINGS)),
        "venues": [v.to_dict() for v in settings.venues],
        "summary": {
            "total_opportunities": len(history),
            "total_viable": len(viable),
            "success_rate": history.success_rate,
            "avg_profit_viable": avg_viable,
            "best_opportunity": best.to_dict() if best else None,
            "api_calls_total": metrics.get_counter(API_CALLS) if metrics else 0,
        },
    }


def dumps_export(document: dict[str, Any]) -> bytes:
    """Encode an export document as indented JSON."""
    return orjson.dumps(document, option=orjson.OPT_INDENT_2)


def export_to_file(document: dict[str, Any], path: Path | None = None) -> Path:
    """
    Write an export document.

    Args:
        document: Output of `build_export`.
        path: Target file, or a directory for the default file name.
            Defaults to the current directory.

    Returns:
        Path written.
    """
    target = path or Path.cwd()
    if target.is_dir():
        target = target / default_export_filename()

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(dumps_export(document))
    logger.info("Exported %d opportunities to %s", len(document["opportunities"]), target)
    return target
