"""
Scanner constants and default configuration values.

This module contains all hardcoded values used throughout the scanner.
Values are organized by category for easy maintenance and auditing.
"""

from typing import Final


# =============================================================================
# Evaluation
# =============================================================================

# Hypothetical amount of the closing asset committed to each cycle
DEFAULT_STARTING_NOTIONAL: Final[float] = 1000.0

# Net profit magnitudes at or above this are treated as corrupt quotes
SANITY_CEILING_PERCENT: Final[float] = 150.0

# Number of trades in a triangular cycle
LEGS_PER_CYCLE: Final[int] = 3


# =============================================================================
# Viability Thresholds
# =============================================================================

DEFAULT_MIN_PROFIT_THRESHOLD_PCT: Final[float] = 0.08
DEFAULT_MIN_LIQUIDITY: Final[float] = 1500.0


# =============================================================================
# Polling
# =============================================================================

DEFAULT_UPDATE_INTERVAL_MS: Final[int] = 8000
MIN_UPDATE_INTERVAL_MS: Final[int] = 1000

# Triangles are evaluated in small batches with a pause in between
DEFAULT_BATCH_SIZE: Final[int] = 3
DEFAULT_BATCH_DELAY_S: Final[float] = 1.0

# Most recent opportunities kept in memory
DEFAULT_HISTORY_SIZE: Final[int] = 200

# Opportunities shown by the dashboard table
DEFAULT_TABLE_LIMIT: Final[int] = 80

# Entries kept in the analytics leaderboards
TOP_PAIRS_LIMIT: Final[int] = 8
TOP_EXCHANGES_LIMIT: Final[int] = 8


# =============================================================================
# DexScreener API
# =============================================================================

DEXSCREENER_API_URL: Final[str] = "https://api.dexscreener.com"
ENDPOINT_DEX_SEARCH: Final[str] = "/latest/dex/search"

# Public limit is 300 requests per minute; stay under it
DEXSCREENER_REQUESTS_PER_MINUTE: Final[int] = 240

HTTP_TIMEOUT_S: Final[float] = 10.0
HEALTH_CHECK_TIMEOUT_S: Final[float] = 5.0
USER_AGENT: Final[str] = "dexarb/1.0 (+price-scanner)"


# =============================================================================
# Health
# =============================================================================

# Share of reachable venue APIs below which the service reports degraded
HEALTHY_API_RATIO: Final[float] = 0.8


# =============================================================================
# Export
# =============================================================================

EXPORT_FILENAME_TEMPLATE: Final[str] = "arbitrage-export-{date}.json"


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Maximum log queue size
MAX_LOG_QUEUE_SIZE: Final[int] = 10_000
