"""
DexScreener price source.

Queries the public DexScreener search API for a pair and reads the
native price of the deepest pool on the venue's chain.

Features:
- Single aiohttp session with connection pooling
- orjson response parsing
- Token bucket throttling under the public per-minute cap
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiohttp
import orjson

from dexarb.config.constants import (
    DEXSCREENER_API_URL,
    DEXSCREENER_REQUESTS_PER_MINUTE,
    ENDPOINT_DEX_SEARCH,
    HTTP_TIMEOUT_S,
    USER_AGENT,
)
from dexarb.config.venues import DEXSCREENER_CHAIN_IDS
from dexarb.core.exceptions import PriceSourceError, RateLimitedError
from dexarb.core.types import Quote, VenueConfig
from dexarb.market.rate_limiter import TokenBucket
from dexarb.utils.math import finite_or, is_valid_rate
from dexarb.utils.time import get_timestamp_us


logger = logging.getLogger(__name__)

SOURCE_NAME = "dexscreener"


def _as_float(value: Any) -> float | None:
    """DexScreener sends prices as strings and depths as numbers."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _symbol(token: Any) -> str:
    if not isinstance(token, dict):
        return ""
    return str(token.get("symbol", "")).upper()


def parse_search_response(
    data: Any,
    chain_id: str,
    base: str,
    quote: str,
    dex_id: str | None = None,
) -> tuple[float, float, float] | None:
    """
    Pick the best matching pool from a search response.

    Pools on other chains or for other tokens are ignored. A pool listed
    as quote/base is accepted and its price inverted. Pools on `dex_id`
    are preferred; otherwise the deepest pool on the chain wins.

    Args:
        data: Decoded JSON body.
        chain_id: DexScreener chain identifier.
        base: Asset sold.
        quote: Asset received.
        dex_id: Preferred DEX identifier.

    Returns:
        (rate, liquidity_usd, volume_24h_usd) or None if nothing matches.
    """
    if not isinstance(data, dict):
        return None
    pairs = data.get("pairs")
    if not isinstance(pairs, list):
        return None

    want_base = base.upper()
    want_quote = quote.upper()
    candidates: list[tuple[bool, float, float, float]] = []

    for pair in pairs:
        if not isinstance(pair, dict) or pair.get("chainId") != chain_id:
            continue

        price = _as_float(pair.get("priceNative"))
        if not is_valid_rate(price):
            continue

        pair_base = _symbol(pair.get("baseToken"))
        pair_quote = _symbol(pair.get("quoteToken"))
        if (pair_base, pair_quote) == (want_base, want_quote):
            rate = price
        elif (pair_base, pair_quote) == (want_quote, want_base):
            rate = 1.0 / price
        else:
            continue

        liquidity = pair.get("liquidity") or {}
        volume = pair.get("volume") or {}
        depth = finite_or(_as_float(liquidity.get("usd")) if isinstance(liquidity, dict) else None)
        vol = finite_or(_as_float(volume.get("h24")) if isinstance(volume, dict) else None)
        preferred = dex_id is not None and pair.get("dexId") == dex_id
        candidates.append((preferred, depth, rate, vol))

    if not candidates:
        return None

    _, depth, rate, vol = max(candidates, key=lambda c: (c[0], c[1]))
    return rate, depth, vol


class DexScreenerPriceSource:
    """
    Live quotes from the DexScreener public API.

    Network and protocol failures are logged and reported as a missing
    quote so one bad pair never aborts a scan. HTTP 429 is raised as
    RateLimitedError so the scanner can flag the venue.
    """

    def __init__(
        self,
        base_url: str = DEXSCREENER_API_URL,
        rate_limiter: TokenBucket | None = None,
        timeout_s: float = HTTP_TIMEOUT_S,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: API root.
            rate_limiter: Optional token bucket; defaults to the public cap.
            timeout_s: Total timeout per request.
        """
        self._base_url = base_url.rstrip("/")
        self._rate_limiter = rate_limiter or TokenBucket.per_minute(DEXSCREENER_REQUESTS_PER_MINUTE)
        self._timeout = aiohttp.ClientTimeout(total=timeout_s)
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=20,
                limit_per_host=10,
                keepalive_timeout=30,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=self._timeout,
                headers={"Accept": "application/json", "User-Agent": USER_AGENT},
                json_serialize=lambda x: orjson.dumps(x).decode(),
            )
        return self._session

    async def close(self) -> None:
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    @asynccontextmanager
    async def _request_context(self) -> AsyncIterator[aiohttp.ClientSession]:
        session = await self._get_session()
        try:
            yield session
        except (aiohttp.ClientError, TimeoutError) as e:
            raise PriceSourceError(f"Network error: {e}") from e

    async def search(self, query: str) -> Any:
        """
        Run a pair search.

        Args:
            query: Search text, e.g. "AVAX/USDC".

        Returns:
            Decoded JSON body.

        Raises:
            RateLimitedError: On HTTP 429.
            PriceSourceError: On other HTTP errors, bad JSON or network failure.
        """
        await self._rate_limiter.acquire()
        url = f"{self._base_url}{ENDPOINT_DEX_SEARCH}"
        async with self._request_context() as session:
            async with session.get(url, params={"q": query}) as response:
                body = await response.read()
                if response.status == 429:
                    raise RateLimitedError("DexScreener rate limit exceeded", status=429)
                if response.status >= 400:
                    raise PriceSourceError(
                        f"DexScreener HTTP {response.status}", status=response.status
                    )

        try:
            return orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise PriceSourceError(f"Invalid JSON response: {e}") from e

    async def get_quote(
        self,
        venue: VenueConfig,
        base: str,
        quote: str,
    ) -> Quote | None:
        """
        Fetch the venue chain's base/quote rate.

        Returns:
            Quote, or None if the chain is unsupported, no pool matches
            or the request failed.
        """
        chain_id = DEXSCREENER_CHAIN_IDS.get(venue.chain)
        if chain_id is None:
            return None

        try:
            data = await self.search(f"{base}/{quote}")
        except RateLimitedError:
            # Callers surface this as a venue status
            raise
        except PriceSourceError as e:
            logger.warning("Quote %s/%s on %s failed: %s", base, quote, venue.key, e)
            return None

        parsed = parse_search_response(data, chain_id, base, quote, dex_id=venue.key)
        if parsed is None:
            logger.debug("No %s/%s pool on %s", base, quote, chain_id)
            return None

        rate, liquidity, volume = parsed
        return Quote(
            pair=(base, quote),
            rate=rate,
            liquidity=liquidity,
            volume_24h=volume,
            source=SOURCE_NAME,
            timestamp_us=get_timestamp_us(),
        )
