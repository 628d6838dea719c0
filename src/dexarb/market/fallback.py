"""
Fallback price source.

Asks a primary source first and falls back to a secondary one when the
primary has no quote or fails, so a flaky upstream API degrades to
simulated data instead of empty scans.
"""

import logging

from dexarb.core.exceptions import PriceSourceError
from dexarb.core.types import PriceSource, Quote, VenueConfig


logger = logging.getLogger(__name__)


class FallbackPriceSource:
    """Chain of two price sources."""

    def __init__(self, primary: PriceSource, secondary: PriceSource) -> None:
        self._primary = primary
        self._secondary = secondary
        self._fallbacks = 0

    async def get_quote(
        self,
        venue: VenueConfig,
        base: str,
        quote: str,
    ) -> Quote | None:
        """
        Quote from the primary source, else from the secondary.

        Rate limiting on the primary is treated as a miss; the secondary
        still answers.
        """
        try:
            result = await self._primary.get_quote(venue, base, quote)
        except PriceSourceError as e:
            logger.info("Primary source failed for %s/%s on %s: %s", base, quote, venue.key, e)
            result = None

        if result is not None:
            return result

        self._fallbacks += 1
        return await self._secondary.get_quote(venue, base, quote)

    async def close(self) -> None:
        """Close any underlying sources that hold connections."""
        for source in (self._primary, self._secondary):
            close = getattr(source, "close", None)
            if close is not None:
                await close()

    @property
    def fallbacks(self) -> int:
        """Number of quotes served by the secondary source."""
        return self._fallbacks
