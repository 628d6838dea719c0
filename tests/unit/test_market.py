"""
Unit tests for price sources and the rate limiter.

Tests simulated quote generation, DexScreener response parsing,
fallback between sources and token bucket throttling.
"""

import random

import pytest

from dexarb.core.exceptions import PriceSourceError, RateLimitedError
from dexarb.core.types import VenueConfig
from dexarb.market.dexscreener import parse_search_response
from dexarb.market.fallback import FallbackPriceSource
from dexarb.market.rate_limiter import TokenBucket
from dexarb.market.simulated import CHAIN_LIQUIDITY_MULTIPLIER, SimulatedPriceSource
from tests.mocks import MISPRICED_RATES, StaticPriceSource


class TestSimulatedPriceSource:
    """Tests for SimulatedPriceSource."""

    @pytest.mark.asyncio
    async def test_quote_near_usd_ratio(self, venue: VenueConfig) -> None:
        """Test the rate tracks the USD price ratio within the chain's dislocation."""
        source = SimulatedPriceSource(rng=random.Random(7))

        quote = await source.get_quote(venue, "AVAX", "USDC.e")

        assert quote is not None
        assert quote.pair == ("AVAX", "USDC.e")
        assert quote.source == "simulated"
        assert 28.0 * 0.98 <= quote.rate <= 40.0 * 1.02
        assert source.quotes_generated == 1

    @pytest.mark.asyncio
    async def test_liquidity_scales_with_floor(self, venue: VenueConfig) -> None:
        """Test pool depth is derived from the liquidity floor and chain."""
        source = SimulatedPriceSource(rng=random.Random(7), liquidity_floor=1000.0)
        multiplier = CHAIN_LIQUIDITY_MULTIPLIER[venue.chain]

        for _ in range(50):
            quote = await source.get_quote(venue, "JOE", "USDC.e")
            assert quote is not None
            assert 1000.0 * multiplier <= quote.liquidity <= 5000.0 * multiplier
            assert 2 * quote.liquidity <= quote.volume_24h <= 10 * quote.liquidity

    @pytest.mark.asyncio
    async def test_seeded_sources_agree(self, venue: VenueConfig) -> None:
        """Test that equal seeds produce equal quotes."""
        first = SimulatedPriceSource(rng=random.Random(3))
        second = SimulatedPriceSource(rng=random.Random(3))

        q1 = await first.get_quote(venue, "AVAX", "JOE")
        q2 = await second.get_quote(venue, "AVAX", "JOE")

        assert q1 is not None and q2 is not None
        assert q1.rate == q2.rate
        assert q1.liquidity == q2.liquidity

    def test_stablecoin_fixed_price(self) -> None:
        source = SimulatedPriceSource()
        assert source.usd_price("USDC") == 1.0

    def test_unknown_token_price(self) -> None:
        source = SimulatedPriceSource(rng=random.Random(1))
        assert 0.5 <= source.usd_price("NOTATOKEN") <= 5.5


def _pair(
    chain: str,
    base: str,
    quote: str,
    price: str | None,
    liquidity: float | None = 10_000.0,
    dex: str = "uniswap",
    volume: float = 50_000.0,
) -> dict[str, object]:
    return {
        "chainId": chain,
        "dexId": dex,
        "baseToken": {"symbol": base},
        "quoteToken": {"symbol": quote},
        "priceNative": price,
        "liquidity": {"usd": liquidity},
        "volume": {"h24": volume},
    }


class TestParseSearchResponse:
    """Tests for DexScreener response parsing."""

    def test_matching_pair(self) -> None:
        data = {"pairs": [_pair("avalanche", "AVAX", "USDC", "34.5")]}

        assert parse_search_response(data, "avalanche", "AVAX", "USDC") == (34.5, 10_000.0, 50_000.0)

    def test_other_chain_ignored(self) -> None:
        data = {"pairs": [_pair("ethereum", "AVAX", "USDC", "34.5")]}

        assert parse_search_response(data, "avalanche", "AVAX", "USDC") is None

    def test_inverted_pair(self) -> None:
        """Test a pool listed as quote/base is inverted."""
        data = {"pairs": [_pair("avalanche", "USDC", "AVAX", "0.04")]}

        result = parse_search_response(data, "avalanche", "AVAX", "USDC")

        assert result is not None
        assert result[0] == pytest.approx(25.0)

    def test_symbols_case_insensitive(self) -> None:
        data = {"pairs": [_pair("avalanche", "avax", "usdc.e", "34.5")]}

        assert parse_search_response(data, "avalanche", "AVAX", "USDC.e") is not None

    def test_deepest_pool_wins(self) -> None:
        data = {
            "pairs": [
                _pair("avalanche", "AVAX", "USDC", "34.0", liquidity=1_000.0),
                _pair("avalanche", "AVAX", "USDC", "35.0", liquidity=90_000.0),
            ]
        }

        result = parse_search_response(data, "avalanche", "AVAX", "USDC")

        assert result is not None
        assert result[0] == 35.0

    def test_preferred_dex_wins(self) -> None:
        """Test a pool on the venue's own DEX beats a deeper one elsewhere."""
        data = {
            "pairs": [
                _pair("avalanche", "AVAX", "USDC", "34.0", liquidity=1_000.0, dex="traderjoe"),
                _pair("avalanche", "AVAX", "USDC", "35.0", liquidity=90_000.0),
            ]
        }

        result = parse_search_response(data, "avalanche", "AVAX", "USDC", dex_id="traderjoe")

        assert result is not None
        assert result[0] == 34.0

    @pytest.mark.parametrize("price", [None, "0", "-1", "abc", "inf"])
    def test_bad_price_skipped(self, price: str | None) -> None:
        data = {"pairs": [_pair("avalanche", "AVAX", "USDC", price)]}

        assert parse_search_response(data, "avalanche", "AVAX", "USDC") is None

    def test_missing_liquidity_is_zero(self) -> None:
        data = {"pairs": [_pair("avalanche", "AVAX", "USDC", "34.5", liquidity=None)]}

        result = parse_search_response(data, "avalanche", "AVAX", "USDC")

        assert result is not None
        assert result[1] == 0.0

    @pytest.mark.parametrize("data", [None, [], {"pairs": None}, {"pairs": ["junk"]}])
    def test_malformed_body(self, data: object) -> None:
        assert parse_search_response(data, "avalanche", "AVAX", "USDC") is None


class TestFallbackPriceSource:
    """Tests for FallbackPriceSource."""

    @pytest.mark.asyncio
    async def test_primary_used_when_available(self, venue: VenueConfig) -> None:
        primary = StaticPriceSource(MISPRICED_RATES)
        secondary = StaticPriceSource({("AVAX", "JOE"): 99.0})
        source = FallbackPriceSource(primary, secondary)

        quote = await source.get_quote(venue, "AVAX", "JOE")

        assert quote is not None
        assert quote.rate == 10.2
        assert source.fallbacks == 0
        assert secondary.calls == []

    @pytest.mark.asyncio
    async def test_secondary_on_missing_quote(self, venue: VenueConfig) -> None:
        source = FallbackPriceSource(StaticPriceSource(), StaticPriceSource(MISPRICED_RATES))

        quote = await source.get_quote(venue, "AVAX", "JOE")

        assert quote is not None
        assert quote.rate == 10.2
        assert source.fallbacks == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [PriceSourceError, RateLimitedError])
    async def test_secondary_on_failure(
        self,
        venue: VenueConfig,
        error: type[PriceSourceError],
    ) -> None:
        """Test primary failures, rate limits included, fall through."""
        primary = StaticPriceSource(MISPRICED_RATES, fail_with=error)
        source = FallbackPriceSource(primary, StaticPriceSource(MISPRICED_RATES))

        quote = await source.get_quote(venue, "AVAX", "JOE")

        assert quote is not None
        assert source.fallbacks == 1

    @pytest.mark.asyncio
    async def test_close_closes_both(self) -> None:
        primary, secondary = StaticPriceSource(), StaticPriceSource()

        await FallbackPriceSource(primary, secondary).close()

        assert primary.closed and secondary.closed


class TestTokenBucket:
    """Tests for TokenBucket."""

    def test_invalid_parameters(self) -> None:
        with pytest.raises(ValueError):
            TokenBucket(capacity=0, refill_rate=1.0)
        with pytest.raises(ValueError):
            TokenBucket(capacity=10, refill_rate=0.0)

    def test_per_minute(self) -> None:
        bucket = TokenBucket.per_minute(240)

        assert bucket.capacity == 240
        assert bucket.refill_rate == pytest.approx(4.0)

    @pytest.mark.asyncio
    async def test_acquire_waits_for_refill(self) -> None:
        bucket = TokenBucket(capacity=1, refill_rate=50.0)

        await bucket.acquire()
        await bucket.acquire()

        assert bucket.tokens < 1.0
