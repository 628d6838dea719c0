"""
Venue registry.

Fees, chains, liquidity floors and gas ranges for every supported DEX,
expressed as data so the scanner stays venue-agnostic.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Final

from dexarb.core.exceptions import UnknownVenueError
from dexarb.core.types import GasProfile, VenueConfig


# =============================================================================
# Chain Profiles
# =============================================================================

# Estimated gas for a full three-leg cycle, in USD
CHAIN_GAS_PROFILES: Final[Mapping[str, GasProfile]] = MappingProxyType(
    {
        "Avalanche": GasProfile(0.10, 0.60),
        "Solana": GasProfile(0.01, 0.06),
        "Cosmos": GasProfile(0.05, 0.25),
        "Fantom": GasProfile(0.10, 0.40),
        "BSC": GasProfile(0.20, 1.00),
        "Arbitrum": GasProfile(0.50, 2.50),
        "Blast": GasProfile(0.05, 0.35),
        "Base": GasProfile(0.03, 0.18),
        "Optimism": GasProfile(0.30, 1.80),
    }
)

DEFAULT_GAS_PROFILE: Final[GasProfile] = GasProfile.constant(1.0)


def _venue(
    key: str,
    name: str,
    chain: str,
    fee: float,
    min_liquidity: float,
    price_url: str,
) -> VenueConfig:
    return VenueConfig(
        key=key,
        name=name,
        chain=chain,
        fee_percent_per_trade=fee,
        gas_profile=CHAIN_GAS_PROFILES.get(chain, DEFAULT_GAS_PROFILE),
        min_liquidity=min_liquidity,
        price_url=price_url,
    )


# =============================================================================
# Venues
# =============================================================================

VENUES: Final[Mapping[str, VenueConfig]] = MappingProxyType(
    {
        v.key: v
        for v in (
            _venue("traderjoe", "Trader Joe", "Avalanche", 0.30, 2000, "https://api.traderjoexyz.com/priceusd"),
            _venue("raydium", "Raydium", "Solana", 0.25, 1500, "https://api-v3.raydium.io"),
            _venue("osmosis", "Osmosis", "Cosmos", 0.20, 800, "https://api-osmosis.imperator.co/tokens/v2/all"),
            _venue("spookyswap", "SpookySwap", "Fantom", 0.20, 600, "https://api.spookyswap.finance/api/xboo"),
            _venue("pancakeswap", "PancakeSwap", "BSC", 0.25, 1200, "https://api.pancakeswap.info/api/v2/tokens/prices"),
            _venue("gmx", "GMX", "Arbitrum", 0.10, 3000, "https://api.gmx.io/prices"),
            _venue("camelot", "Camelot DEX", "Arbitrum", 0.30, 1800, "https://api.camelot.exchange/tokens"),
            _venue("thruster", "Thruster", "Blast", 0.30, 500, "https://api.thruster.finance/tokens"),
            _venue("aerodrome", "Aerodrome", "Base", 0.05, 2000, "https://api.aerodrome.finance/api/v1/pairs"),
            _venue("velodrome", "Velodrome", "Optimism", 0.05, 2500, "https://api.velodrome.finance/api/v1/pairs"),
        )
    }
)

# DexScreener chain identifiers
DEXSCREENER_CHAIN_IDS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "Avalanche": "avalanche",
        "Solana": "solana",
        "Cosmos": "osmosis",
        "Fantom": "fantom",
        "BSC": "bsc",
        "Arbitrum": "arbitrum",
        "Blast": "blast",
        "Base": "base",
        "Optimism": "optimism",
    }
)


# =============================================================================
# Triangles
# =============================================================================

DEFAULT_FOCUSED_TRIANGLES: Final[tuple[str, ...]] = (
    # Avalanche
    "AVAX-JOE-USDC.e",
    "AVAX-PNG-USDC.e",
    "JOE-PNG-USDC.e",
    # Solana
    "SOL-RAY-USDC",
    "SOL-SRM-USDC",
    "RAY-SRM-USDC",
    "SOL-ORCA-USDC",
    "ORCA-RAY-USDC",
    # Cosmos
    "ATOM-OSMO-USDC",
    "ATOM-JUNO-USDC",
    "OSMO-JUNO-USDC",
    "ATOM-EVMOS-USDC",
    # Fantom
    "FTM-BOO-USDC",
    "FTM-SPIRIT-USDC",
    "BOO-SPIRIT-USDC",
    "FTM-TOMB-USDC",
    # BSC
    "BNB-CAKE-BUSD",
    "BNB-ALPACA-BUSD",
    "CAKE-ALPACA-BUSD",
    "BNB-XVS-BUSD",
    # Arbitrum
    "ARB-GMX-USDC",
    "ARB-GNS-USDC",
    "GMX-GNS-USDC",
    "ARB-MAGIC-USDC",
    # Base
    "BASE-AERO-USDC",
    "AERO-WELL-USDC",
    "BASE-WELL-USDC",
    # Optimism
    "OP-VELO-USDC",
    "OP-SNX-USDC",
    "VELO-SNX-USDC",
    # Stables
    "USDC-USDT-DAI",
    "USDC.e-USDT-FRAX",
)


def get_venue(key: str) -> VenueConfig:
    """
    Look up a venue by key.

    Raises:
        UnknownVenueError: If the key is not registered.
    """
    try:
        return VENUES[key]
    except KeyError:
        raise UnknownVenueError(key) from None


def venue_keys() -> list[str]:
    """All registered venue keys in registry order."""
    return list(VENUES)
