"""Per-asset-class data source profile.

Every asset class maps to exactly one profile that says how its spot price
is fetched and whether candles and history exist for it. Jobs look up the
profile instead of branching on the asset class themselves.
"""
from dataclasses import dataclass
from enum import Enum

from market_pulse.db import AssetClass
from market_pulse.providers.core import Capability


class PriceFetchMode(str, Enum):
    """How the ingestion job resolves spot prices for a class."""

    BATCH = "batch"  # one request for every symbol of the class
    DETAIL = "detail"  # one detail lookup per symbol
    THROTTLED = "throttled"  # one quote per symbol, sequential, fixed delay


@dataclass(frozen=True)
class AssetClassProfile:
    """Which gateway capabilities are valid for one asset class."""

    asset_class: AssetClass
    fetch_mode: PriceFetchMode
    price_capability: Capability
    supports_ohlc: bool = False
    supports_backfill: bool = False
    strip_suffix: bool = False


PROFILES: dict[AssetClass, AssetClassProfile] = {
    AssetClass.CRYPTO: AssetClassProfile(
        asset_class=AssetClass.CRYPTO,
        fetch_mode=PriceFetchMode.BATCH,
        price_capability=Capability.BATCH_SPOT_PRICE,
        supports_ohlc=True,
        supports_backfill=True,
    ),
    AssetClass.EQUITY_IN: AssetClassProfile(
        asset_class=AssetClass.EQUITY_IN,
        fetch_mode=PriceFetchMode.DETAIL,
        price_capability=Capability.SYMBOL_DETAIL,
        strip_suffix=True,
    ),
    AssetClass.COMMODITY_PROXY: AssetClassProfile(
        asset_class=AssetClass.COMMODITY_PROXY,
        fetch_mode=PriceFetchMode.DETAIL,
        price_capability=Capability.SYMBOL_DETAIL,
        strip_suffix=True,
    ),
    AssetClass.EQUITY_US: AssetClassProfile(
        asset_class=AssetClass.EQUITY_US,
        fetch_mode=PriceFetchMode.THROTTLED,
        price_capability=Capability.SINGLE_SPOT_PRICE,
    ),
}


def profile_for(asset_class: AssetClass) -> AssetClassProfile:
    """Profile for an asset class; every enum member has one."""
    return PROFILES[AssetClass(asset_class)]
