"""Service layer: market data gateway, asset-class profiles and notifications."""
from market_pulse.services.asset_classes import (AssetClassProfile,
                                                 PriceFetchMode, profile_for)
from market_pulse.services.gateway import MarketDataGateway
from market_pulse.services.notifier import Notifier

__all__ = [
    "AssetClassProfile",
    "MarketDataGateway",
    "Notifier",
    "PriceFetchMode",
    "profile_for",
]
