"""Core provider abstractions."""
from market_pulse.providers.core.error_mapper import (PROVIDER_EXCEPTIONS,
                                                      ProviderFallback)
from market_pulse.providers.core.market_provider_abc import MarketProviderABC
from market_pulse.providers.core.protocols import Capability

__all__ = [
    "Capability",
    "MarketProviderABC",
    "PROVIDER_EXCEPTIONS",
    "ProviderFallback",
]
