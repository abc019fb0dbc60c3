"""Abstract base class for market data providers."""
from abc import ABC

from market_pulse.providers.core.error_mapper import ProviderFallback


class MarketProviderABC(ABC):
    """Base for all market data providers.

    Concrete providers implement any subset of the capability protocols in
    ``providers.core.protocols``; the base only carries the label used for
    failure logging and the async resource lifecycle.

    Subclasses must call super().__init__().
    """

    resource_name = "Symbol"
    api_name = "API"

    def __init__(self) -> None:
        """Initialize provider. Subclasses may override and should call super().__init__()."""
        self._fallback = ProviderFallback(
            resource_name=self.resource_name, api_name=self.api_name
        )

    @property
    def fallback(self) -> ProviderFallback:
        """Failure policy used by the gateway when calling this provider."""
        return self._fallback

    async def close(self) -> None:
        """Clean up resources (connections, clients).

        Override in subclasses if cleanup is needed.
        """

    async def __aenter__(self) -> "MarketProviderABC":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit - calls close()."""
        await self.close()
