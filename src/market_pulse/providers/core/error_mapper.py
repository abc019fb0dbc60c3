"""Domain concept for turning provider failures into empty results."""
import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures a provider call may raise for one symbol; all others propagate (bugs).
PROVIDER_EXCEPTIONS: tuple[type[Exception], ...] = (
    ValueError,
    KeyError,
    TypeError,
    TimeoutError,
    OSError,
    asyncio.TimeoutError,
    httpx.HTTPError,
)


@dataclass(frozen=True)
class ProviderFallback:
    """Resolves provider exceptions to an explicit empty value.

    One instance per provider, labelled with the resource and API names so
    log lines say which source failed for which symbol.
    """

    resource_name: str = "Resource"
    api_name: str = "API"

    def describe(self, exc: Exception, symbol: str | None = None) -> str:
        """Short human-readable reason for a failed call."""
        target = self.resource_name if symbol is None else f"{self.resource_name} '{symbol}'"
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            if status == 404:
                return f"{target} not found"
            if status == 429:
                return f"{self.api_name} rate limited"
            return f"{self.api_name} error ({status})"
        if isinstance(exc, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)):
            return f"Request to {self.api_name} timed out for {target}"
        if isinstance(exc, (KeyError, TypeError)):
            return f"{target} not found"
        return str(exc) or f"{target} unavailable"

    async def call(
        self,
        awaitable: Awaitable[T],
        default: T,
        symbol: str | None = None,
    ) -> T:
        """Await a provider call; on a provider failure log it and return default."""
        try:
            return await awaitable
        except PROVIDER_EXCEPTIONS as exc:
            logger.warning("%s: %s", self.api_name, self.describe(exc, symbol=symbol))
            return default
