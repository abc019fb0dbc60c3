"""Shared utilities for market data providers."""

# Exchange suffixes used for Indian listings (NSE / BSE).
_INDIAN_SUFFIXES = (".NS", ".BO")


def normalize_stock_symbol(symbol: str) -> str:
    """Normalize a stock symbol (uppercase, trimmed)."""
    return symbol.strip().upper()


def normalize_crypto_id(symbol: str) -> str:
    """Normalize a CoinGecko/crypto ID (lowercase, trimmed)."""
    return symbol.strip().lower()


def strip_exchange_suffix(symbol: str) -> str:
    """Drop a trailing country/exchange suffix: RELIANCE.NS -> RELIANCE."""
    sym = normalize_stock_symbol(symbol)
    for suffix in _INDIAN_SUFFIXES:
        if sym.endswith(suffix):
            return sym[: -len(suffix)]
    return sym
