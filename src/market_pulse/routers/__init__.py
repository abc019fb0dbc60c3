"""API routers.

Includes routes for:
- /assets - Tracked instruments, their price history and anomalies
- /alerts - Per-user alerts from anomalies and strategy signals
- /market-anomalies - Global market scanner results
"""
from market_pulse.routers.alerts import router as alerts_router
from market_pulse.routers.assets import router as assets_router
from market_pulse.routers.market import router as market_router

__all__ = [
    "alerts_router",
    "assets_router",
    "market_router",
]
