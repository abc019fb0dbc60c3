"""Global market scanner results."""
from fastapi import APIRouter, Query

from market_pulse.db import MarketAnomaly
from market_pulse.dependencies import StoreDep

router = APIRouter(prefix="/market-anomalies", tags=["market"])


@router.get("", response_model=list[MarketAnomaly])
async def list_market_anomalies(
    store: StoreDep,
    limit: int = Query(default=20, ge=1, le=200),
) -> list[MarketAnomaly]:
    """Most recent market anomalies, newest first."""
    return store.find_many(
        MarketAnomaly, order_by=MarketAnomaly.timestamp.desc(), limit=limit
    )
