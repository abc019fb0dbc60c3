"""Tracked instrument routes.

Authentication is handled upstream; the caller's user id arrives as a
query parameter and ownership is checked against it.
"""
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from market_pulse.db import Anomaly, Instrument, PriceObservation, Store, User
from market_pulse.dependencies import SchedulerDep, StoreDep
from market_pulse.schemas import InstrumentCreate, InstrumentSummary

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/assets", tags=["assets"])

CHART_POINTS = 100
RECENT_ANOMALIES = 10


def _owned_instrument(store: Store, instrument_id: int, user_id: int) -> Instrument:
    instrument = store.get(Instrument, instrument_id)
    if instrument is None:
        raise HTTPException(status_code=404, detail="Asset not found")
    if instrument.user_id != user_id:
        raise HTTPException(status_code=403, detail="Unauthorized")
    return instrument


@router.get("", response_model=list[InstrumentSummary])
async def list_assets(store: StoreDep, user_id: int = Query(...)) -> list[InstrumentSummary]:
    """List the user's instruments with their latest price."""
    summaries: list[InstrumentSummary] = []
    for instrument in store.find_many(Instrument, Instrument.user_id == user_id):
        latest = store.find_first(
            PriceObservation,
            PriceObservation.instrument_id == instrument.id,
            order_by=PriceObservation.timestamp.desc(),
        )
        summaries.append(
            InstrumentSummary(
                id=instrument.id,
                symbol=instrument.symbol,
                name=instrument.name,
                asset_class=instrument.asset_class,
                latest_price=latest.price if latest else None,
                latest_timestamp=latest.timestamp if latest else None,
            )
        )
    return summaries


@router.post("", response_model=Instrument, status_code=201)
async def add_asset(
    body: InstrumentCreate,
    store: StoreDep,
    scheduler: SchedulerDep,
    user_id: int = Query(...),
) -> Instrument:
    """Track a new instrument.

    Kicks off an immediate price ingestion run and a background history
    backfill; neither is awaited.
    """
    if store.get(User, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    instrument = store.insert(
        Instrument(
            user_id=user_id,
            symbol=body.symbol.strip(),
            name=body.name.strip(),
            asset_class=body.asset_class,
        )
    )
    logger.info("User %d added %s (%s)", user_id, instrument.symbol, instrument.asset_class.value)
    scheduler.trigger_price_ingestion()
    scheduler.spawn_backfill(instrument)
    return instrument


@router.get("/{instrument_id}")
async def get_asset(
    instrument_id: int,
    store: StoreDep,
    user_id: int = Query(...),
) -> dict[str, Any]:
    """Instrument with recent prices (ascending, for charting) and anomalies (newest first)."""
    instrument = _owned_instrument(store, instrument_id, user_id)
    recent = store.find_many(
        PriceObservation,
        PriceObservation.instrument_id == instrument_id,
        order_by=PriceObservation.timestamp.desc(),
        limit=CHART_POINTS,
    )
    anomalies = store.find_many(
        Anomaly,
        Anomaly.instrument_id == instrument_id,
        order_by=Anomaly.timestamp.desc(),
        limit=RECENT_ANOMALIES,
    )
    return {
        **instrument.model_dump(),
        "prices": [p.model_dump() for p in reversed(recent)],
        "anomalies": [a.model_dump() for a in anomalies],
    }


@router.delete("/{instrument_id}")
async def delete_asset(
    instrument_id: int,
    store: StoreDep,
    user_id: int = Query(...),
) -> dict[str, str]:
    """Delete an instrument with its price history and anomalies."""
    _owned_instrument(store, instrument_id, user_id)
    store.delete_instrument(instrument_id)
    return {"message": "Asset deleted"}
