"""User alert routes."""
from fastapi import APIRouter, HTTPException, Query

from market_pulse.db import Alert
from market_pulse.dependencies import StoreDep

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("", response_model=list[Alert])
async def list_alerts(
    store: StoreDep,
    user_id: int = Query(...),
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=500),
) -> list[Alert]:
    """The user's alerts, newest first."""
    filters = [Alert.user_id == user_id]
    if unread_only:
        filters.append(Alert.is_read.is_(False))
    return store.find_many(Alert, *filters, order_by=Alert.created_at.desc(), limit=limit)


@router.post("/{alert_id}/read", response_model=Alert)
async def mark_alert_read(
    alert_id: int,
    store: StoreDep,
    user_id: int = Query(...),
) -> Alert:
    """Mark one of the user's alerts as read."""
    alert = store.get(Alert, alert_id)
    if alert is None or alert.user_id != user_id:
        raise HTTPException(status_code=404, detail="Alert not found")
    alert.is_read = True
    return store.update(alert)
