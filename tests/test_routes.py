"""Tests for the HTTP routes (lifespan not started; state injected)."""
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from market_pulse.db import (Alert, Anomaly, AssetClass, Instrument,
                             MarketAnomaly, PriceObservation, Severity)
from market_pulse.dependencies import get_scheduler, get_store
from market_pulse.jobs import PipelineScheduler
from market_pulse.main import app


@pytest.fixture
def scheduler():
    return MagicMock(spec=PipelineScheduler)


@pytest.fixture
def client(store, scheduler):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_scheduler] = lambda: scheduler
    yield TestClient(app)
    app.dependency_overrides.clear()


def _btc(store, user):
    return store.insert(
        Instrument(user_id=user.id, symbol="bitcoin", name="Bitcoin", asset_class=AssetClass.CRYPTO)
    )


def test_health(client):
    assert client.get("/").json() == {"status": "ok"}


def test_add_asset_triggers_ingestion_and_backfill(client, store, scheduler, verified_user):
    response = client.post(
        "/assets",
        params={"user_id": verified_user.id},
        json={"symbol": " bitcoin ", "name": "Bitcoin", "asset_class": "CRYPTO"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["symbol"] == "bitcoin"
    assert body["asset_class"] == "CRYPTO"
    scheduler.trigger_price_ingestion.assert_called_once()
    scheduler.spawn_backfill.assert_called_once()
    assert scheduler.spawn_backfill.call_args.args[0].id == body["id"]
    assert len(store.find_many(Instrument)) == 1


def test_add_asset_unknown_user(client, scheduler):
    response = client.post(
        "/assets",
        params={"user_id": 999},
        json={"symbol": "AAPL", "name": "Apple", "asset_class": "EQUITY_US"},
    )
    assert response.status_code == 404
    scheduler.trigger_price_ingestion.assert_not_called()


def test_add_asset_rejects_unknown_class(client, verified_user):
    response = client.post(
        "/assets",
        params={"user_id": verified_user.id},
        json={"symbol": "GC=F", "name": "Gold", "asset_class": "FUTURES"},
    )
    assert response.status_code == 422


def test_list_assets_with_latest_price(client, store, verified_user, unverified_user):
    btc = _btc(store, verified_user)
    _btc(store, unverified_user)
    t0 = datetime(2026, 1, 1)
    store.insert_many(
        [
            PriceObservation(instrument_id=btc.id, price=100.0, timestamp=t0),
            PriceObservation(instrument_id=btc.id, price=105.0, timestamp=t0 + timedelta(minutes=1)),
        ]
    )

    rows = client.get("/assets", params={"user_id": verified_user.id}).json()

    assert len(rows) == 1
    assert rows[0]["id"] == btc.id
    assert rows[0]["latest_price"] == 105.0


def test_asset_detail(client, store, verified_user):
    btc = _btc(store, verified_user)
    t0 = datetime(2026, 1, 1)
    store.insert_many(
        PriceObservation(instrument_id=btc.id, price=100.0 + i, timestamp=t0 + timedelta(minutes=i))
        for i in range(120)
    )
    store.insert(
        Anomaly(instrument_id=btc.id, severity=Severity.HIGH, message="spike", price=219.0, timestamp=t0)
    )

    body = client.get(f"/assets/{btc.id}", params={"user_id": verified_user.id}).json()

    prices = [p["price"] for p in body["prices"]]
    assert len(prices) == 100
    assert prices[0] == 120.0 and prices[-1] == 219.0
    assert [a["message"] for a in body["anomalies"]] == ["spike"]


def test_asset_detail_ownership(client, store, verified_user, unverified_user):
    btc = _btc(store, verified_user)

    assert client.get(f"/assets/{btc.id}", params={"user_id": unverified_user.id}).status_code == 403
    assert client.get("/assets/999", params={"user_id": verified_user.id}).status_code == 404


def test_delete_asset_cascades_but_keeps_alerts(client, store, verified_user):
    btc = _btc(store, verified_user)
    store.insert(PriceObservation(instrument_id=btc.id, price=100.0))
    store.insert(Anomaly(instrument_id=btc.id, severity=Severity.LOW, message="m", price=100.0))
    store.insert(Alert(user_id=verified_user.id, message="bitcoin: m"))

    response = client.delete(f"/assets/{btc.id}", params={"user_id": verified_user.id})

    assert response.json() == {"message": "Asset deleted"}
    assert store.find_many(Instrument) == []
    assert store.find_many(PriceObservation) == []
    assert store.find_many(Anomaly) == []
    assert len(store.find_many(Alert)) == 1


def test_delete_asset_of_another_user(client, store, verified_user, unverified_user):
    btc = _btc(store, verified_user)

    response = client.delete(f"/assets/{btc.id}", params={"user_id": unverified_user.id})

    assert response.status_code == 403
    assert len(store.find_many(Instrument)) == 1


def test_market_anomalies_newest_first(client, store):
    t0 = datetime(2026, 1, 1)
    for i, symbol in enumerate(["BTC", "ETH", "TCS.NS"]):
        store.insert(
            MarketAnomaly(
                symbol=symbol,
                asset_class=AssetClass.CRYPTO,
                price=1.0,
                message=f"{symbol} moved",
                severity=Severity.MEDIUM,
                timestamp=t0 + timedelta(minutes=i),
            )
        )

    rows = client.get("/market-anomalies", params={"limit": 2}).json()

    assert [r["symbol"] for r in rows] == ["TCS.NS", "ETH"]


def test_alerts_list_and_mark_read(client, store, verified_user, unverified_user):
    t0 = datetime(2026, 1, 1)
    first = store.insert(Alert(user_id=verified_user.id, message="one", created_at=t0))
    store.insert(Alert(user_id=verified_user.id, message="two", created_at=t0 + timedelta(minutes=1)))
    store.insert(Alert(user_id=unverified_user.id, message="other", created_at=t0))

    rows = client.get("/alerts", params={"user_id": verified_user.id}).json()
    assert [r["message"] for r in rows] == ["two", "one"]

    assert client.post(f"/alerts/{first.id}/read", params={"user_id": unverified_user.id}).status_code == 404
    marked = client.post(f"/alerts/{first.id}/read", params={"user_id": verified_user.id}).json()
    assert marked["is_read"] is True

    unread = client.get("/alerts", params={"user_id": verified_user.id, "unread_only": True}).json()
    assert [r["message"] for r in unread] == ["two"]
