"""Tests for the Supertrend + RSI strategy job."""
import pytest

from market_pulse.analytics.indicators import Trend
from market_pulse.db import Alert, AssetClass, Instrument
from market_pulse.jobs import strategy
from market_pulse.jobs.strategy import (BuySignal, StrategyJob,
                                        evaluate_buy_signal,
                                        momentum_crossed_up)
from market_pulse.services.gateway import MarketDataGateway
from tests.fakes import FakeCryptoProvider, rising_candles, zigzag_candles

SIGNAL = BuySignal(
    trend=Trend.UP,
    prev_rsi=48.0,
    last_rsi=55.0,
    momentum_confirmed=True,
    price_rising=True,
)


@pytest.mark.parametrize(
    "prev_rsi, last_rsi, expected",
    [
        (48.0, 55.0, True),
        (50.0, 50.1, True),
        (58.0, 62.0, True),
        (55.0, 61.0, True),
        (60.0, 60.0, False),
        (61.0, 65.0, False),
        (45.0, 49.0, False),
        (52.0, 51.0, False),
    ],
)
def test_momentum_crossed_up(prev_rsi, last_rsi, expected):
    assert momentum_crossed_up(prev_rsi, last_rsi) is expected


def test_confidence():
    assert SIGNAL.confidence == 100
    flat = BuySignal(Trend.UP, 48.0, 55.0, True, price_rising=False)
    assert flat.confidence == 70


class TestEvaluateBuySignal:
    def test_too_few_candles(self):
        assert evaluate_buy_signal(rising_candles(10)) is None

    def test_fires_on_uptrend_with_rsi_cross(self, monkeypatch):
        candles = rising_candles(60)
        monkeypatch.setattr(strategy, "rsi", lambda closes, period: [40.0, 47.0, 53.0])
        monkeypatch.setattr(
            strategy, "supertrend", lambda c, p, m: ([0.0] * len(c), [Trend.UP] * len(c))
        )

        signal = evaluate_buy_signal(candles)

        assert signal is not None
        assert (signal.prev_rsi, signal.last_rsi) == (47.0, 53.0)
        assert signal.price_rising is True
        assert signal.confidence == 100

    def test_downtrend_blocks_signal(self, monkeypatch):
        candles = rising_candles(60)
        monkeypatch.setattr(strategy, "rsi", lambda closes, period: [47.0, 53.0])
        monkeypatch.setattr(
            strategy, "supertrend", lambda c, p, m: ([0.0] * len(c), [Trend.DOWN] * len(c))
        )
        assert evaluate_buy_signal(candles) is None

    def test_no_cross_no_signal(self):
        # a steady climb keeps RSI pinned at 100, so there is no crossing
        assert evaluate_buy_signal(rising_candles(60)) is None


def _track(store, user, symbol, asset_class=AssetClass.CRYPTO):
    return store.insert(
        Instrument(user_id=user.id, symbol=symbol, name=symbol.title(), asset_class=asset_class)
    )


@pytest.fixture
def always_signal(monkeypatch):
    monkeypatch.setattr(strategy, "evaluate_buy_signal", lambda candles: SIGNAL)


@pytest.mark.asyncio
async def test_alert_and_email_for_verified_user(store, verified_user, notifier, clock, always_signal):
    _track(store, verified_user, "bitcoin")
    gateway = MarketDataGateway([FakeCryptoProvider(candles=rising_candles(60))])

    report = await StrategyJob(store, gateway, notifier, clock=clock).run()

    assert report.flagged == 1
    alerts = store.find_many(Alert, Alert.user_id == verified_user.id)
    assert [a.message for a in alerts] == ["BUY SIGNAL: bitcoin - Supertrend UP, RSI 55.0 (Bullish)"]
    notifier.dispatch.assert_called_once()
    email, subject, body = notifier.dispatch.call_args.args
    assert email == verified_user.email
    assert subject == "BUY ALERT: bitcoin (Confidence: 100%)"
    assert "Asset: Bitcoin (bitcoin)" in body


@pytest.mark.asyncio
async def test_unverified_user_gets_alert_only(store, unverified_user, notifier, clock, always_signal):
    _track(store, unverified_user, "bitcoin")
    gateway = MarketDataGateway([FakeCryptoProvider(candles=rising_candles(60))])

    await StrategyJob(store, gateway, notifier, clock=clock).run()

    assert len(store.find_many(Alert)) == 1
    notifier.dispatch.assert_not_called()


@pytest.mark.asyncio
async def test_cooldown_suppresses_repeat_signals(store, verified_user, notifier, clock, always_signal):
    _track(store, verified_user, "bitcoin")
    gateway = MarketDataGateway([FakeCryptoProvider(candles=rising_candles(60))])
    job = StrategyJob(store, gateway, notifier, clock=clock)

    await job.run()
    clock.advance(hours=23)
    second = await job.run()

    assert second.flagged == 0
    assert len(store.find_many(Alert)) == 1

    clock.advance(hours=2)
    third = await job.run()
    assert third.flagged == 1
    assert len(store.find_many(Alert)) == 2


@pytest.mark.asyncio
async def test_cooldown_is_per_instrument(store, verified_user, notifier, clock, always_signal):
    _track(store, verified_user, "bitcoin")
    _track(store, verified_user, "ethereum")
    gateway = MarketDataGateway([FakeCryptoProvider(candles=rising_candles(60))])

    report = await StrategyJob(store, gateway, notifier, clock=clock).run()

    assert report.flagged == 2


@pytest.mark.asyncio
async def test_anomaly_alerts_do_not_trigger_cooldown(store, verified_user, notifier, clock, always_signal):
    _track(store, verified_user, "bitcoin")
    store.insert(
        Alert(
            user_id=verified_user.id,
            message="bitcoin: Unusual price movement (8.00%). Z-Score: 7.00",
            created_at=clock.now,
        )
    )
    gateway = MarketDataGateway([FakeCryptoProvider(candles=rising_candles(60))])

    report = await StrategyJob(store, gateway, notifier, clock=clock).run()

    assert report.flagged == 1


@pytest.mark.asyncio
async def test_skips_classes_without_candles(store, verified_user, notifier, clock, always_signal):
    _track(store, verified_user, "AAPL", AssetClass.EQUITY_US)
    _track(store, verified_user, "RELIANCE.NS", AssetClass.EQUITY_IN)
    crypto = FakeCryptoProvider(candles=rising_candles(60))

    report = await StrategyJob(store, MarketDataGateway([crypto]), notifier, clock=clock).run()

    assert crypto.calls == []
    assert report.skipped == 2
    assert store.find_many(Alert) == []


@pytest.mark.asyncio
async def test_short_series_is_skipped(store, verified_user, notifier, clock, always_signal):
    _track(store, verified_user, "bitcoin")
    gateway = MarketDataGateway([FakeCryptoProvider(candles=rising_candles(49))])

    report = await StrategyJob(store, gateway, notifier, clock=clock).run()

    assert report.skipped == 1
    assert store.find_many(Alert) == []


@pytest.mark.asyncio
async def test_candles_fetched_once_per_symbol(store, verified_user, unverified_user, notifier, clock, always_signal):
    _track(store, verified_user, "bitcoin")
    _track(store, unverified_user, "Bitcoin")
    crypto = FakeCryptoProvider(candles=rising_candles(60))

    await StrategyJob(store, MarketDataGateway([crypto]), notifier, clock=clock).run()

    assert crypto.calls == [("ohlc_series", "bitcoin", 2)]


class TestZigzagSeries:
    def test_zigzag_series_crosses_the_midline(self):
        signal = evaluate_buy_signal(zigzag_candles(60))

        assert signal is not None
        assert signal.trend is Trend.UP
        assert signal.prev_rsi <= 50.0 < signal.last_rsi
        assert signal.last_rsi == pytest.approx(51.9, abs=0.05)
        assert signal.confidence == 100

    def test_series_ending_on_a_down_candle_has_no_signal(self):
        assert evaluate_buy_signal(zigzag_candles(59)) is None

    @pytest.mark.asyncio
    async def test_job_raises_buy_alert_then_cools_down(self, store, verified_user, notifier, clock):
        _track(store, verified_user, "bitcoin")
        gateway = MarketDataGateway([FakeCryptoProvider(candles=zigzag_candles(60))])
        job = StrategyJob(store, gateway, notifier, clock=clock)

        first = await job.run()

        assert first.flagged == 1
        alerts = store.find_many(Alert, Alert.user_id == verified_user.id)
        assert [a.message for a in alerts] == [
            "BUY SIGNAL: bitcoin - Supertrend UP, RSI 51.9 (Bullish)"
        ]
        _, subject, _ = notifier.dispatch.call_args.args
        assert subject == "BUY ALERT: bitcoin (Confidence: 100%)"

        clock.advance(minutes=30)
        second = await job.run()

        assert second.processed == 1
        assert second.flagged == 0
        assert len(store.find_many(Alert)) == 1
        notifier.dispatch.assert_called_once()


def test_cooldown_treats_like_wildcards_literally(store, verified_user, notifier, clock):
    _track(store, verified_user, "abc")
    underscored = _track(store, verified_user, "a_c")
    job = StrategyJob(store, MarketDataGateway([FakeCryptoProvider()]), notifier, clock=clock)
    store.insert(
        Alert(
            user_id=verified_user.id,
            message="BUY SIGNAL: abc - Supertrend UP, RSI 55.0 (Bullish)",
            created_at=clock.now,
        )
    )

    assert job.in_cooldown(underscored) is False
    assert job.raise_alert(underscored, verified_user, SIGNAL) is True
    assert job.in_cooldown(underscored) is True
