"""Tests for the market gateway's sentiment cache and the derived dashboard views."""

import pytest

from pulse_engine.clients import fear_greed
from pulse_engine.models import FearGreedReading, PriceHistory
from pulse_engine.services import MarketData, MarketViewService


class TestMarketDataFearGreed:

    @pytest.mark.asyncio
    async def test_reading_is_cached_then_refreshed(self, monkeypatch, clock):
        readings = [FearGreedReading(70, "Greed"), FearGreedReading(20, "Extreme Fear")]
        calls = []

        async def fake_fetch(client=None):
            calls.append(1)
            return readings[len(calls) - 1]

        monkeypatch.setattr(fear_greed, "fetch_fear_greed_reading", fake_fetch)
        market = MarketData(clock=clock)

        assert (await market.fear_greed()).value == 70
        clock.advance(49)
        assert (await market.fear_greed()).value == 70
        clock.advance(2)
        assert (await market.fear_greed()).value == 20
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_last_good_reading_survives_outage(self, monkeypatch, clock):
        results = [FearGreedReading(70, "Greed"), None]

        async def fake_fetch(client=None):
            return results.pop(0)

        monkeypatch.setattr(fear_greed, "fetch_fear_greed_reading", fake_fetch)
        market = MarketData(clock=clock)
        await market.fear_greed()
        clock.advance(120)
        assert (await market.fear_greed()).value == 70

    @pytest.mark.asyncio
    async def test_neutral_without_history(self, monkeypatch, clock):
        async def fake_fetch(client=None):
            return None

        monkeypatch.setattr(fear_greed, "fetch_fear_greed_reading", fake_fetch)
        reading = await MarketData(clock=clock).fear_greed()
        assert (reading.value, reading.classification) == (50, "Neutral")


class TestMarketViews:

    @pytest.mark.asyncio
    async def test_fear_greed_for_depth(self, market, clock):
        market.fng_result = FearGreedReading(90, "Extreme Greed")
        view = await MarketViewService(market, clock).get_fear_greed_for_depth()
        assert view == {"buyPercent": "85.0", "sellPercent": "15.0",
                        "index": 90, "label": "Extreme Greed"}

    @pytest.mark.asyncio
    async def test_history_buckets(self, market, clock):
        market.history = [{"value": v, "classification": "", "timestamp": i}
                          for i, v in enumerate([80, 10, 30, 50, 60, 90, 20])]
        view = await MarketViewService(market, clock).get_fear_greed_history(limit=7)

        assert view["totalDays"] == 7
        assert sum(view["buckets"].values()) == 7
        assert view["buckets"]["extremeFear"] == 2
        assert view["current"]["value"] == 80

    @pytest.mark.asyncio
    async def test_history_unavailable(self, market, clock):
        view = await MarketViewService(market, clock).get_fear_greed_history()
        assert view["totalDays"] == 0
        assert view["current"] == {"value": 50, "classification": "Neutral", "timestamp": None}
        assert view["chartData"] == []

    @pytest.mark.asyncio
    async def test_history_chart_joins_btc_closes_by_day(self, market, clock):
        day = 86_400
        market.history = [
            {"value": 70, "classification": "Greed", "timestamp": 3 * day},
            {"value": 40, "classification": "Fear",  "timestamp": 2 * day},
            {"value": 20, "classification": "Extreme Fear", "timestamp": 1 * day},
        ]
        # closes for day 1 and day 3 only, stamped an hour into the day (ms)
        market.chart = PriceHistory(prices=[30_000.0, 32_000.0],
                                    timestamps=[(day + 3600) * 1000, (3 * day + 3600) * 1000])
        view = await MarketViewService(market, clock).get_fear_greed_history(limit=3)

        assert view["chartData"] == [
            {"date": "1970-01-02", "fgi": 20, "btcPrice": 30_000.0},
            {"date": "1970-01-04", "fgi": 70, "btcPrice": 32_000.0},
        ]
        assert market.calls["market_chart"] == 1

    @pytest.mark.asyncio
    async def test_views_are_cached(self, market, clock):
        market.history = [{"value": 40, "classification": "Fear", "timestamp": 0}]
        views = MarketViewService(market, clock)
        await views.get_fear_greed_history()
        await views.get_fear_greed_history()
        assert market.calls["fear_greed_history"] == 1

        clock.advance(301)
        await views.get_fear_greed_history()
        assert market.calls["fear_greed_history"] == 2

    @pytest.mark.asyncio
    async def test_asset_sentiment(self, market, clock):
        market.chart = PriceHistory(prices=[100.0] * 14 + [110.0], volumes=[1e9] * 15)
        view = await MarketViewService(market, clock).get_asset_sentiment("btc")
        assert view["asset"] == "BTC"
        assert view["score"] == 80
        assert view["label"] == "Extreme Greed"
        assert view["inputs"]["return_1d"] == pytest.approx(10.0)

    @pytest.mark.asyncio
    async def test_asset_sentiment_without_history(self, market, clock):
        view = await MarketViewService(market, clock).get_asset_sentiment("DOGE")
        assert view == {"asset": "DOGE", "score": 50, "label": "Neutral", "inputs": None}
