"""Tests for the HTTP layer, wired to fakes instead of live upstreams."""

import asyncio

import pytest
from fastapi.testclient import TestClient

import app as app_module
from conftest import FakeLLM, FakeMarket
from pulse_engine.models import NewsArticle
from pulse_engine.storage import MemoryStorage


class StubScheduler:
    is_running = False

    def __init__(self):
        self.triggered = 0

    def status(self):
        return {"scheduler_running": False, "cycles_run": 0, "jobs": []}

    def trigger_now(self):
        self.triggered += 1
        return {"triggered": True}


@pytest.fixture
def market():
    m = FakeMarket()
    m.articles = [NewsArticle("Bitcoin breaks out", "desc", "Wire", "2025-01-01T00:00:00Z", "u")]
    m.history = [{"value": 40, "classification": "Fear", "timestamp": 0}]
    return m


@pytest.fixture
def runtime(monkeypatch, market):
    storage = MemoryStorage()
    asyncio.run(storage.seed_strategies())
    llm = FakeLLM({"prediction": "BULLISH", "confidence": 82, "targetPrice": 2000, "reasoning": "test"})
    rt = app_module.build_runtime(storage, market=market, llm=llm)
    rt.scheduler = StubScheduler()
    monkeypatch.setattr(app_module, "runtime", rt)
    return rt


@pytest.fixture
def client(runtime):
    return TestClient(app_module.app, raise_server_exceptions=False)


class TestHealth:

    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["storage"] == "memory"
        assert data["ai"] == "enabled"

    def test_not_ready_before_startup(self, monkeypatch):
        monkeypatch.setattr(app_module, "runtime", None)
        assert TestClient(app_module.app).get("/health").status_code == 503


class TestPredictionEndpoints:

    def test_prediction(self, client):
        r = client.get("/api/ai/prediction/eth", params={"timeframe": "1H"})
        assert r.status_code == 200
        data = r.json()
        assert data["asset"] == "ETH"
        assert data["prediction"] == "BULLISH"
        assert data["confidence"] == "82"

    def test_unknown_timeframe_is_400(self, client):
        assert client.get("/api/ai/prediction/ETH", params={"timeframe": "7H"}).status_code == 400

    def test_invalid_asset_is_400(self, client):
        assert client.get("/api/ai/prediction/BTC-USD").status_code == 400

    def test_fear_greed(self, client):
        assert client.get("/api/ai/fear-greed").json() == {
            "buyPercent": "60.0", "sellPercent": "40.0", "index": 60, "label": "Greed"}

    def test_news(self, client):
        items = client.get("/api/news/predictions").json()
        assert len(items) == 1
        assert items[0]["asset"] == "BTC"


class TestMarketEndpoints:

    def test_depth(self, client):
        data = client.get("/api/exchange/depth/btc").json()
        assert len(data["exchanges"]) == 14
        assert data["longShortRatio"] == 1.5
        assert data["simulated"] is True

    def test_fear_greed_history(self, client):
        data = client.get("/api/market/fear-greed-history", params={"limit": 30}).json()
        assert data["totalDays"] == 1
        assert data["buckets"]["fear"] == 1

    def test_sentiment(self, client):
        assert client.get("/api/market/sentiment/sol").json()["score"] == 50

    def test_strategies(self, client):
        rows = client.get("/api/strategies").json()
        assert len(rows) == 6
        assert {"winRate", "monthlyReturn", "totalAum", "isHot", "isVipOnly"} <= set(rows[0])

    def test_unexpected_error_is_500(self, client, market):
        market.error = RuntimeError("kaboom")
        r = client.get("/api/strategies")
        assert r.status_code == 200
        r = client.get("/api/market/sentiment/BTC")
        assert r.status_code == 500
        assert r.json() == {"message": "kaboom"}


class TestSchedulerEndpoints:

    def test_status(self, client):
        assert client.get("/api/scheduler/status").json()["scheduler_running"] is False

    def test_trigger(self, client, runtime):
        assert client.post("/api/scheduler/trigger").json() == {"triggered": True}
        assert runtime.scheduler.triggered == 1
