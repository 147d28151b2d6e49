"""Shared fakes and fixtures for the Crypto Pulse suite."""

import asyncio
import json
from collections import Counter

import pytest

from pulse_engine.clients import LLMError, http
from pulse_engine.clients.llm import extract_json
from pulse_engine.models import (
    FearGreedReading, OrderBookTotals, PriceHistory, TickerStats,
)
from pulse_engine.storage import MemoryStorage

T0 = 1_760_000_000.0


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, now: float = T0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeMarket:
    """Stands in for MarketData. Every call is counted; `error` makes every call raise."""

    def __init__(self):
        self.ticker_result = TickerStats(price_change_percent=1.0, high_price=110.0,
                                         low_price=90.0, last_price=100.0, volume=1000.0)
        self.book_result   = OrderBookTotals(100.0, 100.0, source="binance")
        self.ratio_result  = 1.5
        self.fng_result    = FearGreedReading(60, "Greed")
        self.price_result  = 2000.0
        self.history       = []
        self.chart         = PriceHistory()
        self.articles      = []
        self.error         = None
        self.calls         = Counter()
        self.symbols       = []

    def _hit(self, name: str):
        self.calls[name] += 1
        if self.error:
            raise self.error

    def fail_upstream(self):
        """Every Binance source answers with its fallback."""
        self.ticker_result = None
        self.book_result   = OrderBookTotals(50.0, 50.0)
        self.ratio_result  = None

    async def ticker(self, symbol):
        self._hit("ticker")
        self.symbols.append(symbol)
        return self.ticker_result

    async def order_book(self, symbol):
        self._hit("order_book")
        return self.book_result

    async def long_short_ratio(self, symbol):
        self._hit("long_short_ratio")
        return self.ratio_result

    async def price(self, asset):
        self._hit("price")
        return self.price_result

    async def fear_greed(self):
        self._hit("fear_greed")
        return self.fng_result

    async def fear_greed_history(self, limit=365):
        self._hit("fear_greed_history")
        return self.history[:limit]

    async def market_chart(self, asset, days=15):
        self._hit("market_chart")
        return self.chart

    async def news(self):
        self._hit("news")
        return self.articles


class FakeLLM:
    """Stands in for LLMClient. `reply` is a dict (sent as JSON) or raw text."""

    def __init__(self, reply=None, error=None, enabled=True):
        self.reply   = reply
        self.error   = error
        self.enabled = enabled
        self.calls   = []

    async def complete(self, system, user, max_tokens=400):
        self.calls.append(user)
        await asyncio.sleep(0)
        if self.error:
            raise self.error
        return self.reply if isinstance(self.reply, str) else json.dumps(self.reply or {})

    async def complete_json(self, system, user, max_tokens=400):
        return extract_json(await self.complete(system, user, max_tokens))


@pytest.fixture(autouse=True)
def _no_retry_delay(monkeypatch):
    monkeypatch.setattr(http, "RETRY_DELAY", 0.0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def market():
    return FakeMarket()


@pytest.fixture
def storage(clock):
    return MemoryStorage(clock=clock)


@pytest.fixture
def bullish_llm():
    return FakeLLM({"prediction": "BULLISH", "confidence": 82,
                    "targetPrice": 2000, "reasoning": "test"})


@pytest.fixture
def broken_llm():
    return FakeLLM(error=LLMError("model unavailable"))
