"""
Crypto Pulse — Market Data Gateway
───────────────────────────────────
One object in front of every upstream client, shared by all
services. Services depend on this instead of on the client
modules, so tests swap a single collaborator.

The global Fear & Greed reading is cached here (one key, 50s)
because every asset's depth snapshot and every prediction asks
for it in the same cycle.
"""

import logging
import time
from typing import Callable, List, Optional

import httpx

from pulse_engine.cache import TTL, TTLCache
from pulse_engine.clients import binance, coingecko, fear_greed, news
from pulse_engine.models import (
    FearGreedReading, NewsArticle, OrderBookTotals, PriceHistory, TickerStats,
)

log = logging.getLogger("cp.market")

_FNG_KEY = "global"


class MarketData:

    def __init__(self, client: Optional[httpx.AsyncClient] = None,
                 clock: Callable[[], float] = time.time):
        self._client     = client
        self._fear_greed = TTLCache(TTL["fear_greed"], clock)

    # ── Binance ──────────────────────────────────────────────

    async def ticker(self, symbol: str) -> Optional[TickerStats]:
        return await binance.fetch_ticker_24h(symbol, self._client)

    async def order_book(self, symbol: str) -> OrderBookTotals:
        return await binance.fetch_order_book(symbol, self._client)

    async def long_short_ratio(self, symbol: str) -> Optional[float]:
        return await binance.fetch_long_short_ratio(symbol, self._client)

    async def price(self, asset: str) -> float:
        return await binance.fetch_price(asset, self._client)

    # ── Sentiment ────────────────────────────────────────────

    async def fear_greed(self) -> FearGreedReading:
        """Cached global reading. Last good value when the upstream is down, else neutral."""
        hit = self._fear_greed.get(_FNG_KEY)
        if hit:
            return hit.payload

        reading = await fear_greed.fetch_fear_greed_reading(self._client)
        if reading is not None:
            self._fear_greed.put(_FNG_KEY, reading)
            return reading

        stale = self._fear_greed.peek(_FNG_KEY)
        if stale:
            log.warning("Fear & Greed refresh failed — serving last good reading")
            return stale.payload
        log.warning("Fear & Greed unavailable — neutral 50")
        return fear_greed.neutral_reading()

    async def fear_greed_history(self, limit: int = 365) -> List[dict]:
        return await fear_greed.fetch_fear_greed_history(limit, self._client)

    async def market_chart(self, asset: str, days: int = 15) -> PriceHistory:
        return await coingecko.fetch_market_chart(asset, days, self._client)

    # ── News ─────────────────────────────────────────────────

    async def news(self) -> List[NewsArticle]:
        return await news.fetch_crypto_news(self._client)
