"""
Crypto Pulse — Exchange Depth Service
──────────────────────────────────────
Per-symbol buy/sell pressure across the exchange roster.

Flow on a cache miss:
  ticker ┐
  book   ├─ gather ─→ long/short (ratio → ticker → flat)
  ratio  │           → synthetic rows → aggregate
  F&G    ┘           → per-coin sentiment

A refresh where every Binance source fell back is treated as a
failure: the last good snapshot is served if one exists, else
the neutral snapshot (all rows 50/50, ratio 1).
"""

import asyncio
import logging
import random
import time
from typing import Callable, Optional

from pulse_engine.cache import TTL, TTLCache
from pulse_engine.clients.binance import pair, resolve_long_short
from pulse_engine.derive.depth import (
    aggregate_rows, coin_sentiment, neutral_rows, synthesize_exchange_rows,
)
from pulse_engine.models import ExchangeDepthSnapshot, TickerStats
from pulse_engine.services.market import MarketData

log = logging.getLogger("cp.exchange_data")


class UpstreamUnavailable(Exception):
    pass


def neutral_snapshot(now_ms: int) -> ExchangeDepthSnapshot:
    return ExchangeDepthSnapshot(
        exchanges        = neutral_rows(),
        aggregated_buy   = 50.0,
        aggregated_sell  = 50.0,
        fear_greed_index = 50,
        fear_greed_label = "Neutral",
        long_short_ratio = 1.0,
        timestamp        = now_ms,
    )


class ExchangeDataService:

    def __init__(self, market: MarketData, rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.time):
        self._market = market
        self._rng    = rng or random.Random()
        self._clock  = clock
        self._cache: TTLCache[ExchangeDepthSnapshot] = TTLCache(TTL["exchange_depth"], clock)

    async def get_exchange_aggregated_data(self, symbol: str = "BTC") -> ExchangeDepthSnapshot:
        symbol = symbol.upper()
        hit = self._cache.get(symbol)
        if hit:
            return hit.payload

        try:
            snapshot = await self._build(symbol)
        except Exception as e:
            stale = self._cache.peek(symbol)
            if stale:
                log.warning(f"{symbol}: depth refresh failed ({e}) — serving last good snapshot")
                return stale.payload
            log.warning(f"{symbol}: depth refresh failed ({e}) — neutral snapshot")
            return neutral_snapshot(int(self._clock() * 1000))

        self._cache.put(symbol, snapshot)
        return snapshot

    async def _build(self, symbol: str) -> ExchangeDepthSnapshot:
        trading_pair = pair(symbol)
        ticker, book, ratio, fng = await asyncio.gather(
            self._market.ticker(trading_pair),
            self._market.order_book(trading_pair),
            self._market.long_short_ratio(trading_pair),
            self._market.fear_greed(),
        )
        if ratio is None and ticker is None and book.source == "fallback":
            raise UpstreamUnavailable("no Binance source answered")

        long_short = resolve_long_short(symbol, ratio, ticker, book.buy_percent)
        rows       = synthesize_exchange_rows(long_short, book, self._rng)
        buy, sell  = aggregate_rows(rows)
        sentiment  = coin_sentiment(ticker or TickerStats(), book.buy_percent, fng.value)

        log.info(f"{symbol}: depth {buy:.1f}/{sell:.1f} "
                 f"(L/S {long_short.ratio} via {long_short.source}, F&G {sentiment.value})")
        return ExchangeDepthSnapshot(
            exchanges        = rows,
            aggregated_buy   = buy,
            aggregated_sell  = sell,
            fear_greed_index = sentiment.value,
            fear_greed_label = sentiment.classification,
            long_short_ratio = long_short.ratio,
            timestamp        = int(self._clock() * 1000),
        )
