"""
Crypto Pulse — Market Views
────────────────────────────
Read-only dashboard views derived from sentiment data. Each view
is cached for 5 minutes; none of them touch the model.
"""

import asyncio
import logging
import time
from typing import Callable

from pulse_engine.cache import TTL, TTLCache
from pulse_engine.derive.fear_greed import (
    bucket_distribution, depth_from_fear_greed, join_with_prices,
)
from pulse_engine.derive.sentiment import score_history
from pulse_engine.services.market import MarketData

log = logging.getLogger("cp.market_views")

HISTORY_DAYS = 15

NEUTRAL_CURRENT = {"value": 50, "classification": "Neutral", "timestamp": None}


class MarketViewService:

    def __init__(self, market: MarketData, clock: Callable[[], float] = time.time):
        self._market = market
        self._cache: TTLCache[dict] = TTLCache(TTL["market_views"], clock)

    async def get_fear_greed_for_depth(self) -> dict:
        """Buy/sell bar from the global index (the 50s gateway cache still applies underneath)."""
        hit = self._cache.get("depth")
        if hit:
            return hit.payload
        view = depth_from_fear_greed(await self._market.fear_greed())
        self._cache.put("depth", view)
        return view

    async def get_fear_greed_history(self, limit: int = 365) -> dict:
        """Bucketed index history plus a daily index/BTC-price series for the chart."""
        key = ("history", limit)
        hit = self._cache.get(key)
        if hit:
            return hit.payload

        entries, btc = await asyncio.gather(
            self._market.fear_greed_history(limit),
            self._market.market_chart("BTC", limit),
        )
        if not entries:
            stale = self._cache.peek(key)
            if stale:
                return stale.payload
            log.warning("Fear & Greed history unavailable — empty distribution")

        dist = bucket_distribution(e["value"] for e in entries)
        view = {
            "current":     entries[0] if entries else dict(NEUTRAL_CURRENT),
            "buckets":     dist.counts(),
            "percentages": dist.percentages(),
            "totalDays":   dist.total,
            "chartData":   join_with_prices(entries, btc),
        }
        if entries:
            self._cache.put(key, view)
        return view

    async def get_asset_sentiment(self, asset: str) -> dict:
        asset = asset.upper()
        key = ("sentiment", asset)
        hit = self._cache.get(key)
        if hit:
            return hit.payload

        history = await self._market.market_chart(asset, HISTORY_DAYS)
        view = {"asset": asset, **score_history(history)}
        if view["inputs"] is not None:
            self._cache.put(key, view)
        else:
            log.info(f"{asset}: not enough price history — neutral sentiment")
        return view
