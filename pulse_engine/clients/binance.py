"""
Crypto Pulse — Binance Client
──────────────────────────────
Long/short positioning, order-book depth, 24h ticker and spot price.

Every function resolves to a defined value. Fallback chain for
long/short:

  1. futures globalLongShortAccountRatio  → long% = ratio / (1 + ratio)
  2. spot 24h ticker change %             → long% = 50 + 1.5·Δ%  (+ book bias), clamped 30–70
  3. flat                                  → 50 / 50, ratio 1
"""

import logging
from typing import Optional

import httpx

from pulse_engine.clients.coingecko import fetch_simple_price
from pulse_engine.clients.http import get_client, get_json
from pulse_engine.models import LongShort, OrderBookTotals, TickerStats

log = logging.getLogger("cp.clients.binance")

SPOT_BASE    = "https://api.binance.us/api/v3"
FUTURES_BASE = "https://fapi.binance.com/futures/data"

DEPTH_LEVELS = 50


def neutral_long_short() -> LongShort:
    return LongShort(50.0, 50.0, 1.0, source="fallback")


def pair(asset: str) -> str:
    return f"{asset.upper()}USDT"


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def long_short_from_ratio(ratio: float) -> LongShort:
    long_pct = ratio / (1 + ratio) * 100
    return LongShort(long_pct, 100 - long_pct, round(ratio, 2), source="futures")


def long_short_from_ticker(ticker: TickerStats, book_buy_pct: float = 50.0) -> LongShort:
    price_bias = ticker.price_change_percent * 1.5
    depth_bias = (book_buy_pct - 50) * 0.5
    long_pct   = _clamp(50 + price_bias + depth_bias, 30, 70)
    short_pct  = 100 - long_pct
    return LongShort(long_pct, short_pct, round(long_pct / short_pct, 2), source="ticker")


async def fetch_ticker_24h(symbol: str, client: Optional[httpx.AsyncClient] = None) -> Optional[TickerStats]:
    """24h stats for e.g. BTCUSDT. None when the upstream is unavailable."""
    client = client or await get_client()
    d = await get_json(client, f"{SPOT_BASE}/ticker/24hr", params={"symbol": symbol})
    if not isinstance(d, dict):
        return None
    try:
        return TickerStats(
            price_change_percent = float(d.get("priceChangePercent") or 0),
            high_price           = float(d.get("highPrice") or 0),
            low_price            = float(d.get("lowPrice") or 0),
            last_price           = float(d.get("lastPrice") or 0),
            volume               = float(d.get("volume") or 0),
        )
    except (TypeError, ValueError) as e:
        log.warning(f"Ticker parse error for {symbol}: {e}")
        return None


async def fetch_order_book(symbol: str, client: Optional[httpx.AsyncClient] = None) -> OrderBookTotals:
    """Bid/ask notional over the top 50 levels. Fallback 50/50."""
    client = client or await get_client()
    d = await get_json(client, f"{SPOT_BASE}/depth",
                       params={"symbol": symbol, "limit": DEPTH_LEVELS})
    if isinstance(d, dict) and d.get("bids") and d.get("asks"):
        try:
            bid_total = sum(float(p) * float(q) for p, q, *_ in d["bids"][:DEPTH_LEVELS])
            ask_total = sum(float(p) * float(q) for p, q, *_ in d["asks"][:DEPTH_LEVELS])
            if bid_total + ask_total > 0:
                return OrderBookTotals(bid_total, ask_total, source="binance")
        except (TypeError, ValueError) as e:
            log.warning(f"Order book parse error for {symbol}: {e}")
    return OrderBookTotals(50.0, 50.0)


async def fetch_long_short_ratio(symbol: str, client: Optional[httpx.AsyncClient] = None) -> Optional[float]:
    client = client or await get_client()
    d = await get_json(client, f"{FUTURES_BASE}/globalLongShortAccountRatio",
                       params={"symbol": symbol, "period": "5m", "limit": 1})
    if not isinstance(d, list) or not d:
        return None
    try:
        ratio = float(d[-1].get("longShortRatio"))
    except (TypeError, ValueError, AttributeError):
        return None
    return ratio if ratio > 0 else None


def resolve_long_short(symbol: str, ratio: Optional[float], ticker: Optional[TickerStats],
                       book_buy_pct: float = 50.0) -> LongShort:
    """Walk the fallback chain over already-fetched inputs."""
    if ratio is not None:
        return long_short_from_ratio(ratio)
    if ticker is not None:
        log.info(f"{symbol}: futures ratio unavailable — using ticker bias")
        return long_short_from_ticker(ticker, book_buy_pct)
    log.warning(f"{symbol}: long/short unavailable — neutral 50/50")
    return neutral_long_short()


async def fetch_price(asset: str, client: Optional[httpx.AsyncClient] = None) -> float:
    """Spot USD price. Binance first, CoinGecko second, 0.0 last."""
    client = client or await get_client()
    d = await get_json(client, f"{SPOT_BASE}/ticker/price", params={"symbol": pair(asset)})
    if isinstance(d, dict):
        try:
            price = float(d.get("price") or 0)
            if price > 0:
                return price
        except (TypeError, ValueError):
            pass
    return await fetch_simple_price(asset, client)
