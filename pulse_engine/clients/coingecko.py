"""
Crypto Pulse — CoinGecko Client
────────────────────────────────
Free tier, no key. Used as the spot-price fallback and for the
daily price/volume history behind the per-asset sentiment score.
"""

import logging
from typing import Optional

import httpx

from pulse_engine.clients.http import get_client, get_json
from pulse_engine.models import PriceHistory

log = logging.getLogger("cp.clients.coingecko")

BASE = "https://api.coingecko.com/api/v3"

COIN_IDS = {
    "BTC":  "bitcoin",
    "ETH":  "ethereum",
    "SOL":  "solana",
    "BNB":  "binancecoin",
    "DOGE": "dogecoin",
    "XRP":  "ripple",
}


def coin_id(asset: str) -> str:
    return COIN_IDS.get(asset.upper(), "bitcoin")


async def fetch_simple_price(asset: str, client: Optional[httpx.AsyncClient] = None) -> float:
    client = client or await get_client()
    cid = coin_id(asset)
    d = await get_json(client, f"{BASE}/simple/price",
                       params={"ids": cid, "vs_currencies": "usd"})
    try:
        return float(((d or {}).get(cid) or {}).get("usd") or 0)
    except (TypeError, ValueError, AttributeError):
        return 0.0


async def fetch_market_chart(asset: str, days: int = 15,
                             client: Optional[httpx.AsyncClient] = None) -> PriceHistory:
    """Daily closes and volumes, oldest first. Empty history on failure."""
    client = client or await get_client()
    d = await get_json(client, f"{BASE}/coins/{coin_id(asset)}/market_chart",
                       params={"vs_currency": "usd", "days": days, "interval": "daily"})
    if not isinstance(d, dict):
        return PriceHistory()
    try:
        rows    = d.get("prices") or []
        prices  = [float(p[1]) for p in rows]
        stamps  = [int(p[0]) for p in rows]
        volumes = [float(v[1]) for v in d.get("total_volumes") or []]
    except (TypeError, ValueError, IndexError) as e:
        log.warning(f"Market chart parse error for {asset}: {e}")
        return PriceHistory()
    return PriceHistory(prices=prices, volumes=volumes, timestamps=stamps)
