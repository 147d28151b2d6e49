"""
Crypto Pulse — Fear & Greed Client (alternative.me)
────────────────────────────────────────────────────
Current reading and daily history. The current reading is None
when the upstream is down (MarketData then serves its last good
value or neutral_reading()); history falls back to an empty list.
"""

from typing import List, Optional

import httpx

from pulse_engine.clients.http import get_client, get_json
from pulse_engine.derive.fear_greed import classify_fear_greed
from pulse_engine.models import FearGreedReading

FNG_URL = "https://api.alternative.me/fng/"


def neutral_reading() -> FearGreedReading:
    return FearGreedReading(50, "Neutral")


def _parse_entry(entry: dict) -> Optional[dict]:
    try:
        value = int(entry["value"])
    except (KeyError, TypeError, ValueError):
        return None
    value = max(0, min(100, value))
    return {
        "value":          value,
        "classification": entry.get("value_classification") or classify_fear_greed(value),
        "timestamp":      int(entry.get("timestamp") or 0),
    }


async def _fetch_entries(limit: int, client: Optional[httpx.AsyncClient]) -> List[dict]:
    client = client or await get_client()
    d = await get_json(client, FNG_URL, params={"limit": limit})
    if not isinstance(d, dict):
        return []
    parsed = (_parse_entry(e) for e in d.get("data") or [] if isinstance(e, dict))
    return [p for p in parsed if p is not None]


async def fetch_fear_greed_reading(client: Optional[httpx.AsyncClient] = None) -> Optional[FearGreedReading]:
    """Current reading, or None when the upstream is unavailable."""
    entries = await _fetch_entries(1, client)
    if not entries:
        return None
    e = entries[0]
    return FearGreedReading(e["value"], e["classification"])


async def fetch_fear_greed_history(limit: int = 365,
                                   client: Optional[httpx.AsyncClient] = None) -> List[dict]:
    """Newest first, as the upstream returns it."""
    return await _fetch_entries(limit, client)
