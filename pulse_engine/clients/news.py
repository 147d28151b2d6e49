"""
Crypto Pulse — News Client (NewsAPI)
─────────────────────────────────────
Fetches the latest crypto headlines. Removed / empty entries are
dropped here so downstream analysis only sees real articles.

Setup:
  Set NEWS_API_KEY. Without it this returns [] and news
  predictions stay empty — never an error.
"""

import logging
from typing import List, Optional

import httpx

from pulse_engine import config
from pulse_engine.clients.http import get_client, get_json
from pulse_engine.models import NewsArticle

log = logging.getLogger("cp.clients.news")

NEWS_API_URL = "https://newsapi.org/v2/everything"
NEWS_QUERY   = "bitcoin OR ethereum OR crypto OR cryptocurrency"
PAGE_SIZE    = 15


def _keep(raw: dict) -> bool:
    title = (raw.get("title") or "").strip()
    return bool(title) and title != "[Removed]" and bool((raw.get("description") or "").strip())


def parse_articles(data: dict) -> List[NewsArticle]:
    out = []
    for raw in (data or {}).get("articles") or []:
        if not isinstance(raw, dict) or not _keep(raw):
            continue
        source = raw.get("source") or {}
        out.append(NewsArticle(
            title        = raw["title"].strip(),
            description  = raw["description"].strip(),
            source       = (source.get("name") if isinstance(source, dict) else str(source)) or "Unknown",
            published_at = raw.get("publishedAt") or "",
            url          = raw.get("url") or "",
        ))
    return out


async def fetch_crypto_news(client: Optional[httpx.AsyncClient] = None,
                            api_key: Optional[str] = None) -> List[NewsArticle]:
    api_key = config.NEWS_API_KEY if api_key is None else api_key
    if not api_key:
        log.warning("NEWS_API_KEY not set — no news this cycle")
        return []

    client = client or await get_client()
    data = await get_json(client, NEWS_API_URL, params={
        "q":        NEWS_QUERY,
        "language": "en",
        "sortBy":   "publishedAt",
        "pageSize": PAGE_SIZE,
        "apiKey":   api_key,
    })
    if not isinstance(data, dict):
        return []
    return parse_articles(data)
