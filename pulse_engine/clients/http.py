"""
Crypto Pulse — Shared HTTP Client
──────────────────────────────────
One pooled httpx.AsyncClient for every upstream call.
get_json() retries transient failures and NEVER raises:
a None return means "use your fallback".
"""

import asyncio
import logging
from typing import Any, Optional

import httpx

from pulse_engine import config

log = logging.getLogger("cp.clients.http")

RETRY_ATTEMPTS = 2
RETRY_DELAY    = 1.0

HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "application/json",
}

_http_client: Optional[httpx.AsyncClient] = None


async def get_client() -> httpx.AsyncClient:
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(
            limits=httpx.Limits(max_connections=50, max_keepalive_connections=20),
            timeout=config.REQUEST_TIMEOUT,
            headers=HEADERS,
        )
    return _http_client


async def close_client():
    global _http_client
    if _http_client and not _http_client.is_closed:
        await _http_client.aclose()
    _http_client = None


async def get_json(client: httpx.AsyncClient, url: str, params: dict = None,
                   retries: int = RETRY_ATTEMPTS) -> Optional[Any]:
    for attempt in range(retries):
        try:
            r = await client.get(url, params=params, timeout=config.REQUEST_TIMEOUT)
            if r.status_code == 200:
                return r.json()
            if r.status_code == 429:
                wait = RETRY_DELAY * (attempt + 1) * 2
                log.warning(f"Rate limited by {url[:60]} — waiting {wait}s")
                await asyncio.sleep(wait)
                continue
            if r.status_code in (400, 401, 403, 404, 451):
                log.warning(f"HTTP {r.status_code} — skipping {url[:60]}")
                return None
            log.warning(f"HTTP {r.status_code} from {url[:60]}")
        except httpx.TimeoutException:
            log.warning(f"Timeout (attempt {attempt+1}): {url[:60]}")
        except (httpx.HTTPError, ValueError) as e:
            log.warning(f"Error (attempt {attempt+1}) {url[:60]}: {e}")
        if attempt < retries - 1:
            await asyncio.sleep(RETRY_DELAY)
    return None
