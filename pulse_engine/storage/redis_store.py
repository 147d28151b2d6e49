"""
Crypto Pulse — Redis Storage
─────────────────────────────
Durable predictions and strategies.

Key layout:
  cp:predictions:{ASSET}    sorted set   member = prediction JSON, score = created_at (epoch s)
  cp:predictions:assets     set          assets that have ever had a prediction
  cp:strategies             hash         id → strategy JSON
"""

import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import redis.asyncio as aioredis

from pulse_engine.models import Prediction, PredictionDraft, Strategy
from pulse_engine.storage.base import DEFAULT_STRATEGIES, Storage

log = logging.getLogger("cp.storage.redis")

PREFIX = "cp"
LATEST_SCAN = 20   # newest N rows searched when filtering by timeframe


def key_predictions(asset: str) -> str:
    return f"{PREFIX}:predictions:{asset.upper()}"


KEY_ASSETS     = f"{PREFIX}:predictions:assets"
KEY_STRATEGIES = f"{PREFIX}:strategies"


class RedisStorage(Storage):

    name = "redis"

    def __init__(self, client: aioredis.Redis, clock: Callable[[], float] = time.time):
        self._r     = client
        self._clock = clock

    @classmethod
    async def connect(cls, url: str) -> "RedisStorage":
        client = aioredis.from_url(url, decode_responses=True, socket_timeout=2)
        await client.ping()
        return cls(client)

    async def get_latest_prediction(self, asset: str,
                                    timeframe: Optional[str] = None) -> Optional[Prediction]:
        rows = await self._r.zrevrange(key_predictions(asset), 0, LATEST_SCAN - 1)
        for raw in rows:
            try:
                p = Prediction.from_dict(json.loads(raw))
            except (ValueError, TypeError) as e:
                log.warning(f"Skipping unreadable prediction for {asset}: {e}")
                continue
            if timeframe is None or p.timeframe == timeframe:
                return p
        return None

    async def save_prediction(self, draft: PredictionDraft) -> Prediction:
        now   = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        saved = Prediction.from_draft(draft, id=uuid.uuid4().hex, created_at=now)
        score = saved.created_at.timestamp()
        async with self._r.pipeline(transaction=True) as pipe:
            pipe.zadd(key_predictions(saved.asset), {json.dumps(saved.to_dict()): score})
            pipe.sadd(KEY_ASSETS, saved.asset.upper())
            await pipe.execute()
        return saved

    async def clean_old_predictions(self, max_age_s: float) -> int:
        cutoff  = self._clock() - max_age_s
        deleted = 0
        for asset in await self._r.smembers(KEY_ASSETS):
            # exclusive bound: a row exactly at the cutoff survives
            deleted += await self._r.zremrangebyscore(key_predictions(asset), "-inf", f"({cutoff}")
        return deleted

    async def count_predictions(self) -> int:
        total = 0
        for asset in await self._r.smembers(KEY_ASSETS):
            total += await self._r.zcard(key_predictions(asset))
        return total

    async def get_strategies(self) -> List[Strategy]:
        raw = await self._r.hgetall(KEY_STRATEGIES)
        return [Strategy.from_dict(json.loads(v)) for v in raw.values()]

    async def update_strategy(self, strategy_id: str, patch: Dict[str, Any]) -> Optional[Strategy]:
        raw = await self._r.hget(KEY_STRATEGIES, strategy_id)
        if not raw:
            return None
        updated = Strategy.from_dict({**json.loads(raw), **patch, "id": strategy_id})
        await self._r.hset(KEY_STRATEGIES, strategy_id, json.dumps(updated.to_dict()))
        return updated

    async def seed_strategies(self, rows: Optional[List[Dict[str, Any]]] = None) -> int:
        if await self._r.hlen(KEY_STRATEGIES):
            return 0
        mapping = {}
        for row in rows if rows is not None else DEFAULT_STRATEGIES:
            s = Strategy.from_dict({**row, "id": row.get("id") or uuid.uuid4().hex})
            mapping[s.id] = json.dumps(s.to_dict())
        if mapping:
            await self._r.hset(KEY_STRATEGIES, mapping=mapping)
        return len(mapping)

    async def close(self):
        await self._r.aclose()
