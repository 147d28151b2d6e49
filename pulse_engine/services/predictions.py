"""
Crypto Pulse — AI Price Predictions
────────────────────────────────────
One directional call per (asset, timeframe), persisted and served
until it goes stale.

  FRESH       memory hit (5 min) or stored row for the same timeframe
              younger than 10 min → returned as-is, no upstream calls
  GENERATING  price + Fear & Greed in parallel → model → decode →
              persist → memory cache
  FAILED      model error → last stored row (even stale), else a
              neutral placeholder that is neither persisted nor cached

Concurrent callers for the same key share one generation task.
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Tuple

from pulse_engine.cache import TTL, TTLCache
from pulse_engine.clients import LLMClient, LLMError
from pulse_engine.clients.decode import decode_prediction
from pulse_engine.models import FearGreedReading, Prediction, PredictionDraft
from pulse_engine.services.market import MarketData
from pulse_engine.storage import Storage

log = logging.getLogger("cp.predictions")

# timeframe → (prompt label, validity in seconds)
TIMEFRAMES: Dict[str, Tuple[str, int]] = {
    "5M":  ("5-minute",  5 * 60),
    "15M": ("15-minute", 15 * 60),
    "30M": ("30-minute", 30 * 60),
    "1H":  ("1-hour",    3600),
    "4H":  ("4-hour",    4 * 3600),
    "1D":  ("1-day",     24 * 3600),
    "1W":  ("1-week",    7 * 24 * 3600),
}

SYSTEM_PROMPT = (
    "You are a crypto market analyst. Analyze the market and provide a prediction "
    "in JSON format only. Response must be valid JSON with these fields: "
    "prediction (BULLISH/BEARISH/NEUTRAL), confidence (0-100), targetPrice (number), "
    "reasoning (1 sentence)."
)

FAILED_REASONING = "Unable to generate prediction"


def normalize_timeframe(timeframe: str) -> str:
    tf = (timeframe or "1H").strip().upper()
    if tf not in TIMEFRAMES:
        raise ValueError(f"Unknown timeframe {timeframe!r} — expected one of {', '.join(TIMEFRAMES)}")
    return tf


def horizon_seconds(timeframe: str) -> int:
    return TIMEFRAMES[timeframe][1]


def build_user_prompt(asset: str, price: float, fng: FearGreedReading, timeframe: str) -> str:
    label = TIMEFRAMES.get(timeframe, (timeframe,))[0]
    return (
        f"Analyze {asset} at ${price}. "
        f"Fear & Greed Index: {fng.value} ({fng.classification}). "
        f"Predict the {label} price movement for timeframe {timeframe}."
    )


class PredictionService:

    def __init__(self, storage: Storage, llm: LLMClient, market: MarketData,
                 clock: Callable[[], float] = time.time):
        self._storage = storage
        self._llm     = llm
        self._market  = market
        self._clock   = clock
        self._memory: TTLCache[Prediction] = TTLCache(TTL["prediction_memory"], clock)
        self._in_flight: Dict[Tuple[str, str], asyncio.Task] = {}

    @property
    def ai_enabled(self) -> bool:
        return self._llm.enabled

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    async def generate_prediction(self, asset: str, timeframe: str = "1H") -> Prediction:
        asset = asset.upper()
        key   = (asset, normalize_timeframe(timeframe))

        hit = self._memory.get(key)
        if hit:
            return hit.payload

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._resolve(*key))
            self._in_flight[key] = task
            task.add_done_callback(lambda t: self._settled(key, t))
        # shield: one cancelled caller must not cancel the shared generation
        return await asyncio.shield(task)

    def _settled(self, key: Tuple[str, str], task: asyncio.Task):
        self._in_flight.pop(key, None)
        # mark the error retrieved; callers that are still waiting get it through shield
        if not task.cancelled():
            task.exception()

    async def _resolve(self, asset: str, timeframe: str) -> Prediction:
        key    = (asset, timeframe)
        now    = self._now()
        stored = await self._storage.get_latest_prediction(asset, timeframe)
        if stored and stored.age_seconds(now) < TTL["prediction_fresh"]:
            self._memory.put(key, stored)
            return stored

        fng, price = await asyncio.gather(self._market.fear_greed(), self._market.price(asset))

        try:
            reply = await self._llm.complete_json(
                SYSTEM_PROMPT, build_user_prompt(asset, price, fng, timeframe), max_tokens=200)
        except LLMError as e:
            if stored:
                log.warning(f"{asset}/{timeframe}: prediction failed ({e}) — serving last stored")
                return stored
            log.warning(f"{asset}/{timeframe}: prediction failed ({e}) — neutral placeholder")
            return self._placeholder(asset, timeframe, price, fng)

        verdict = decode_prediction(reply)
        draft = PredictionDraft(
            asset            = asset,
            prediction       = verdict.direction,
            confidence       = verdict.confidence,
            target_price     = verdict.target_price or price,
            current_price    = price,
            fear_greed_index = fng.value,
            fear_greed_label = fng.classification,
            reasoning        = verdict.reasoning,
            timeframe        = timeframe,
            expires_at       = now + timedelta(seconds=horizon_seconds(timeframe)),
        )
        saved = await self._storage.save_prediction(draft)
        self._memory.put(key, saved)
        log.info(f"{asset}/{timeframe}: {saved.prediction} @ {saved.confidence:.0f}% "
                 f"(target {saved.target_price}, now {price})")
        return saved

    def _placeholder(self, asset: str, timeframe: str, price: float,
                     fng: FearGreedReading) -> Prediction:
        return Prediction(
            id               = None,
            asset            = asset,
            prediction       = "NEUTRAL",
            confidence       = 50.0,
            target_price     = price,
            current_price    = price,
            fear_greed_index = fng.value,
            fear_greed_label = fng.classification,
            reasoning        = FAILED_REASONING,
            timeframe        = timeframe,
            created_at       = None,
            expires_at       = None,
        )
