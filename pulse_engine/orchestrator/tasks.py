"""
Crypto Pulse — Refresh Tasks
─────────────────────────────
The five jobs a refresh cycle runs. Each one fans out over its
own items, isolates per-item failures, and logs "ok/total".
None of them raise for a failed item.
"""

import asyncio
import logging
import random
import time
from typing import Optional, Sequence

from pulse_engine import config
from pulse_engine.cache import PREDICTION_RETENTION_S
from pulse_engine.orchestrator.strategy_metrics import drift_strategy
from pulse_engine.services import ExchangeDataService, NewsPredictionService, PredictionService
from pulse_engine.storage import Storage

log = logging.getLogger("cp.tasks")

PREDICTION_TIMEFRAME = "1H"


def _tally(name: str, results: list, labels: Sequence[str], t0: float) -> int:
    ok = 0
    for label, r in zip(labels, results):
        if isinstance(r, BaseException):
            log.error(f"[{name}] {label}: {r}")
        else:
            ok += 1
    elapsed = round(time.monotonic() - t0, 1)
    log.info(f"[{name}] {ok}/{len(results)} ok  {elapsed}s")
    return ok


class RefreshTasks:

    def __init__(self, storage: Storage,
                 exchange: ExchangeDataService,
                 predictions: PredictionService,
                 news: NewsPredictionService,
                 assets: Sequence[str] = config.TRACKED_ASSETS,
                 rng: Optional[random.Random] = None):
        self.storage     = storage
        self.exchange    = exchange
        self.predictions = predictions
        self.news        = news
        self.assets      = tuple(assets)
        self._rng        = rng or random.Random()

    # ── Phase A ──────────────────────────────────────────────

    async def refresh_exchange_depth(self) -> int:
        t0 = time.monotonic()
        results = await asyncio.gather(
            *(self.exchange.get_exchange_aggregated_data(a) for a in self.assets),
            return_exceptions=True,
        )
        return _tally("depth", results, self.assets, t0)

    async def update_strategy_metrics(self) -> int:
        t0 = time.monotonic()
        try:
            strategies = await self.storage.get_strategies()
        except Exception as e:
            log.error(f"[strategies] load failed: {e}")
            return 0
        results = await asyncio.gather(
            *(self.storage.update_strategy(s.id, drift_strategy(s, self._rng)) for s in strategies),
            return_exceptions=True,
        )
        return _tally("strategies", results, [s.name for s in strategies], t0)

    # ── Phase B ──────────────────────────────────────────────

    async def refresh_ai_predictions(self) -> int:
        t0 = time.monotonic()
        results = await asyncio.gather(
            *(self.predictions.generate_prediction(a, PREDICTION_TIMEFRAME) for a in self.assets),
            return_exceptions=True,
        )
        return _tally("predictions", results, self.assets, t0)

    async def refresh_news_predictions(self) -> int:
        t0 = time.monotonic()
        results = await asyncio.gather(self.news.get_news_predictions(), return_exceptions=True)
        return _tally("news", results, ["batch"], t0)

    # ── Cleanup ──────────────────────────────────────────────

    async def clean_old_data(self) -> int:
        deleted = await self.storage.clean_old_predictions(PREDICTION_RETENTION_S)
        if deleted:
            log.info(f"[cleanup] Removed {deleted} predictions older than "
                     f"{PREDICTION_RETENTION_S // 3600}h")
        return deleted
