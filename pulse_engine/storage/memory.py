"""
Crypto Pulse — In-Memory Storage
─────────────────────────────────
Per-process store. Used when Redis is unavailable (state resets on
restart) and as the test double for the storage collaborator.
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from pulse_engine.models import Prediction, PredictionDraft, Strategy
from pulse_engine.storage.base import DEFAULT_STRATEGIES, Storage


class MemoryStorage(Storage):

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._predictions: List[Prediction] = []
        self._strategies: Dict[str, Strategy] = {}

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    async def get_latest_prediction(self, asset: str,
                                    timeframe: Optional[str] = None) -> Optional[Prediction]:
        rows = [p for p in self._predictions
                if p.asset == asset and (timeframe is None or p.timeframe == timeframe)]
        if not rows:
            return None
        return max(rows, key=lambda p: p.created_at)

    async def save_prediction(self, draft: PredictionDraft) -> Prediction:
        saved = Prediction.from_draft(draft, id=uuid.uuid4().hex, created_at=self._now())
        self._predictions.append(saved)
        return saved

    async def clean_old_predictions(self, max_age_s: float) -> int:
        now    = self._now()
        before = len(self._predictions)
        self._predictions = [p for p in self._predictions if p.age_seconds(now) <= max_age_s]
        return before - len(self._predictions)

    async def count_predictions(self) -> int:
        return len(self._predictions)

    async def get_strategies(self) -> List[Strategy]:
        return list(self._strategies.values())

    async def update_strategy(self, strategy_id: str, patch: Dict[str, Any]) -> Optional[Strategy]:
        current = self._strategies.get(strategy_id)
        if not current:
            return None
        updated = Strategy.from_dict({**current.to_dict(), **patch, "id": strategy_id})
        self._strategies[strategy_id] = updated
        return updated

    async def seed_strategies(self, rows: Optional[List[Dict[str, Any]]] = None) -> int:
        if self._strategies:
            return 0
        for row in rows if rows is not None else DEFAULT_STRATEGIES:
            s = Strategy.from_dict({**row, "id": row.get("id") or uuid.uuid4().hex})
            self._strategies[s.id] = s
        return len(self._strategies)
