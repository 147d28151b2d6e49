"""
Crypto Pulse — Storage Contract
────────────────────────────────
What the refresh engine needs from durable storage and nothing
more. Implementations:

  MemoryStorage  — process-local; tests and Redis-less runs
  RedisStorage   — durable across restarts

Contract: read-after-write consistent, never returns partial records.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pulse_engine.models import Prediction, PredictionDraft, Strategy

# Seed rows for a fresh store, same roster the dashboard launched with
DEFAULT_STRATEGIES: List[Dict[str, Any]] = [
    {"name": "Vault AI Strategy - VIP Exclusive",
     "description": "AI-powered trading across multiple exchanges",
     "winRate": "89.29", "monthlyReturn": "-5.72", "totalAum": "92140.83",
     "isHot": False, "isVipOnly": True},
    {"name": "Multi Currency Strategy, High-Risk",
     "description": "Diversified high-risk multi-currency approach",
     "winRate": "89.29", "monthlyReturn": "14.41", "totalAum": "156200",
     "isHot": True, "isVipOnly": False},
    {"name": "VIP PRO Exclusive AI Trading Model",
     "description": "Adaptive strategy with machine learning optimization",
     "winRate": "99.9", "monthlyReturn": "100", "totalAum": "450000",
     "isHot": False, "isVipOnly": True},
    {"name": "Quantitative Engine",
     "description": "Model-driven quantitative trading engine",
     "winRate": "83.87", "monthlyReturn": "39.36", "totalAum": "280000",
     "isHot": False, "isVipOnly": False},
    {"name": "Crypto Alpha Mixed Index",
     "description": "Balanced crypto index fund with AI rebalancing",
     "winRate": "99.9", "monthlyReturn": "100", "totalAum": "320000",
     "isHot": False, "isVipOnly": True},
    {"name": "Cortex Alpha Market Intelligence",
     "description": "Autonomous market decision intelligence system",
     "winRate": "96.15", "monthlyReturn": "100", "totalAum": "198500",
     "isHot": False, "isVipOnly": False},
]


class Storage(ABC):
    """
    Subclasses implement the five collaborator calls plus
    seed_strategies(). All methods are coroutines.
    """

    name = "storage"

    @abstractmethod
    async def get_latest_prediction(self, asset: str,
                                    timeframe: Optional[str] = None) -> Optional[Prediction]: ...

    @abstractmethod
    async def save_prediction(self, draft: PredictionDraft) -> Prediction: ...

    @abstractmethod
    async def clean_old_predictions(self, max_age_s: float) -> int:
        """Delete predictions created more than max_age_s ago. Returns count deleted."""

    @abstractmethod
    async def count_predictions(self) -> int: ...

    @abstractmethod
    async def get_strategies(self) -> List[Strategy]: ...

    @abstractmethod
    async def update_strategy(self, strategy_id: str, patch: Dict[str, Any]) -> Optional[Strategy]: ...

    @abstractmethod
    async def seed_strategies(self, rows: Optional[List[Dict[str, Any]]] = None) -> int:
        """Insert DEFAULT_STRATEGIES into an empty store. Returns rows inserted."""

    async def close(self):
        return None
