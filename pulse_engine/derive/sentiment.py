"""
Crypto Pulse — Per-Asset Sentiment Score
─────────────────────────────────────────
Heuristic score over daily price/volume history. Weights and clamp
bounds are fixed; changing them changes every published score.

  score = 50
        + clamp(momentum7d · 2.5,        −20, +20)
        + clamp(return1d   · 3,          −10, +10)
        − clamp((volatility14d − 3) · 3,   0,  15)
        + clamp(volumeChange · 0.05,      −5,  +5)
  → clamped to 0–100

All inputs are percentages. volatility14d is stdev/mean of the last
14 closes.
"""

import statistics
from dataclasses import dataclass, asdict
from typing import Optional

from pulse_engine.derive.fear_greed import classify_fear_greed
from pulse_engine.models import PriceHistory

MIN_CLOSES = 8   # need 7 days back plus today


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def _pct(new: float, old: float) -> float:
    return (new / old - 1) * 100 if old else 0.0


@dataclass
class SentimentInputs:
    return_1d:     float
    momentum_7d:   float
    volatility_14d: float
    volume_change: float

    def to_dict(self) -> dict:
        return {k: round(v, 3) for k, v in asdict(self).items()}


def sentiment_inputs(history: PriceHistory) -> Optional[SentimentInputs]:
    """None when there is not enough history to score."""
    prices = [p for p in history.prices if p > 0]
    if len(prices) < MIN_CLOSES:
        return None

    window = prices[-14:]
    mean   = statistics.fmean(window)
    vol    = statistics.pstdev(window) / mean * 100 if mean else 0.0

    volumes    = history.volumes
    vol_change = _pct(volumes[-1], volumes[-2]) if len(volumes) >= 2 else 0.0

    return SentimentInputs(
        return_1d      = _pct(prices[-1], prices[-2]),
        momentum_7d    = _pct(prices[-1], prices[-8]),
        volatility_14d = vol,
        volume_change  = vol_change,
    )


def sentiment_score(inputs: SentimentInputs) -> int:
    score = (
        50
        + _clamp(inputs.momentum_7d * 2.5, -20, 20)
        + _clamp(inputs.return_1d * 3, -10, 10)
        - _clamp((inputs.volatility_14d - 3) * 3, 0, 15)
        + _clamp(inputs.volume_change * 0.05, -5, 5)
    )
    return int(round(_clamp(score, 0, 100)))


def score_history(history: PriceHistory) -> dict:
    inputs = sentiment_inputs(history)
    if inputs is None:
        return {"score": 50, "label": "Neutral", "inputs": None}
    score = sentiment_score(inputs)
    return {"score": score, "label": classify_fear_greed(score), "inputs": inputs.to_dict()}
