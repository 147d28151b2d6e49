"""
Crypto Pulse — Fear & Greed Bucketing
──────────────────────────────────────
Five-bucket taxonomy for the global index, its history and
asset sentiment (the per-coin depth label lives in derive.depth):

  Extreme Fear    ≤ 25
  Fear            ≤ 45
  Neutral         ≤ 55
  Greed           ≤ 75
  Extreme Greed   > 75
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List

from pulse_engine.models import FearGreedReading, PriceHistory

_BUCKETS = (
    (25, "Extreme Fear", "extremeFear"),
    (45, "Fear",         "fear"),
    (55, "Neutral",      "neutral"),
    (75, "Greed",        "greed"),
)
_TOP = ("Extreme Greed", "extremeGreed")


def _bucket(value: float) -> tuple:
    for upper, label, key in _BUCKETS:
        if value <= upper:
            return label, key
    return _TOP


def classify_fear_greed(value: float) -> str:
    return _bucket(value)[0]


@dataclass
class FearGreedDistribution:
    extreme_fear:  int = 0
    fear:          int = 0
    neutral:       int = 0
    greed:         int = 0
    extreme_greed: int = 0

    @property
    def total(self) -> int:
        return self.extreme_fear + self.fear + self.neutral + self.greed + self.extreme_greed

    def counts(self) -> dict:
        return {
            "extremeFear":  self.extreme_fear,
            "fear":         self.fear,
            "neutral":      self.neutral,
            "greed":        self.greed,
            "extremeGreed": self.extreme_greed,
        }

    def percentages(self) -> dict:
        total = self.total
        if not total:
            return {k: 0.0 for k in self.counts()}
        return {k: round(v / total * 100, 1) for k, v in self.counts().items()}


_FIELDS = {
    "extremeFear":  "extreme_fear",
    "fear":         "fear",
    "neutral":      "neutral",
    "greed":        "greed",
    "extremeGreed": "extreme_greed",
}


def bucket_distribution(values: Iterable[float]) -> FearGreedDistribution:
    dist = FearGreedDistribution()
    for v in values:
        attr = _FIELDS[_bucket(v)[1]]
        setattr(dist, attr, getattr(dist, attr) + 1)
    return dist


def depth_from_fear_greed(reading: FearGreedReading) -> dict:
    """Buy/sell bar driven by the global index, kept off the extremes."""
    buy = min(max(float(reading.value), 15.0), 85.0)
    return {
        "buyPercent":  f"{buy:.1f}",
        "sellPercent": f"{100 - buy:.1f}",
        "index":       reading.value,
        "label":       reading.classification,
    }


def _utc_date(epoch_s: float) -> str:
    return datetime.fromtimestamp(epoch_s, tz=timezone.utc).strftime("%Y-%m-%d")


def join_with_prices(entries: List[dict], history: PriceHistory) -> List[dict]:
    """
    Daily index next to the BTC close for the same UTC date, oldest first.
    Days with no price are left out.
    """
    closes = {_utc_date(ts / 1000): price
              for ts, price in zip(history.timestamps, history.prices)}
    chart = []
    for e in reversed(entries):
        day   = _utc_date(e["timestamp"])
        price = closes.get(day)
        if price:
            chart.append({"date": day, "fgi": e["value"], "btcPrice": price})
    return chart
