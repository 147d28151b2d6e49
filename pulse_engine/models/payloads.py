"""
Crypto Pulse — Payload Models
───────────────────────────────
Canonical shapes for everything the refresh engine produces.
to_dict() renders the JSON the dashboard consumes (camelCase keys).

Numeric prediction/strategy columns render as decimal strings —
that is how the storage layer has always returned them and the
front end parses them that way.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

DIRECTIONS = ("BULLISH", "BEARISH", "NEUTRAL")
IMPACTS    = ("HIGH", "MEDIUM", "LOW")


def fmt_num(value: Optional[float], places: int = 2) -> Optional[str]:
    """82.0 → "82", 64123.456 → "64123.46"."""
    if value is None:
        return None
    value = round(float(value), places)
    if value.is_integer():
        return str(int(value))
    return f"{value:.{places}f}".rstrip("0").rstrip(".")


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts else None


def _parse_ts(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


# ─────────────────────────────────────────────────────────────
# UPSTREAM READINGS
# ─────────────────────────────────────────────────────────────

@dataclass
class FearGreedReading:
    value:          int
    classification: str

    def to_dict(self) -> dict:
        return {"value": self.value, "classification": self.classification}


@dataclass
class LongShort:
    long_percent:  float
    short_percent: float
    ratio:         float
    source:        str = "fallback"   # "futures" | "ticker" | "fallback"


@dataclass
class OrderBookTotals:
    bid_total: float
    ask_total: float
    source:    str = "fallback"   # "binance" | "fallback"

    @property
    def buy_percent(self) -> float:
        total = self.bid_total + self.ask_total
        if total <= 0:
            return 50.0
        return self.bid_total / total * 100


@dataclass
class TickerStats:
    price_change_percent: float = 0.0
    high_price:           float = 0.0
    low_price:            float = 0.0
    last_price:           float = 0.0
    volume:               float = 0.0


@dataclass
class PriceHistory:
    prices:     List[float] = field(default_factory=list)   # daily closes, oldest first
    volumes:    List[float] = field(default_factory=list)
    timestamps: List[int]   = field(default_factory=list)   # epoch ms, parallel to prices


@dataclass
class NewsArticle:
    title:        str
    description:  str
    source:       str
    published_at: str
    url:          str


# ─────────────────────────────────────────────────────────────
# EXCHANGE DEPTH
# ─────────────────────────────────────────────────────────────

@dataclass
class ExchangeRow:
    name: str
    buy:  float
    sell: float


@dataclass
class ExchangeDepthSnapshot:
    exchanges:        List[ExchangeRow]
    aggregated_buy:   float
    aggregated_sell:  float
    fear_greed_index: int
    fear_greed_label: str
    long_short_ratio: float
    timestamp:        int            # epoch ms
    simulated:        bool = True    # non-Binance rows are modelled, not measured

    def to_dict(self) -> dict:
        return {
            "exchanges":      [asdict(e) for e in self.exchanges],
            "aggregatedBuy":  self.aggregated_buy,
            "aggregatedSell": self.aggregated_sell,
            "fearGreedIndex": self.fear_greed_index,
            "fearGreedLabel": self.fear_greed_label,
            "longShortRatio": self.long_short_ratio,
            "timestamp":      self.timestamp,
            "simulated":      self.simulated,
        }


# ─────────────────────────────────────────────────────────────
# AI PRICE PREDICTIONS
# ─────────────────────────────────────────────────────────────

@dataclass
class PredictionDraft:
    """A prediction ready to persist. Storage assigns id (and created_at if unset)."""
    asset:            str
    prediction:       str
    confidence:       float
    target_price:     float
    current_price:    float
    fear_greed_index: int
    fear_greed_label: str
    reasoning:        str
    timeframe:        str
    expires_at:       Optional[datetime] = None
    created_at:       Optional[datetime] = None


@dataclass(frozen=True)
class Prediction:
    id:               Optional[str]
    asset:            str
    prediction:       str
    confidence:       float
    target_price:     float
    current_price:    float
    fear_greed_index: int
    fear_greed_label: str
    reasoning:        str
    timeframe:        str
    created_at:       Optional[datetime]
    expires_at:       Optional[datetime]

    @classmethod
    def from_draft(cls, draft: PredictionDraft, id: Optional[str],
                   created_at: Optional[datetime]) -> "Prediction":
        return cls(
            id               = id,
            asset            = draft.asset,
            prediction       = draft.prediction,
            confidence       = draft.confidence,
            target_price     = draft.target_price,
            current_price    = draft.current_price,
            fear_greed_index = draft.fear_greed_index,
            fear_greed_label = draft.fear_greed_label,
            reasoning        = draft.reasoning,
            timeframe        = draft.timeframe,
            created_at       = draft.created_at or created_at,
            expires_at       = draft.expires_at,
        )

    def age_seconds(self, now: datetime) -> float:
        if not self.created_at:
            return float("inf")
        return (now - self.created_at).total_seconds()

    def to_dict(self) -> dict:
        return {
            "id":             self.id,
            "asset":          self.asset,
            "prediction":     self.prediction,
            "confidence":     fmt_num(self.confidence),
            "targetPrice":    fmt_num(self.target_price),
            "currentPrice":   fmt_num(self.current_price),
            "fearGreedIndex": self.fear_greed_index,
            "fearGreedLabel": self.fear_greed_label,
            "reasoning":      self.reasoning,
            "timeframe":      self.timeframe,
            "createdAt":      _iso(self.created_at),
            "expiresAt":      _iso(self.expires_at),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Prediction":
        return cls(
            id               = d.get("id"),
            asset            = d.get("asset", ""),
            prediction       = d.get("prediction", "NEUTRAL"),
            confidence       = float(d.get("confidence") or 0),
            target_price     = float(d.get("targetPrice") or 0),
            current_price    = float(d.get("currentPrice") or 0),
            fear_greed_index = 50 if d.get("fearGreedIndex") is None else int(d["fearGreedIndex"]),
            fear_greed_label = d.get("fearGreedLabel") or "Neutral",
            reasoning        = d.get("reasoning") or "",
            timeframe        = d.get("timeframe") or "1H",
            created_at       = _parse_ts(d.get("createdAt")),
            expires_at       = _parse_ts(d.get("expiresAt")),
        )


# ─────────────────────────────────────────────────────────────
# NEWS PREDICTIONS
# ─────────────────────────────────────────────────────────────

@dataclass
class NewsPrediction:
    id:           str
    headline:     str
    source:       str
    published_at: str
    url:          str
    asset:        str
    prediction:   str
    confidence:   int
    impact:       str
    reasoning:    str

    def to_dict(self) -> dict:
        return {
            "id":          self.id,
            "headline":    self.headline,
            "source":      self.source,
            "publishedAt": self.published_at,
            "url":         self.url,
            "asset":       self.asset,
            "prediction":  self.prediction,
            "confidence":  self.confidence,
            "impact":      self.impact,
            "reasoning":   self.reasoning,
        }


# ─────────────────────────────────────────────────────────────
# STRATEGIES (storage-owned, metrics perturbed by the scheduler)
# ─────────────────────────────────────────────────────────────

@dataclass
class Strategy:
    id:             str
    name:           str
    description:    str = ""
    leverage:       str = "3X-10X"
    win_rate:       str = "50"
    monthly_return: str = "0"
    total_aum:      str = "0"
    status:         str = "ACTIVE"
    is_hot:         bool = False
    is_vip_only:    bool = False

    _KEYS = {
        "winRate":       "win_rate",
        "monthlyReturn": "monthly_return",
        "totalAum":      "total_aum",
        "isHot":         "is_hot",
        "isVipOnly":     "is_vip_only",
    }

    def to_dict(self) -> dict:
        return {
            "id":            self.id,
            "name":          self.name,
            "description":   self.description,
            "leverage":      self.leverage,
            "winRate":       self.win_rate,
            "monthlyReturn": self.monthly_return,
            "totalAum":      self.total_aum,
            "status":        self.status,
            "isHot":         self.is_hot,
            "isVipOnly":     self.is_vip_only,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Strategy":
        kwargs = {cls._KEYS.get(k, k): v for k, v in d.items()}
        known  = cls.__dataclass_fields__
        return cls(**{k: v for k, v in kwargs.items() if k in known})
