"""
Crypto Pulse — Tolerant Model Output Decoding
──────────────────────────────────────────────
Models drift on key names. Every field accepts a handful of
aliases, every value is coerced into its declared domain, and
anything missing or unrecognised maps to ONE documented default:

  direction   → "NEUTRAL"
  confidence  → 50            (numbers clamped to 0–100)
  impact      → "MEDIUM"
  reasoning   → ""            (news: "Market impact analysis pending")
  target      → None          (caller substitutes current price)
  asset       → None          (caller runs keyword detection)
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pulse_engine.models import DIRECTIONS, IMPACTS

DEFAULT_CONFIDENCE  = 50.0
NEWS_REASON_DEFAULT = "Market impact analysis pending"

_DIRECTION_KEYS = ("prediction", "direction", "signal", "p")
_CONFIDENCE_KEYS = ("confidence", "conf", "c")
_TARGET_KEYS = ("targetPrice", "target_price", "target", "priceTarget")
_REASON_KEYS = ("reasoning", "reason", "rationale", "r")
_IMPACT_KEYS = ("impact", "imp")
_ASSET_KEYS = ("asset", "symbol", "a")
_INDEX_KEYS = ("i", "index", "id")
_LIST_KEYS = ("items", "analyses", "predictions", "results")


@dataclass
class PredictionVerdict:
    direction:    str
    confidence:   float
    target_price: Optional[float]
    reasoning:    str


@dataclass
class NewsVerdict:
    index:      Optional[int]
    direction:  str
    confidence: int
    impact:     str
    reasoning:  str
    asset:      Optional[str]


def _first(obj: Dict[str, Any], keys) -> Any:
    for k in keys:
        if k in obj and obj[k] not in (None, ""):
            return obj[k]
    return None


def _to_float(raw: Any) -> Optional[float]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip().rstrip("%").replace(",", "").lstrip("$")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if value == value else None   # NaN


def clamp_confidence(raw: Any) -> float:
    value = _to_float(raw)
    if value is None:
        return DEFAULT_CONFIDENCE
    return max(0.0, min(100.0, value))


def _enum(raw: Any, allowed, default: str) -> str:
    if not isinstance(raw, str):
        return default
    value = raw.strip().upper()
    return value if value in allowed else default


def decode_prediction(obj: Any) -> PredictionVerdict:
    obj = obj if isinstance(obj, dict) else {}
    target = _to_float(_first(obj, _TARGET_KEYS))
    reason = _first(obj, _REASON_KEYS)
    return PredictionVerdict(
        direction    = _enum(_first(obj, _DIRECTION_KEYS), DIRECTIONS, "NEUTRAL"),
        confidence   = clamp_confidence(_first(obj, _CONFIDENCE_KEYS)),
        target_price = target if target and target > 0 else None,
        reasoning    = str(reason).strip() if reason is not None else "",
    )


def _decode_news_item(item: Any) -> NewsVerdict:
    item  = item if isinstance(item, dict) else {}
    index = _to_float(_first(item, _INDEX_KEYS))
    asset = _first(item, _ASSET_KEYS)
    reason = _first(item, _REASON_KEYS)
    return NewsVerdict(
        index      = int(index) if index is not None else None,
        direction  = _enum(_first(item, _DIRECTION_KEYS), DIRECTIONS, "NEUTRAL"),
        confidence = int(round(clamp_confidence(_first(item, _CONFIDENCE_KEYS)))),
        impact     = _enum(_first(item, _IMPACT_KEYS), IMPACTS, "MEDIUM"),
        reasoning  = str(reason).strip() if reason is not None else NEWS_REASON_DEFAULT,
        asset      = str(asset).strip().upper() if isinstance(asset, str) and asset.strip() else None,
    )


def decode_news_items(obj: Any) -> List[NewsVerdict]:
    if isinstance(obj, list):
        raw = obj
    elif isinstance(obj, dict):
        raw = _first(obj, _LIST_KEYS) or []
    else:
        raw = []
    if not isinstance(raw, list):
        return []
    return [_decode_news_item(item) for item in raw]


def match_news_item(verdicts: List[NewsVerdict], position: int) -> Optional[NewsVerdict]:
    """Verdict for the 1-based article number, else the one at the same position."""
    for v in verdicts:
        if v.index == position:
            return v
    if 0 <= position - 1 < len(verdicts):
        return verdicts[position - 1]
    return None
