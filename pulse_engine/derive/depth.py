"""
Crypto Pulse — Synthetic Exchange Depth
────────────────────────────────────────
Only Binance exposes a usable public order book and long/short
ratio. The other rows are MODELLED around it: base bias plus a
bounded per-exchange jitter. Snapshots built from these rows carry
simulated=True so nothing downstream mistakes them for measured data.

  base  = clamp(long% + (bookBuy% − 50) · 0.5, 15, 85)
  row   = clamp(base ± U(−spread, +spread), 15, 85)     Binance: spread 0
  sell  = 100 − buy

The per-coin index on the depth card is labelled in even quintiles
(20/40/60/80), so it can read Neutral where the global index
would read Greed.
"""

import random
from typing import List, Optional, Tuple

from pulse_engine.models import (
    ExchangeRow, FearGreedReading, LongShort, OrderBookTotals, TickerStats,
)

BUY_MIN, BUY_MAX = 15.0, 85.0
BOOK_WEIGHT      = 0.5

# (name, jitter spread in percentage points)
EXCHANGE_ROSTER: Tuple[Tuple[str, float], ...] = (
    ("Binance",     0.0),
    ("OKX",         1.2),
    ("Bybit",       1.8),
    ("Bitget",      1.0),
    ("Gate",        1.5),
    ("MEXC",        2.0),
    ("Kraken",      1.3),
    ("Coinbase",    1.6),
    ("Hyperliquid", 2.2),
    ("Bitmex",      1.4),
    ("CoinEx",      1.7),
    ("LBank",       1.1),
    ("Crypto.com",  1.5),
    ("Bitunix",     1.3),
)


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def base_buy_bias(long_short: LongShort, book: OrderBookTotals) -> float:
    return _clamp(long_short.long_percent + (book.buy_percent - 50) * BOOK_WEIGHT, BUY_MIN, BUY_MAX)


def _row(name: str, buy: float) -> ExchangeRow:
    buy = round(_clamp(buy, BUY_MIN, BUY_MAX), 1)
    return ExchangeRow(name=name, buy=buy, sell=round(100 - buy, 1))


def synthesize_exchange_rows(long_short: LongShort, book: OrderBookTotals,
                             rng: Optional[random.Random] = None) -> List[ExchangeRow]:
    rng  = rng or random.Random()
    base = base_buy_bias(long_short, book)
    rows = []
    for name, spread in EXCHANGE_ROSTER:
        jitter = rng.uniform(-spread, spread) if spread else 0.0
        rows.append(_row(name, base + jitter))
    rows.sort(key=lambda r: r.buy, reverse=True)
    return rows


def aggregate_rows(rows: List[ExchangeRow]) -> Tuple[float, float]:
    if not rows:
        return 50.0, 50.0
    buy = round(sum(r.buy for r in rows) / len(rows), 1)
    return buy, round(100 - buy, 1)


def neutral_rows() -> List[ExchangeRow]:
    return [ExchangeRow(name=name, buy=50.0, sell=50.0) for name, _ in EXCHANGE_ROSTER]


# ─────────────────────────────────────────────────────────────
# PER-COIN SENTIMENT (shown on the depth card)
# ─────────────────────────────────────────────────────────────

_CHANGE_BUCKETS = (
    (-8, 5), (-5, 15), (-3, 25), (-1, 35), (0, 45),
    (1, 55), (3, 65), (5, 75), (8, 85),
)

# Coin labels use even quintiles, not the global 25/45/55/75 taxonomy
_COIN_LABELS = (
    (20, "Extreme Fear"),
    (40, "Fear"),
    (60, "Neutral"),
    (80, "Greed"),
)


def _change_score(pct_change: float) -> float:
    for upper, score in _CHANGE_BUCKETS:
        if pct_change <= upper:
            return score
    return 95


def classify_coin_sentiment(index: float) -> str:
    for upper, label in _COIN_LABELS:
        if index <= upper:
            return label
    return "Extreme Greed"


def _range_position(ticker: TickerStats) -> float:
    span = ticker.high_price - ticker.low_price
    if ticker.high_price <= 0 or ticker.low_price <= 0 or span <= 0:
        return 0.0
    return _clamp((ticker.last_price - ticker.low_price) / span * 100, 0, 100)


def coin_sentiment(ticker: TickerStats, book_buy_pct: float, global_index: int) -> FearGreedReading:
    """Blend of 24h change (35%), intraday range (15%), book (15%) and the global index (35%)."""
    combined = round(
        _change_score(ticker.price_change_percent) * 0.35
        + _range_position(ticker) * 0.15
        + book_buy_pct * 0.15
        + global_index * 0.35
    )
    index = int(_clamp(combined, 0, 100))
    return FearGreedReading(index, classify_coin_sentiment(index))
