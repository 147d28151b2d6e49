"""Pure transforms over already-fetched data. No I/O in this package."""

from .depth import aggregate_rows, coin_sentiment, synthesize_exchange_rows
from .fear_greed import bucket_distribution, classify_fear_greed
from .sentiment import sentiment_score

__all__ = [
    "aggregate_rows", "coin_sentiment", "synthesize_exchange_rows",
    "bucket_distribution", "classify_fear_greed", "sentiment_score",
]
