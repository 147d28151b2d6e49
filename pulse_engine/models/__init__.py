from .payloads import (
    DIRECTIONS,
    IMPACTS,
    ExchangeDepthSnapshot,
    ExchangeRow,
    FearGreedReading,
    LongShort,
    NewsArticle,
    NewsPrediction,
    OrderBookTotals,
    Prediction,
    PredictionDraft,
    PriceHistory,
    Strategy,
    TickerStats,
    fmt_num,
)

__all__ = [
    "DIRECTIONS", "IMPACTS",
    "ExchangeDepthSnapshot", "ExchangeRow", "FearGreedReading", "LongShort",
    "NewsArticle", "NewsPrediction", "OrderBookTotals", "Prediction",
    "PredictionDraft", "PriceHistory", "Strategy", "TickerStats", "fmt_num",
]
