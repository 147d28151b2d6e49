from .exchange_data import ExchangeDataService
from .market import MarketData
from .market_views import MarketViewService
from .news_predictions import NewsPredictionService
from .predictions import PredictionService

__all__ = [
    "ExchangeDataService", "MarketData", "MarketViewService",
    "NewsPredictionService", "PredictionService",
]
