"""
Crypto Pulse — News Impact Predictions
───────────────────────────────────────
Latest headlines scored for market impact in a single model call.

One global batch, cached 10 minutes. No articles → last batch (or []).
Model failure → the same articles with a neutral verdict. Either
way the new batch replaces the cached one.
"""

import logging
import re
import time
from typing import Callable, List

from pulse_engine import config
from pulse_engine.cache import TTL, TTLCache
from pulse_engine.clients import LLMClient, LLMError
from pulse_engine.clients.decode import NEWS_REASON_DEFAULT, decode_news_items, match_news_item
from pulse_engine.clients.llm import extract_json
from pulse_engine.models import NewsArticle, NewsPrediction
from pulse_engine.services.market import MarketData

log = logging.getLogger("cp.news_predictions")

_KEY = "latest"

SYSTEM_PROMPT = """You are a crypto market analyst. Analyze each news headline for crypto market impact.
Return a JSON object with key "items" containing an array. Each element must have:
- "i": article number (1-8)
- "p": prediction ("BULLISH", "BEARISH", or "NEUTRAL")
- "c": confidence score (0-100)
- "imp": impact level ("HIGH", "MEDIUM", or "LOW")
- "r": one sentence reasoning about market impact
- "a": primary asset affected ("BTC","ETH","SOL","BNB","DOGE","XRP","CRYPTO")

Example: {"items":[{"i":1,"p":"BULLISH","c":75,"imp":"HIGH","r":"Institutional buying signals strong demand","a":"BTC"}]}"""

UNAVAILABLE_REASONING = "AI analysis temporarily unavailable"

# First match wins
_ASSET_KEYWORDS = (
    ("BTC",  re.compile(r"\b(bitcoin|btc)\b", re.I)),
    ("ETH",  re.compile(r"\b(ethereum|eth|ether)\b", re.I)),
    ("SOL",  re.compile(r"\b(solana|sol)\b", re.I)),
    ("BNB",  re.compile(r"\b(bnb|binance coin)\b", re.I)),
    ("DOGE", re.compile(r"\b(dogecoin|doge)\b", re.I)),
    ("XRP",  re.compile(r"\b(xrp|ripple)\b", re.I)),
)


def detect_asset(text: str) -> str:
    for asset, pattern in _ASSET_KEYWORDS:
        if pattern.search(text or ""):
            return asset
    return "CRYPTO"


def build_user_prompt(articles: List[NewsArticle]) -> str:
    lines = [f'{i}. "{a.title}" - {a.source} ({a.description[:120]})'
             for i, a in enumerate(articles, 1)]
    return "Analyze these headlines:\n" + "\n".join(lines)


def _prediction(article: NewsArticle, position: int, stamp: int, **verdict) -> NewsPrediction:
    return NewsPrediction(
        id           = f"news-{position}-{stamp}",
        headline     = article.title,
        source       = article.source,
        published_at = article.published_at,
        url          = article.url,
        **verdict,
    )


class NewsPredictionService:

    def __init__(self, llm: LLMClient, market: MarketData,
                 clock: Callable[[], float] = time.time, top_n: int = config.NEWS_TOP_N):
        self._llm    = llm
        self._market = market
        self._clock  = clock
        self._top_n  = top_n
        self._cache: TTLCache[List[NewsPrediction]] = TTLCache(TTL["news_predictions"], clock)

    async def get_news_predictions(self) -> List[NewsPrediction]:
        hit = self._cache.get(_KEY)
        if hit:
            return hit.payload

        articles = await self._market.news()
        if not articles:
            stale = self._cache.peek(_KEY)
            log.info("No headlines this cycle — keeping previous batch")
            return stale.payload if stale else []

        top   = articles[:self._top_n]
        stamp = int(self._clock() * 1000)
        try:
            text = await self._llm.complete(SYSTEM_PROMPT, build_user_prompt(top), max_tokens=1000)
        except LLMError as e:
            log.warning(f"News analysis failed ({e}) — neutral batch of {len(top)}")
            batch = self._neutral_batch(top, stamp)
        else:
            batch = self._decode_batch(text, top, stamp)
            log.info(f"News analysis: {len(batch)} headlines scored")

        self._cache.put(_KEY, batch)
        return batch

    def _decode_batch(self, text: str, articles: List[NewsArticle], stamp: int) -> List[NewsPrediction]:
        try:
            obj = extract_json(text)
        except LLMError as e:
            log.warning(f"Unreadable news analysis ({e}) — defaults for every headline")
            obj = {}
        verdicts = decode_news_items(obj)

        batch = []
        for i, article in enumerate(articles):
            v = match_news_item(verdicts, i + 1)
            if v is None:
                batch.append(_prediction(
                    article, i, stamp,
                    asset=detect_asset(f"{article.title} {article.description}"),
                    prediction="NEUTRAL", confidence=50, impact="MEDIUM",
                    reasoning=NEWS_REASON_DEFAULT,
                ))
                continue
            batch.append(_prediction(
                article, i, stamp,
                asset=v.asset or detect_asset(f"{article.title} {article.description}"),
                prediction=v.direction, confidence=v.confidence,
                impact=v.impact, reasoning=v.reasoning,
            ))
        return batch

    def _neutral_batch(self, articles: List[NewsArticle], stamp: int) -> List[NewsPrediction]:
        return [
            _prediction(
                article, i, stamp,
                asset=detect_asset(f"{article.title} {article.description}"),
                prediction="NEUTRAL", confidence=50, impact="MEDIUM",
                reasoning=UNAVAILABLE_REASONING,
            )
            for i, article in enumerate(articles)
        ]
