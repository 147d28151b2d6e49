"""Tests for upstream clients against stubbed HTTP transports."""

import httpx
import pytest

from pulse_engine.clients import binance, coingecko, fear_greed, news
from pulse_engine.clients.http import get_json


def make_client(routes):
    """routes: {path_suffix: (status, json_body)}; anything unrouted is a 404."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        for suffix, (status, body) in routes.items():
            if request.url.path.endswith(suffix):
                return httpx.Response(status, json=body)
        return httpx.Response(404, json={"msg": "not found"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client.seen = seen
    return client


class TestHttpHelper:

    @pytest.mark.asyncio
    async def test_retries_after_rate_limit(self):
        responses = [httpx.Response(429), httpx.Response(200, json={"ok": True})]
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: responses.pop(0)))
        assert await get_json(client, "https://example.test/x") == {"ok": True}

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(403)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        assert await get_json(client, "https://example.test/x") is None
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_transport_error_resolves_to_none(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        assert await get_json(client, "https://example.test/x") is None


class TestBinance:

    @pytest.mark.asyncio
    async def test_long_short_from_futures_ratio(self):
        client = make_client({"/globalLongShortAccountRatio": (200, [{"longShortRatio": "1.5"}])})
        ratio = await binance.fetch_long_short_ratio("BTCUSDT", client)
        ls = binance.resolve_long_short("BTCUSDT", ratio, None)
        assert ls.long_percent == pytest.approx(60.0)
        assert ls.ratio == 1.5
        assert ls.source == "futures"

    @pytest.mark.asyncio
    async def test_long_short_falls_back_to_ticker(self):
        client = make_client({"/ticker/24hr": (200, {"priceChangePercent": "2.0", "lastPrice": "100"})})
        ratio  = await binance.fetch_long_short_ratio("BTCUSDT", client)
        ticker = await binance.fetch_ticker_24h("BTCUSDT", client)
        ls = binance.resolve_long_short("BTCUSDT", ratio, ticker, book_buy_pct=50.0)
        assert ratio is None
        assert ls.source == "ticker"
        assert ls.long_percent == pytest.approx(53.0)

    @pytest.mark.asyncio
    async def test_long_short_neutral_when_everything_fails(self):
        client = make_client({})
        ratio  = await binance.fetch_long_short_ratio("BTCUSDT", client)
        ticker = await binance.fetch_ticker_24h("BTCUSDT", client)
        ls = binance.resolve_long_short("BTCUSDT", ratio, ticker)
        assert (ls.long_percent, ls.short_percent, ls.ratio) == (50.0, 50.0, 1.0)

    @pytest.mark.asyncio
    async def test_order_book_totals(self):
        client = make_client({"/depth": (200, {"bids": [["100", "1"]], "asks": [["100", "3"]]})})
        book = await binance.fetch_order_book("BTCUSDT", client=client)
        assert book.source == "binance"
        assert book.buy_percent == pytest.approx(25.0)

    @pytest.mark.asyncio
    async def test_order_book_fallback(self):
        book = await binance.fetch_order_book("BTCUSDT", client=make_client({}))
        assert book.source == "fallback"
        assert book.buy_percent == 50.0

    @pytest.mark.asyncio
    async def test_ticker_unavailable(self):
        assert await binance.fetch_ticker_24h("BTCUSDT", client=make_client({})) is None

    @pytest.mark.asyncio
    async def test_price_falls_back_to_coingecko(self):
        client = make_client({"/simple/price": (200, {"ethereum": {"usd": 2000}})})
        assert await binance.fetch_price("ETH", client=client) == 2000.0

    @pytest.mark.asyncio
    async def test_price_from_binance(self):
        client = make_client({"/ticker/price": (200, {"symbol": "ETHUSDT", "price": "2101.5"})})
        assert await binance.fetch_price("eth", client=client) == 2101.5
        assert not any(p.endswith("/simple/price") for p in client.seen)


class TestFearGreed:

    @pytest.mark.asyncio
    async def test_current_reading(self):
        client = make_client({"/fng/": (200, {"data": [
            {"value": "72", "value_classification": "Greed", "timestamp": "1700000000"},
        ]})})
        reading = await fear_greed.fetch_fear_greed_reading(client)
        assert (reading.value, reading.classification) == (72, "Greed")

    @pytest.mark.asyncio
    async def test_unavailable_is_none(self):
        assert await fear_greed.fetch_fear_greed_reading(make_client({})) is None
        neutral = fear_greed.neutral_reading()
        assert (neutral.value, neutral.classification) == (50, "Neutral")

    @pytest.mark.asyncio
    async def test_history_skips_bad_rows(self):
        client = make_client({"/fng/": (200, {"data": [
            {"value": "20", "timestamp": "3"},
            {"value": "n/a"},
            {"value": "80", "value_classification": "Extreme Greed", "timestamp": "1"},
        ]})})
        history = await fear_greed.fetch_fear_greed_history(3, client)
        assert [h["value"] for h in history] == [20, 80]
        assert history[0]["classification"] == "Extreme Fear"


class TestCoinGecko:

    @pytest.mark.asyncio
    async def test_market_chart(self):
        client = make_client({"/coins/bitcoin/market_chart": (200, {
            "prices": [[1, 100.0], [2, 101.0]],
            "total_volumes": [[1, 5.0], [2, 6.0]],
        })})
        history = await coingecko.fetch_market_chart("BTC", client=client)
        assert history.prices == [100.0, 101.0]
        assert history.volumes == [5.0, 6.0]
        assert history.timestamps == [1, 2]

    @pytest.mark.asyncio
    async def test_market_chart_unavailable(self):
        history = await coingecko.fetch_market_chart("BTC", client=make_client({}))
        assert history.prices == []

    @pytest.mark.asyncio
    async def test_simple_price_unavailable(self):
        assert await coingecko.fetch_simple_price("SOL", client=make_client({})) == 0.0


class TestNews:

    ARTICLES = {"articles": [
        {"title": "Bitcoin ETF inflows", "description": "Big week", "url": "u1",
         "publishedAt": "2025-01-01T00:00:00Z", "source": {"name": "Wire"}},
        {"title": "[Removed]", "description": "x", "source": {"name": "Wire"}},
        {"title": "No body", "description": "", "source": {"name": "Wire"}},
        {"title": None, "description": "x"},
    ]}

    def test_parse_drops_removed_and_empty(self):
        articles = news.parse_articles(self.ARTICLES)
        assert len(articles) == 1
        assert articles[0].source == "Wire"
        assert articles[0].published_at == "2025-01-01T00:00:00Z"

    @pytest.mark.asyncio
    async def test_fetch(self):
        client = make_client({"/v2/everything": (200, self.ARTICLES)})
        articles = await news.fetch_crypto_news(client, api_key="k")
        assert [a.title for a in articles] == ["Bitcoin ETF inflows"]

    @pytest.mark.asyncio
    async def test_no_key_means_no_request(self):
        client = make_client({})
        assert await news.fetch_crypto_news(client, api_key="") == []
        assert client.seen == []
