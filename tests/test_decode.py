"""Tests for tolerant decoding of model output."""

import pytest

from pulse_engine.clients import LLMError
from pulse_engine.clients.decode import (
    NEWS_REASON_DEFAULT, clamp_confidence, decode_news_items, decode_prediction, match_news_item,
)
from pulse_engine.clients.llm import extract_json


class TestConfidenceClamp:

    @pytest.mark.parametrize("raw,expected", [
        (150, 100.0),
        (-10, 0.0),
        (82, 82.0),
        ("77%", 77.0),
        (None, 50.0),
        ("high", 50.0),
        (True, 50.0),
    ])
    def test_clamp(self, raw, expected):
        assert clamp_confidence(raw) == expected


class TestDecodePrediction:

    def test_canonical_keys(self):
        v = decode_prediction({"prediction": "BULLISH", "confidence": 82,
                               "targetPrice": 2000, "reasoning": "test"})
        assert v.direction == "BULLISH"
        assert v.confidence == 82.0
        assert v.target_price == 2000.0
        assert v.reasoning == "test"

    def test_aliases_and_coercion(self):
        v = decode_prediction({"direction": "bearish", "conf": "64",
                               "target": "$2,150.5", "reason": " slipping "})
        assert v.direction == "BEARISH"
        assert v.confidence == 64.0
        assert v.target_price == 2150.5
        assert v.reasoning == "slipping"

    def test_unknown_values_map_to_defaults(self):
        v = decode_prediction({"prediction": "MOON", "targetPrice": 0})
        assert v.direction == "NEUTRAL"
        assert v.confidence == 50.0
        assert v.target_price is None
        assert v.reasoning == ""

    def test_non_dict_input(self):
        v = decode_prediction(["BULLISH"])
        assert v.direction == "NEUTRAL"


class TestDecodeNewsItems:

    def test_items_with_short_keys(self):
        items = decode_news_items({"items": [
            {"i": 1, "p": "BULLISH", "c": 75, "imp": "HIGH", "r": "demand", "a": "btc"},
        ]})
        assert len(items) == 1
        v = items[0]
        assert (v.index, v.direction, v.confidence, v.impact, v.reasoning, v.asset) == \
            (1, "BULLISH", 75, "HIGH", "demand", "BTC")

    @pytest.mark.parametrize("key", ["analyses", "predictions", "results"])
    def test_alternate_list_keys(self, key):
        assert len(decode_news_items({key: [{"p": "BEARISH"}, {"p": "NEUTRAL"}]})) == 2

    def test_bare_list(self):
        assert decode_news_items([{"prediction": "BEARISH"}])[0].direction == "BEARISH"

    def test_defaults(self):
        v = decode_news_items({"items": [{"imp": "EXTREME", "c": 400}]})[0]
        assert v.impact == "MEDIUM"
        assert v.confidence == 100
        assert v.reasoning == NEWS_REASON_DEFAULT
        assert v.asset is None
        assert v.index is None

    def test_garbage(self):
        assert decode_news_items("nope") == []
        assert decode_news_items({"items": "nope"}) == []

    def test_match_by_index_then_position(self):
        items = decode_news_items({"items": [{"i": 2, "p": "BEARISH"}, {"p": "BULLISH"}]})
        assert match_news_item(items, 2).direction == "BEARISH"
        assert match_news_item(items, 1).direction == "BEARISH"   # position 1
        assert match_news_item(items, 3) is None


class TestExtractJson:

    def test_fenced_reply(self):
        assert extract_json('```json\n{"prediction": "BULLISH"}\n```') == {"prediction": "BULLISH"}

    def test_prose_around_object(self):
        assert extract_json('Here you go: {"a": 1} hope it helps') == {"a": 1}

    @pytest.mark.parametrize("text", ["", "no json here", "{not: valid}"])
    def test_unparseable_raises(self, text):
        with pytest.raises(LLMError):
            extract_json(text)
