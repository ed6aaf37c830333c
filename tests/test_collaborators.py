"""
Weather advisor and expense categorizer: the live providers fall back
instead of raising, and the mock providers work offline.
"""
import asyncio
import json

import pytest

from core import categorizer, weather
from core.models import Category, WeatherEntry


def _fake_generate(answer=None, error=None):
    calls = []

    async def generate_text(prompt, json_mode=False, settings=None):
        calls.append((prompt, json_mode))
        if error is not None:
            raise error
        return answer

    generate_text.calls = calls
    return generate_text


class TestWeatherLive:
    def test_parses_json_answer(self, monkeypatch):
        answer = json.dumps({
            "tempMin": 2, "tempMax": 9, "rainProb": 30, "condition": "多雲", "advice": "帶件外套。",
        })
        fake = _fake_generate(answer)
        monkeypatch.setattr(weather, "generate_text", fake)

        entry = asyncio.run(weather.get_forecast_live("大阪", "2025-12-31"))

        assert entry.forecast.temp_min == 2
        assert entry.forecast.condition == "多雲"
        assert entry.advice == "帶件外套。"
        assert fake.calls[0][1] is True
        assert "大阪" in fake.calls[0][0] and "2025-12-31" in fake.calls[0][0]

    def test_failure_gives_fallback(self, monkeypatch):
        monkeypatch.setattr(weather, "generate_text", _fake_generate(error=ConnectionError("no network")))
        assert asyncio.run(weather.get_forecast_live("大阪", "2025-12-31")) == weather.FALLBACK_WEATHER

    def test_malformed_answer_gives_fallback(self, monkeypatch):
        monkeypatch.setattr(weather, "generate_text", _fake_generate("It will be sunny!"))
        assert asyncio.run(weather.get_forecast_live("大阪", "2025-12-31")) == weather.FALLBACK_WEATHER

    def test_fallback_values(self):
        fallback = weather.FALLBACK_WEATHER.forecast
        assert (fallback.temp_min, fallback.temp_max, fallback.rain_prob) == (15, 22, 20)
        assert fallback.condition == "晴時多雲"
        assert weather.FALLBACK_WEATHER.advice == "無法取得天氣資訊，請攜帶雨具備用。"


class TestParseWeatherResponse:
    def test_rain_probability_is_clamped(self):
        entry = weather.parse_weather_response(
            '{"tempMin": 1, "tempMax": 5, "rainProb": 140, "condition": "雪"}'
        )
        assert entry.forecast.rain_prob == 100
        assert entry.advice == ""

    @pytest.mark.parametrize("text", ["", "[]", '{"tempMin": 1}', '{"tempMin": null, "tempMax": 1, "rainProb": 1, "condition": "x"}'])
    def test_rejects_bad_shapes(self, text):
        with pytest.raises(ValueError):
            weather.parse_weather_response(text)


class TestWeatherMock:
    def test_same_question_same_answer(self):
        first = asyncio.run(weather.get_forecast_mock("大阪", "2025-12-31"))
        second = asyncio.run(weather.get_forecast_mock("大阪", "2025-12-31"))
        assert isinstance(first, WeatherEntry)
        assert first == second
        assert first.forecast.temp_min < first.forecast.temp_max
        assert 0 <= first.forecast.rain_prob <= 100

    def test_dispatcher_uses_mock_by_default(self, monkeypatch):
        monkeypatch.setenv("USE_LIVE_WEATHER", "false")
        monkeypatch.setattr(weather, "generate_text", _fake_generate(error=AssertionError("live called")))
        expected = asyncio.run(weather.get_forecast_mock("Seoul", "2026-03-01"))
        assert asyncio.run(weather.get_forecast("Seoul", "2026-03-01")) == expected

    def test_dispatcher_uses_live_when_enabled(self, monkeypatch):
        monkeypatch.setenv("USE_LIVE_WEATHER", "true")
        monkeypatch.setattr(weather, "generate_text", _fake_generate(error=RuntimeError("no key")))
        assert asyncio.run(weather.get_forecast("Seoul", "2026-03-01")) == weather.FALLBACK_WEATHER


class TestCategorizer:
    @pytest.mark.parametrize("answer, expected", [
        ("Food", Category.FOOD),
        ("transport.", Category.TRANSPORT),
        (" Accommodation\n", Category.ACCOMMODATION),
        ("Snacks", Category.OTHER),
        ("", Category.OTHER),
    ])
    def test_live_answers_map_onto_closed_set(self, monkeypatch, answer, expected):
        monkeypatch.setattr(categorizer, "generate_text", _fake_generate(answer))
        assert asyncio.run(categorizer.categorize_live("something")) is expected

    def test_live_failure_gives_other(self, monkeypatch):
        monkeypatch.setattr(categorizer, "generate_text", _fake_generate(error=TimeoutError()))
        assert asyncio.run(categorizer.categorize_live("拉麵")) is Category.OTHER

    @pytest.mark.parametrize("item, expected", [
        ("拉麵", Category.FOOD),
        ("Dinner at Dotonbori", Category.FOOD),
        ("Taxi to airport", Category.TRANSPORT),
        ("大阪本町都城市酒店", Category.ACCOMMODATION),
        ("Souvenir cookies", Category.SHOPPING),
        ("Temple donation", Category.OTHER),
    ])
    def test_keyword_mock(self, item, expected):
        assert categorizer.categorize_by_keywords(item) is expected

    def test_dispatcher_uses_keywords_by_default(self, monkeypatch):
        monkeypatch.setenv("USE_LIVE_CATEGORIZER", "false")
        assert asyncio.run(categorizer.categorize("sushi")) is Category.FOOD
