# =============================================================================
# core/weather.py  —  Weather Advisor
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Answers "what will the weather be like in <location> on <date>, and what
#   should I bring?"  The answer is a WeatherEntry: temperature range, rain
#   probability, a condition label and one line of advice.
#
# DATA SOURCE TOGGLE:
#   USE_LIVE_WEATHER=true   → ask Gemini (needs GEMINI_API_KEY + internet)
#   USE_LIVE_WEATHER=false  → deterministic mock data (offline, default)
#
#   Both providers return the same WeatherEntry, so the trip aggregate that
#   caches these answers doesn't know or care which one ran.
#
# FAILURE CONTRACT:
#   get_forecast() never raises.  Any failure of the live provider (no key,
#   network error, malformed JSON) resolves to FALLBACK_WEATHER.
# =============================================================================

import json
import logging
import random
from datetime import datetime

from core.config import Settings, get_settings
from core.genai_client import generate_text
from core.models import WeatherData, WeatherEntry


logger = logging.getLogger(__name__)


FALLBACK_WEATHER = WeatherEntry(
    forecast=WeatherData(temp_min=15, temp_max=22, rain_prob=20, condition="晴時多雲"),
    advice="無法取得天氣資訊，請攜帶雨具備用。",
)

_PROMPT = """
Location: {location}
Date: {date}

Please estimate the historical or expected weather for this location and date.
Return the response in JSON format with the following keys:
- tempMin (number, Celsius)
- tempMax (number, Celsius)
- rainProb (number, percentage 0-100)
- condition (string, e.g. "Sunny", "Cloudy", in Traditional Chinese)
- advice (string, short practical advice in Traditional Chinese, e.g. "Remember umbrella")

Response Format:
{{
  "tempMin": 10,
  "tempMax": 20,
  "rainProb": 10,
  "condition": "多雲",
  "advice": "天氣涼爽，適合散步。"
}}
"""


# =============================================================================
# PUBLIC API: get_forecast (dispatcher)
# =============================================================================
async def get_forecast(location: str, date: str) -> WeatherEntry:
    """Weather for one location and day, mock or live per USE_LIVE_WEATHER.

    Args:
        location: Free-text place name (e.g., "大阪").
        date: ISO date string (e.g., "2025-12-31").

    Returns:
        A WeatherEntry.  Never raises.
    """
    settings = get_settings()
    if settings.use_live_weather:
        return await get_forecast_live(location, date, settings)
    return await get_forecast_mock(location, date)


# =============================================================================
# LIVE PROVIDER: Gemini
# =============================================================================
async def get_forecast_live(location: str, date: str, settings: Settings | None = None) -> WeatherEntry:
    """Ask Gemini for an estimated forecast, falling back on any failure."""
    try:
        text = await generate_text(_PROMPT.format(location=location, date=date), json_mode=True, settings=settings)
        return parse_weather_response(text)
    except Exception as e:
        logger.warning("Weather advisor failed for %s on %s: %s. Using fallback.", location, date, e)
        return FALLBACK_WEATHER


def parse_weather_response(text: str) -> WeatherEntry:
    """Parse the advisor's JSON answer.

    Raises:
        ValueError: on anything that isn't the documented JSON shape.
    """
    data = json.loads(text or "{}")
    if not isinstance(data, dict):
        raise ValueError("Weather response is not a JSON object")
    try:
        temp_min = float(data["tempMin"])
        temp_max = float(data["tempMax"])
        rain_prob = int(round(float(data["rainProb"])))
        condition = str(data["condition"])
    except (KeyError, TypeError) as e:
        raise ValueError(f"Weather response is missing fields: {e}")
    return WeatherEntry(
        forecast=WeatherData(
            temp_min=temp_min,
            temp_max=temp_max,
            rain_prob=max(0, min(100, rain_prob)),
            condition=condition,
        ),
        advice=str(data.get("advice", "")),
    )


# =============================================================================
# MOCK PROVIDER: Deterministic fake data
# =============================================================================
# (condition, rain range, advice), picked by a generator seeded with the
# location and date, so the same question always gets the same answer.
_MOCK_CONDITIONS = [
    ("晴朗", (0, 10), "天氣晴朗，記得防曬補水。"),
    ("晴時多雲", (10, 30), "天氣穩定，適合戶外行程。"),
    ("多雲", (20, 40), "雲量偏多，早晚稍涼，可帶件薄外套。"),
    ("陰天", (30, 50), "天色陰暗，建議隨身攜帶折傘。"),
    ("陣雨", (60, 90), "午後可能有陣雨，請攜帶雨具。"),
]

# Rough monthly mean temperature (°C) for a temperate northern-hemisphere city.
_MONTHLY_MEAN_C = [6, 7, 10, 15, 20, 24, 28, 29, 25, 19, 13, 8]


async def get_forecast_mock(location: str, date: str) -> WeatherEntry:
    """Generate a plausible, repeatable forecast without any network call."""
    rng = random.Random(f"{location}|{date}")
    try:
        month = datetime.strptime(date, "%Y-%m-%d").month
    except ValueError:
        month = 6

    mean = _MONTHLY_MEAN_C[month - 1]
    low = mean - rng.randint(2, 5)
    high = mean + rng.randint(2, 5)
    condition, (rain_lo, rain_hi), advice = rng.choice(_MOCK_CONDITIONS)

    return WeatherEntry(
        forecast=WeatherData(
            temp_min=low,
            temp_max=high,
            rain_prob=rng.randint(rain_lo, rain_hi),
            condition=condition,
        ),
        advice=advice,
    )
