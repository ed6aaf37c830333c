"""
Shared pytest fixtures for the trip ledger tests.

Provides:
- A three-member trip (me, ken, amy) with no expenses
- Fake async collaborators that count their calls
- A JsonStore rooted in pytest's tmp_path
"""
import os

import pytest

# Collaborators must never reach Gemini from the test suite.
os.environ["USE_LIVE_WEATHER"] = "false"
os.environ["USE_LIVE_CATEGORIZER"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from core.models import ME_ID, Category, Member, Trip, UserProfile, WeatherData, WeatherEntry  # noqa: E402
from core.store import JsonStore  # noqa: E402


SUNNY = WeatherEntry(
    forecast=WeatherData(temp_min=3, temp_max=9, rain_prob=5, condition="晴朗"),
    advice="天氣晴朗，記得防曬補水。",
)


@pytest.fixture
def profile():
    return UserProfile(name="小明", avatar="🐶")


@pytest.fixture
def trip():
    return Trip(
        id="trip-1",
        name="大阪跨年之旅",
        location="大阪",
        start_date="2025-12-31",
        end_date="2026-01-02",
        members=(
            Member(id=ME_ID, name="小明", avatar="🐶"),
            Member(id="ken", name="Ken", avatar="🐱"),
            Member(id="amy", name="Amy", avatar="🐰"),
        ),
    )


@pytest.fixture
def store(tmp_path):
    return JsonStore(str(tmp_path / "data"))


class FakeAdvisor:
    """Async weather advisor that records every (location, date) it was asked."""

    def __init__(self, entry=SUNNY, error=None):
        self.entry = entry
        self.error = error
        self.calls = []

    async def __call__(self, location, date):
        self.calls.append((location, date))
        if self.error is not None:
            raise self.error
        return self.entry


class FakeCategorizer:
    def __init__(self, answer=Category.FOOD, error=None):
        self.answer = answer
        self.error = error
        self.calls = []

    async def __call__(self, item):
        self.calls.append(item)
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def advisor():
    return FakeAdvisor()


@pytest.fixture
def categorizer():
    return FakeCategorizer()
