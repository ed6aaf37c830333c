"""
TripBook: persistence after each change, the categorizer and weather
collaborators, and the race between a slow forecast and later edits.
"""
import asyncio

import pytest

from core.book import TripBook
from core.models import ME_ID, Category, Currency, ValidationError
from core.store import JsonStore
from core.weather import FALLBACK_WEATHER

from conftest import SUNNY, FakeAdvisor, FakeCategorizer


ALL = [ME_ID, "ken", "amy"]
DAY = "2025-12-31"


@pytest.fixture
def book(trip, profile, store, advisor, categorizer):
    return TripBook(
        trips=[trip], profile=profile, store=store, advisor=advisor, categorizer=categorizer
    )


class SlowAdvisor(FakeAdvisor):
    """Blocks inside the call until `release` is set."""

    def __init__(self, entry=SUNNY):
        super().__init__(entry)
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self, location, date):
        self.calls.append((location, date))
        self.started.set()
        await self.release.wait()
        return self.entry


class TestTrips:
    def test_unknown_trip_is_noop(self, book):
        assert book.get("ghost") is None
        assert book.add_todo("ghost", "護照") is None
        assert book.update_trip("ghost", name="x") is None
        assert book.delete_trip("ghost") is False

    def test_create_and_delete_are_persisted(self, book, store):
        created = book.create_trip("首爾", "Seoul", "2026-03-01", "2026-03-03")
        assert [t.id for t in TripBook.open(store).trips] == ["trip-1", created.id]

        assert book.delete_trip("trip-1") is True
        reopened = TripBook.open(store)
        assert [t.id for t in reopened.trips] == [created.id]

    def test_update_profile_reaches_every_trip(self, book, store):
        book.create_trip("首爾", "Seoul", "2026-03-01", "2026-03-03")
        book.update_profile("Ming", "🦊")

        reopened = TripBook.open(store)
        assert reopened.profile.name == "Ming"
        assert all(t.find_member(ME_ID).avatar == "🦊" for t in reopened.trips)

    def test_returned_trips_are_snapshots(self, book):
        before = book.get("trip-1")
        book.add_activity("trip-1", DAY, name="KIX", start_time="12:00")
        assert before.itinerary == {}
        assert len(book.activities_on("trip-1", DAY)) == 1

    def test_dates(self, book):
        assert book.dates("trip-1") == ["2025-12-31", "2026-01-01", "2026-01-02"]
        assert book.dates("ghost") == []


class TestAddExpense:
    def test_categorizes_once_and_remembers_currency(self, book, categorizer, store):
        trip = asyncio.run(book.add_expense("trip-1", "拉麵", 3000, "JPY", ME_ID, ALL))

        assert categorizer.calls == ["拉麵"]
        assert trip.expenses[0].category is Category.FOOD
        assert book.last_currency is Currency.JPY
        assert TripBook.open(store).last_currency is Currency.JPY

    def test_invalid_input_never_reaches_categorizer(self, book, categorizer):
        with pytest.raises(ValidationError):
            asyncio.run(book.add_expense("trip-1", "拉麵", -1, "JPY", ME_ID, ALL))
        assert categorizer.calls == []
        assert book.get("trip-1").expenses == ()

    def test_categorizer_failure_means_other(self, trip, profile):
        book = TripBook(trips=[trip], profile=profile, categorizer=FakeCategorizer(error=RuntimeError("down")))
        updated = asyncio.run(book.add_expense("trip-1", "Taxi", 500, "TWD", ME_ID, ALL))
        assert updated.expenses[0].category is Category.OTHER

    def test_answer_outside_set_means_other(self, trip, profile):
        book = TripBook(trips=[trip], profile=profile, categorizer=FakeCategorizer(answer="Snacks"))
        updated = asyncio.run(book.add_expense("trip-1", "Pocky", 150, "TWD", ME_ID, ALL))
        assert updated.expenses[0].category is Category.OTHER

    def test_edit_does_not_recategorize(self, book, categorizer):
        trip = asyncio.run(book.add_expense("trip-1", "拉麵", 3000, "JPY", ME_ID, ALL))
        expense_id = trip.expenses[0].id

        edited = book.edit_expense("trip-1", expense_id, "Taxi", 500, "TWD", "ken", ALL)

        assert categorizer.calls == ["拉麵"]
        assert edited.expenses[0].category is Category.FOOD

    def test_edit_remembers_currency(self, book, store):
        trip = asyncio.run(book.add_expense("trip-1", "拉麵", 3000, "JPY", ME_ID, ALL))
        expense_id = trip.expenses[0].id

        book.edit_expense("trip-1", expense_id, "拉麵", 20, "EUR", ME_ID, ALL)

        assert book.last_currency is Currency.EUR
        assert TripBook.open(store).last_currency is Currency.EUR

    def test_edit_of_unknown_expense_keeps_currency(self, book, store):
        asyncio.run(book.add_expense("trip-1", "拉麵", 3000, "JPY", ME_ID, ALL))

        book.edit_expense("trip-1", "ghost", "Taxi", 10, "USD", ME_ID, ALL)
        book.edit_expense("ghost", "ghost", "Taxi", 10, "USD", ME_ID, ALL)

        assert book.last_currency is Currency.JPY
        assert TripBook.open(store).last_currency is Currency.JPY

    def test_unknown_trip_returns_none(self, book, categorizer):
        assert asyncio.run(book.add_expense("ghost", "拉麵", 3000, "JPY", ME_ID, ALL)) is None
        assert categorizer.calls == []

    def test_settlement_and_stats(self, book):
        asyncio.run(book.add_expense("trip-1", "Dinner", 900, "TWD", ME_ID, ALL))
        assert [(t.from_id, t.to_id, t.amount) for t in book.settlement("trip-1")] == [
            ("ken", ME_ID, 300),
            ("amy", ME_ID, 300),
        ]
        assert book.expense_stats("trip-1")[Category.FOOD] == pytest.approx(900)
        assert book.expense_stats("trip-1", "ken")[Category.FOOD] == pytest.approx(300)
        assert book.settlement("ghost") == []


class TestWeather:
    def test_cached_after_first_lookup(self, book, advisor, store):
        first = asyncio.run(book.ensure_weather("trip-1", DAY))
        second = asyncio.run(book.ensure_weather("trip-1", DAY))

        assert first == second == SUNNY
        assert advisor.calls == [("大阪", DAY)]
        assert TripBook.open(store).get("trip-1").weather[DAY] == SUNNY

    def test_concurrent_requests_share_one_call(self, book, advisor):
        async def scenario():
            return await asyncio.gather(
                book.ensure_weather("trip-1", DAY),
                book.ensure_weather("trip-1", DAY),
            )

        assert asyncio.run(scenario()) == [SUNNY, SUNNY]
        assert len(advisor.calls) == 1

    def test_fallback_is_sticky(self, trip, profile):
        failing = FakeAdvisor(error=RuntimeError("offline"))
        book = TripBook(trips=[trip], profile=profile, advisor=failing)

        assert asyncio.run(book.ensure_weather("trip-1", DAY)) == FALLBACK_WEATHER

        book._advisor = FakeAdvisor()
        assert asyncio.run(book.ensure_weather("trip-1", DAY)) == FALLBACK_WEATHER
        assert book._advisor.calls == []

    def test_edits_during_lookup_are_kept(self, trip, profile):
        async def scenario():
            slow = SlowAdvisor()
            book = TripBook(trips=[trip], profile=profile, advisor=slow)
            lookup = asyncio.ensure_future(book.ensure_weather("trip-1", DAY))
            await slow.started.wait()

            book.add_todo("trip-1", "護照")
            slow.release.set()
            await lookup
            return book.get("trip-1")

        result = asyncio.run(scenario())
        assert [t.text for t in result.todos] == ["護照"]
        assert result.weather[DAY] == SUNNY

    def test_trip_deleted_during_lookup(self, trip, profile):
        async def scenario():
            slow = SlowAdvisor()
            book = TripBook(trips=[trip], profile=profile, advisor=slow)
            lookup = asyncio.ensure_future(book.ensure_weather("trip-1", DAY))
            await slow.started.wait()

            book.delete_trip("trip-1")
            slow.release.set()
            return book, await lookup

        book, entry = asyncio.run(scenario())
        assert entry == SUNNY
        assert book.trips == ()

    def test_select_date_returns_immediately(self, book, advisor):
        async def scenario():
            immediate = book.select_date("trip-1", DAY)
            settled = await book.ensure_weather("trip-1", DAY)
            return immediate, settled

        immediate, settled = asyncio.run(scenario())
        assert immediate is None
        assert settled == SUNNY
        assert len(advisor.calls) == 1
        assert book.select_date("trip-1", DAY) == SUNNY

    def test_select_date_without_loop_does_not_fetch(self, book, advisor):
        assert book.select_date("trip-1", DAY) is None
        assert advisor.calls == []

    def test_unknown_trip(self, book, advisor):
        assert asyncio.run(book.ensure_weather("ghost", DAY)) is None
        assert advisor.calls == []


def test_open_empty_store_seeds_sample_trip(tmp_path):
    book = TripBook.open(JsonStore(str(tmp_path / "fresh")))
    assert len(book.trips) == 1
    assert book.trips[0].find_member(ME_ID) is not None
