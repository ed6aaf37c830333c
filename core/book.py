# =============================================================================
# core/book.py  —  TripBook: the owner of all trips on this device
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Holds the current trip collection, the user profile and the last-used
#   currency.  Every change goes through here:
#
#       current trip ──(pure operation from core/)──▶ new trip
#                                                   │
#                          swap into the collection ┘──▶ save to the store
#
#   TripBook never edits a Trip in place.  A Trip value handed out earlier
#   keeps describing the state at the time it was handed out.
#
# THE ASYNC EDGES:
#   - add_expense awaits the categorizer exactly once, AFTER validating the
#     input and BEFORE writing.  Edits never recategorize.
#   - ensure_weather asks the advisor only for dates with no cached entry.
#     Concurrent requests for the same (trip, date) share one advisor call,
#     and the write re-checks the CURRENT trip, so an entry written in the
#     meantime is never overwritten.
#   - select_date is the UI-facing variant: it returns the cached entry (or
#     None) immediately and lets the forecast arrive in the background.
#
# UNKNOWN IDS:
#   A mutation that names a trip that doesn't exist returns None and changes
#   nothing.  Unknown activity / expense / todo ids are no-ops as well.
# =============================================================================

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Mapping

from core import itinerary, ledger, settlement, trips as trip_ops
from core.categorizer import categorize
from core.currency import BASE_CURRENCY
from core.models import (
    Activity,
    Category,
    Currency,
    Expense,
    IconName,
    Transfer,
    Trip,
    UserProfile,
    WeatherEntry,
)
from core.store import (
    AppState,
    JsonStore,
    load_state,
    save_last_currency,
    save_profile,
    save_trips,
)
from core.user_profile import get_default_profile, update_profile
from core.weather import FALLBACK_WEATHER, get_forecast


logger = logging.getLogger(__name__)

WeatherAdvisor = Callable[[str, str], Awaitable[WeatherEntry]]
Categorizer = Callable[[str], Awaitable[Category]]


class TripBook:
    """All trips plus the profile, with persistence and collaborators wired in."""

    def __init__(
        self,
        trips: Iterable[Trip] = (),
        profile: UserProfile | None = None,
        last_currency: Currency = BASE_CURRENCY,
        store: JsonStore | None = None,
        advisor: WeatherAdvisor = get_forecast,
        categorizer: Categorizer = categorize,
    ):
        self._trips: tuple[Trip, ...] = tuple(trips)
        self._profile = profile or get_default_profile()
        self._last_currency = last_currency
        self._store = store
        self._advisor = advisor
        self._categorizer = categorizer
        self._pending_weather: dict[tuple[str, str], asyncio.Task] = {}
        self._background: set[asyncio.Task] = set()

    @classmethod
    def open(cls, store: JsonStore, **collaborators) -> "TripBook":
        """Load a book from the store (seed data if the store is empty)."""
        state: AppState = load_state(store)
        logger.info("Loaded %d trip(s) from %s", len(state.trips), store.data_dir)
        return cls(
            trips=state.trips,
            profile=state.profile,
            last_currency=state.last_currency,
            store=store,
            **collaborators,
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------
    @property
    def trips(self) -> tuple[Trip, ...]:
        return self._trips

    @property
    def profile(self) -> UserProfile:
        return self._profile

    @property
    def last_currency(self) -> Currency:
        return self._last_currency

    def get(self, trip_id: str) -> Trip | None:
        for trip in self._trips:
            if trip.id == trip_id:
                return trip
        return None

    # -------------------------------------------------------------------------
    # Internal write path
    # -------------------------------------------------------------------------
    def _apply(self, trip_id: str, operation: Callable[[Trip], Trip]) -> Trip | None:
        """Run `operation` on the current trip and swap the result in."""
        current = self.get(trip_id)
        if current is None:
            logger.debug("Ignoring change to unknown trip %s", trip_id)
            return None
        updated = operation(current)
        if updated is not current:
            self._trips = tuple(updated if t.id == trip_id else t for t in self._trips)
            self._save_trips()
        return updated

    def _save_trips(self) -> None:
        if self._store is not None:
            save_trips(self._store, self._trips)

    # -------------------------------------------------------------------------
    # Trips, members, profile
    # -------------------------------------------------------------------------
    def create_trip(
        self,
        name: str,
        location: str,
        start_date: str,
        end_date: str,
        icon: IconName | str = IconName.PLANE,
    ) -> Trip:
        trip = trip_ops.create_trip(name, location, start_date, end_date, self._profile, icon)
        self._trips = self._trips + (trip,)
        self._save_trips()
        logger.info("Created trip %s (%s)", trip.id, trip.name)
        return trip

    def update_trip(self, trip_id: str, **changes) -> Trip | None:
        return self._apply(trip_id, lambda t: trip_ops.update_trip(t, **changes))

    def delete_trip(self, trip_id: str) -> bool:
        """Remove a trip and everything it owns.  Irreversible."""
        remaining = tuple(t for t in self._trips if t.id != trip_id)
        if len(remaining) == len(self._trips):
            return False
        self._trips = remaining
        self._save_trips()
        logger.info("Deleted trip %s", trip_id)
        return True

    def add_member(self, trip_id: str, name: str, avatar: str) -> Trip | None:
        return self._apply(trip_id, lambda t: trip_ops.add_member(t, name, avatar))

    def update_profile(self, name: str, avatar: str) -> UserProfile:
        """Change the profile, then push it into every trip's "me" member."""
        self._profile = update_profile(name, avatar)
        synced = trip_ops.sync_profile(self._trips, self._profile)
        changed = any(new is not old for new, old in zip(synced, self._trips))
        self._trips = synced
        if self._store is not None:
            save_profile(self._store, self._profile)
        if changed:
            self._save_trips()
        return self._profile

    # -------------------------------------------------------------------------
    # Itinerary
    # -------------------------------------------------------------------------
    def dates(self, trip_id: str) -> list[str]:
        trip = self.get(trip_id)
        return itinerary.trip_dates(trip) if trip else []

    def activities_on(self, trip_id: str, day: str) -> tuple[Activity, ...]:
        trip = self.get(trip_id)
        return itinerary.activities_on(trip, day) if trip else ()

    def add_activity(self, trip_id: str, day: str, **fields) -> Trip | None:
        return self._apply(trip_id, lambda t: itinerary.add_activity(t, day, **fields))

    def edit_activity(self, trip_id: str, day: str, activity_id: str, **fields) -> Trip | None:
        return self._apply(trip_id, lambda t: itinerary.edit_activity(t, day, activity_id, **fields))

    def delete_activity(self, trip_id: str, day: str, activity_id: str) -> Trip | None:
        return self._apply(trip_id, lambda t: itinerary.delete_activity(t, day, activity_id))

    def reorder_activities(self, trip_id: str, day: str, new_order: Iterable[Activity | str]) -> Trip | None:
        order = list(new_order)
        return self._apply(trip_id, lambda t: itinerary.reorder_activities(t, day, order))

    # -------------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------------
    async def add_expense(
        self,
        trip_id: str,
        item: Any,
        amount: Any,
        currency: Any,
        payer_id: str,
        member_selection: Iterable[str],
        manual_splits: Mapping[str, Any] | None = None,
    ) -> Trip | None:
        """Validate, categorize (one awaited call), then record the expense.

        Raises:
            ValidationError: before the categorizer is called, if any input
                is rejected.
        """
        trip = self.get(trip_id)
        if trip is None:
            return None
        selection = list(member_selection)
        ledger.validate_expense(trip, item, amount, currency, payer_id, selection, manual_splits)

        category = await self._categorize(item)
        updated = self._apply(
            trip_id,
            lambda t: ledger.add_expense(
                t, item, amount, currency, payer_id, selection, manual_splits, category=category
            ),
        )
        if updated is not None:
            self._remember_currency(currency)
        return updated

    async def _categorize(self, item: str) -> Category:
        try:
            return Category.parse(await self._categorizer(item))
        except Exception as e:
            logger.warning("Categorizer raised for %r: %s. Using Other.", item, e)
            return Category.OTHER

    def edit_expense(
        self,
        trip_id: str,
        expense_id: str,
        item: Any,
        amount: Any,
        currency: Any,
        payer_id: str,
        member_selection: Iterable[str],
        manual_splits: Mapping[str, Any] | None = None,
    ) -> Trip | None:
        selection = list(member_selection)
        updated = self._apply(
            trip_id,
            lambda t: ledger.edit_expense(
                t, expense_id, item, amount, currency, payer_id, selection, manual_splits
            ),
        )
        if updated is not None and updated.find_expense(expense_id) is not None:
            self._remember_currency(currency)
        return updated

    def _remember_currency(self, currency: Any) -> None:
        self._last_currency = Currency.parse(currency)
        if self._store is not None:
            save_last_currency(self._store, self._last_currency)

    def delete_expense(self, trip_id: str, expense_id: str) -> Trip | None:
        return self._apply(trip_id, lambda t: ledger.delete_expense(t, expense_id))

    def expense_groups(self, trip_id: str) -> list[tuple[str, list[Expense]]]:
        trip = self.get(trip_id)
        return ledger.grouped_by_date(trip) if trip else []

    def expense_stats(
        self,
        trip_id: str,
        member_filter: str = ledger.ALL_MEMBERS,
        display_currency: Currency | str = BASE_CURRENCY,
    ) -> dict[Category, float]:
        trip = self.get(trip_id)
        if trip is None:
            return {}
        return ledger.stats_by_category(trip, member_filter, display_currency)

    def net_positions(self, trip_id: str) -> dict[str, float]:
        trip = self.get(trip_id)
        return settlement.net_positions(trip) if trip else {}

    def settlement(self, trip_id: str) -> list[Transfer]:
        trip = self.get(trip_id)
        return settlement.settle_trip(trip) if trip else []

    # -------------------------------------------------------------------------
    # Todos
    # -------------------------------------------------------------------------
    def add_todo(self, trip_id: str, text: str) -> Trip | None:
        return self._apply(trip_id, lambda t: trip_ops.add_todo(t, text))

    def toggle_todo(self, trip_id: str, todo_id: str) -> Trip | None:
        return self._apply(trip_id, lambda t: trip_ops.toggle_todo(t, todo_id))

    def delete_todo(self, trip_id: str, todo_id: str) -> Trip | None:
        return self._apply(trip_id, lambda t: trip_ops.delete_todo(t, todo_id))

    # -------------------------------------------------------------------------
    # Weather
    # -------------------------------------------------------------------------
    async def ensure_weather(self, trip_id: str, day: str) -> WeatherEntry | None:
        """The cached forecast for `day`, asking the advisor if there is none.

        Returns None only when the trip doesn't exist.
        """
        trip = self.get(trip_id)
        if trip is None:
            return None
        if not trip_ops.needs_weather(trip, day):
            return trip.weather[day]

        key = (trip_id, day)
        task = self._pending_weather.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch_weather(trip_id, trip.location, day))
            self._pending_weather[key] = task
            task.add_done_callback(lambda _: self._pending_weather.pop(key, None))
        return await task

    async def _fetch_weather(self, trip_id: str, location: str, day: str) -> WeatherEntry:
        try:
            entry = await self._advisor(location, day)
        except Exception as e:
            logger.warning("Weather advisor raised for %s on %s: %s. Using fallback.", location, day, e)
            entry = FALLBACK_WEATHER

        # Conditioned on the trip as it is NOW, not as it was when we asked.
        updated = self._apply(trip_id, lambda t: trip_ops.with_weather(t, day, entry))
        if updated is None:
            return entry
        return updated.weather[day]

    def select_date(self, trip_id: str, day: str) -> WeatherEntry | None:
        """Cached forecast for `day` right now; fetch a missing one in the background.

        Needs a running event loop to schedule the fetch.  Without one, the
        cached value (or None) is returned and nothing is requested.
        """
        trip = self.get(trip_id)
        if trip is None:
            return None
        if not trip_ops.needs_weather(trip, day):
            return trip.weather[day]
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        task = loop.create_task(self.ensure_weather(trip_id, day))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return None
