from dataclasses import replace
from datetime import date

import pytest

from core import itinerary
from core.models import Activity, IconName, ValidationError


DAY = "2025-12-31"


def _names(trip, day=DAY):
    return [a.name for a in itinerary.activities_on(trip, day)]


def _plan(trip, *entries):
    for name, start in entries:
        trip = itinerary.add_activity(trip, DAY, name=name, start_time=start)
    return trip


class TestTripDates:
    def test_inclusive_range(self, trip):
        assert itinerary.trip_dates(trip) == ["2025-12-31", "2026-01-01", "2026-01-02"]

    def test_end_before_start_gives_one_day(self, trip):
        trip = replace(trip, end_date="2025-12-01")
        assert itinerary.trip_dates(trip) == ["2025-12-31"]

    def test_malformed_dates_fall_back_to_today(self, trip):
        trip = replace(trip, start_date="someday")
        assert itinerary.trip_dates(trip, today=date(2026, 3, 1)) == ["2026-03-01"]


class TestOrdering:
    def test_add_sorts_by_start_time(self, trip):
        trip = _plan(trip, ("Dinner", "18:00"), ("Airport", "09:15"), ("Lunch", "12:00"))
        assert _names(trip) == ["Airport", "Lunch", "Dinner"]

    def test_equal_start_times_keep_insertion_order(self, trip):
        trip = _plan(trip, ("First", "10:00"), ("Second", "10:00"))
        assert _names(trip) == ["First", "Second"]

    def test_edit_resorts(self, trip):
        trip = _plan(trip, ("A", "09:00"), ("B", "10:00"))
        first = itinerary.activities_on(trip, DAY)[0]
        trip = itinerary.edit_activity(trip, DAY, first.id, name="A", start_time="11:00", note="late")
        assert _names(trip) == ["B", "A"]
        assert itinerary.activities_on(trip, DAY)[1].note == "late"
        assert itinerary.activities_on(trip, DAY)[1].id == first.id

    def test_reorder_is_verbatim_until_next_add(self, trip):
        trip = _plan(trip, ("A", "09:00"), ("B", "10:00"), ("C", "11:00"))
        a, b, c = itinerary.activities_on(trip, DAY)

        trip = itinerary.reorder_activities(trip, DAY, [c, a, b])
        assert _names(trip) == ["C", "A", "B"]

        trip = itinerary.add_activity(trip, DAY, name="D", start_time="08:00")
        assert _names(trip) == ["D", "A", "B", "C"]

    def test_reorder_by_id_drops_unknown_ids(self, trip):
        trip = _plan(trip, ("A", "09:00"), ("B", "10:00"))
        a, b = itinerary.activities_on(trip, DAY)
        trip = itinerary.reorder_activities(trip, DAY, [b.id, "ghost", a.id])
        assert _names(trip) == ["B", "A"]

    def test_delete_keeps_remaining_order(self, trip):
        trip = _plan(trip, ("A", "09:00"), ("B", "10:00"), ("C", "11:00"))
        a, b, c = itinerary.activities_on(trip, DAY)
        trip = itinerary.reorder_activities(trip, DAY, [c, b, a])
        trip = itinerary.delete_activity(trip, DAY, b.id)
        assert _names(trip) == ["C", "A"]

    def test_days_are_independent(self, trip):
        trip = _plan(trip, ("A", "09:00"))
        trip = itinerary.add_activity(trip, "2026-01-01", name="B", start_time="07:00")
        assert _names(trip) == ["A"]
        assert _names(trip, "2026-01-01") == ["B"]


class TestActivityFields:
    def test_icon_and_link(self, trip):
        trip = itinerary.add_activity(
            trip, DAY, name="KIX", start_time="12:00", icon="Plane", link="https://maps.example/kix"
        )
        activity = itinerary.activities_on(trip, DAY)[0]
        assert activity.icon is IconName.PLANE
        assert activity.link == "https://maps.example/kix"

    def test_unknown_icon_becomes_map_pin(self, trip):
        trip = itinerary.add_activity(trip, DAY, name="Somewhere", start_time="12:00", icon="Rocket")
        assert itinerary.activities_on(trip, DAY)[0].icon is IconName.MAP_PIN

    @pytest.mark.parametrize("start_time", ["9:00", "24:00", "12:60", "noon", ""])
    def test_rejects_bad_start_time(self, trip, start_time):
        with pytest.raises(ValidationError):
            itinerary.add_activity(trip, DAY, name="X", start_time=start_time)

    def test_rejects_blank_name(self, trip):
        with pytest.raises(ValidationError):
            itinerary.add_activity(trip, DAY, name="  ", start_time="10:00")


class TestNoOps:
    def test_unknown_ids_return_the_same_trip(self, trip):
        trip = _plan(trip, ("A", "09:00"))
        assert itinerary.edit_activity(trip, DAY, "ghost", name="X", start_time="10:00") is trip
        assert itinerary.delete_activity(trip, DAY, "ghost") is trip

    def test_unknown_id_ignores_bad_fields(self, trip):
        trip = _plan(trip, ("A", "09:00"))
        assert itinerary.edit_activity(trip, DAY, "ghost", name="", start_time="25:99") is trip

    def test_input_trip_is_untouched(self, trip):
        before = trip
        after = _plan(trip, ("A", "09:00"))
        assert before.itinerary == {}
        assert isinstance(itinerary.activities_on(after, DAY)[0], Activity)
