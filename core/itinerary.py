# =============================================================================
# core/itinerary.py  —  Itinerary Scheduler
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Maintains, per trip, a mapping from calendar date ("YYYY-MM-DD") to an
#   ordered bucket of activities.
#
# ORDERING RULES:
#   - add / edit  → the bucket is re-sorted ascending by start_time.  Times
#     are zero-padded "HH:MM" strings, so plain string comparison is correct.
#     The sort is stable: equal start times keep their relative order.
#   - reorder     → the bucket becomes exactly what the caller passed in.
#     No sort.  That order stands until the next add/edit on the same day.
#   - delete      → the remaining order is kept as is.
#
# Every function returns a NEW Trip (dataclasses.replace) and leaves the
# input untouched.
# =============================================================================

import logging
import re
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Iterable

from core.models import Activity, IconName, Trip, ValidationError, new_id


logger = logging.getLogger(__name__)

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


# =============================================================================
# Date range
# =============================================================================
def trip_dates(trip: Trip, today: date | None = None) -> list[str]:
    """The inclusive list of itinerary dates for a trip.

    Never empty:
      - end_date before start_date → just the start date
      - either date unparseable   → a single synthetic date (today)

    Args:
        trip: The trip whose range to compute.
        today: Override for the synthetic date (tests).

    Returns:
        ISO date strings, oldest first.
    """
    try:
        start = datetime.strptime(trip.start_date, "%Y-%m-%d").date()
        end = datetime.strptime(trip.end_date, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        fallback = today or date.today()
        logger.debug("Trip %s has malformed dates; using %s", trip.id, fallback)
        return [fallback.isoformat()]

    days = max(1, (end - start).days + 1)
    return [(start + timedelta(days=i)).isoformat() for i in range(days)]


def activities_on(trip: Trip, day: str) -> tuple[Activity, ...]:
    """The bucket for `day` (empty when nothing is planned)."""
    return trip.itinerary.get(day, ())


# =============================================================================
# Mutations
# =============================================================================
def add_activity(
    trip: Trip,
    day: str,
    *,
    name: str,
    start_time: str,
    duration: str = "",
    note: str = "",
    icon: IconName | str = IconName.MAP_PIN,
    link: str | None = None,
) -> Trip:
    """Append a new activity to `day` and re-sort that day by start time."""
    activity = _build_activity(new_id(), name, start_time, duration, note, icon, link)
    bucket = activities_on(trip, day) + (activity,)
    return _with_bucket(trip, day, _sorted(bucket))


def edit_activity(
    trip: Trip,
    day: str,
    activity_id: str,
    *,
    name: str,
    start_time: str,
    duration: str = "",
    note: str = "",
    icon: IconName | str = IconName.MAP_PIN,
    link: str | None = None,
) -> Trip:
    """Replace every field of an activity except its id, then re-sort.

    An id that is not in the bucket leaves the trip unchanged.
    """
    bucket = activities_on(trip, day)
    if not any(a.id == activity_id for a in bucket):
        return trip
    updated = _build_activity(activity_id, name, start_time, duration, note, icon, link)
    bucket = tuple(updated if a.id == activity_id else a for a in bucket)
    return _with_bucket(trip, day, _sorted(bucket))


def delete_activity(trip: Trip, day: str, activity_id: str) -> Trip:
    bucket = activities_on(trip, day)
    remaining = tuple(a for a in bucket if a.id != activity_id)
    if len(remaining) == len(bucket):
        return trip
    return _with_bucket(trip, day, remaining)


def reorder_activities(trip: Trip, day: str, new_order: Iterable[Activity | str]) -> Trip:
    """Replace the day's order verbatim with the caller's order.

    `new_order` may hold Activity objects (stored as given) or ids (resolved
    against the current bucket; unknown ids are dropped).
    """
    current = {a.id: a for a in activities_on(trip, day)}
    ordered = []
    for entry in new_order:
        if isinstance(entry, Activity):
            ordered.append(entry)
        elif entry in current:
            ordered.append(current[entry])
    return _with_bucket(trip, day, tuple(ordered))


# =============================================================================
# Helpers
# =============================================================================
def validate_activity(name: str, start_time: str) -> None:
    if not name or not name.strip():
        raise ValidationError("Activity name is required.")
    if not isinstance(start_time, str) or not _TIME_PATTERN.match(start_time):
        raise ValidationError(f"Start time must be HH:MM (24h), got {start_time!r}.")


def _build_activity(activity_id, name, start_time, duration, note, icon, link) -> Activity:
    validate_activity(name, start_time)
    return Activity(
        id=activity_id,
        name=name.strip(),
        start_time=start_time,
        duration=duration or "",
        note=note or "",
        icon=IconName.parse(icon),
        link=link or None,
    )


def _sorted(bucket: tuple[Activity, ...]) -> tuple[Activity, ...]:
    return tuple(sorted(bucket, key=lambda a: a.start_time))


def _with_bucket(trip: Trip, day: str, bucket: tuple[Activity, ...]) -> Trip:
    itinerary = dict(trip.itinerary)
    itinerary[day] = bucket
    return replace(trip, itinerary=itinerary)
