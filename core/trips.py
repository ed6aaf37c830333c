# =============================================================================
# core/trips.py  —  Trip Aggregate (pure operations)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Creates trips and applies the trip-level changes that are not itinerary
#   or ledger changes: editing trip details, adding members, todos, caching
#   weather answers, and mirroring the user profile into member "me".
#
# COPY-ON-WRITE:
#   Every function takes a Trip and returns a new Trip built with
#   dataclasses.replace.  No function here mutates its input, so a caller
#   holding an earlier value always sees the earlier state.
#
#   The itinerary and ledger operations live in core/itinerary.py and
#   core/ledger.py and follow the same rule.
# =============================================================================

from dataclasses import replace
from typing import Iterable

from core.models import (
    ME_ID,
    IconName,
    Member,
    Todo,
    Trip,
    UserProfile,
    ValidationError,
    WeatherEntry,
    new_id,
)


_EDITABLE_TRIP_FIELDS = ("name", "location", "start_date", "end_date", "icon")


def create_trip(
    name: str,
    location: str,
    start_date: str,
    end_date: str,
    profile: UserProfile,
    icon: IconName | str = IconName.PLANE,
) -> Trip:
    """A new, empty trip whose only member is the local user ("me")."""
    if not name or not name.strip():
        raise ValidationError("Trip name is required.")
    return Trip(
        id=new_id(),
        name=name.strip(),
        location=(location or "").strip(),
        start_date=start_date,
        end_date=end_date,
        icon=IconName.parse(icon),
        members=(Member(id=ME_ID, name=profile.name, avatar=profile.avatar),),
    )


def update_trip(trip: Trip, **changes) -> Trip:
    """Change trip details (name, location, start_date, end_date, icon).

    Members, itinerary, expenses, todos and weather are left alone.
    """
    unknown = set(changes) - set(_EDITABLE_TRIP_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot edit trip fields: {', '.join(sorted(unknown))}.")
    if "name" in changes and (not changes["name"] or not changes["name"].strip()):
        raise ValidationError("Trip name is required.")
    if "icon" in changes:
        changes["icon"] = IconName.parse(changes["icon"])
    return replace(trip, **changes)


def add_member(trip: Trip, name: str, avatar: str) -> Trip:
    if not name or not name.strip():
        raise ValidationError("Member name is required.")
    member = Member(id=new_id(), name=name.strip(), avatar=avatar)
    return replace(trip, members=trip.members + (member,))


# -----------------------------------------------------------------------------
# Todos
# -----------------------------------------------------------------------------
def add_todo(trip: Trip, text: str) -> Trip:
    if not text or not text.strip():
        raise ValidationError("Todo text is required.")
    todo = Todo(id=new_id(), text=text.strip())
    return replace(trip, todos=trip.todos + (todo,))


def toggle_todo(trip: Trip, todo_id: str) -> Trip:
    if not any(t.id == todo_id for t in trip.todos):
        return trip
    return replace(
        trip,
        todos=tuple(replace(t, completed=not t.completed) if t.id == todo_id else t for t in trip.todos),
    )


def delete_todo(trip: Trip, todo_id: str) -> Trip:
    remaining = tuple(t for t in trip.todos if t.id != todo_id)
    if len(remaining) == len(trip.todos):
        return trip
    return replace(trip, todos=remaining)


# -----------------------------------------------------------------------------
# Weather cache
# -----------------------------------------------------------------------------
def needs_weather(trip: Trip, day: str) -> bool:
    return day not in trip.weather


def with_weather(trip: Trip, day: str, entry: WeatherEntry) -> Trip:
    """Cache an advisor answer for `day` unless one is already cached.

    An existing entry always wins, including a cached fallback answer.
    """
    if not needs_weather(trip, day):
        return trip
    weather = dict(trip.weather)
    weather[day] = entry
    return replace(trip, weather=weather)


# -----------------------------------------------------------------------------
# Profile propagation
# -----------------------------------------------------------------------------
def sync_profile(trips: Iterable[Trip], profile: UserProfile) -> tuple[Trip, ...]:
    """Mirror the user profile into member "me" of every trip.

    Trips whose "me" member already matches are returned unchanged (same
    object); trips without a "me" member are left alone.
    """
    synced = []
    for trip in trips:
        me = trip.find_member(ME_ID)
        if me is None or (me.name == profile.name and me.avatar == profile.avatar):
            synced.append(trip)
            continue
        members = tuple(
            replace(m, name=profile.name, avatar=profile.avatar) if m.id == ME_ID else m
            for m in trip.members
        )
        synced.append(replace(trip, members=members))
    return tuple(synced)
