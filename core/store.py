# =============================================================================
# core/store.py  —  Persistent Store
# =============================================================================
#
# A tiny key-value store: one JSON file per key in a data directory.  The
# engine loads everything at start and writes a key back after each change.
#
# KEYS:
#   trips         → list of Trip dicts (the layout from Trip.to_dict)
#   user          → {"name", "avatar"}
#   lastCurrency  → currency code last used for a new expense
#
# TOLERANT LOADING:
#   A missing directory, missing file or a file with bad JSON never
#   stops the app.  load_state() falls back to the default profile and logs
#   a warning.  Trips are read one by one: a trip that doesn't parse is
#   skipped, and the seed trip is only used when none survives.
#
#   A trips file that did not parse cleanly is copied aside as
#   trips.<timestamp>.bak before anything can be written over it.  If that
#   copy fails, loading fails too.
# =============================================================================

import json
import logging
import os
import shutil
import tempfile
import time
from dataclasses import dataclass
from typing import Any

from core.models import Currency, Trip, UserProfile
from core.seed import seed_trips
from core.user_profile import get_default_profile


logger = logging.getLogger(__name__)

TRIPS_KEY = "trips"
USER_KEY = "user"
LAST_CURRENCY_KEY = "lastCurrency"


class JsonStore:
    """Key → JSON file in `data_dir`."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir

    def _path(self, key: str) -> str:
        return os.path.join(self.data_dir, f"{key}.json")

    def exists(self, key: str) -> bool:
        return os.path.exists(self._path(key))

    def backup(self, key: str) -> str:
        """Copy the file for `key` aside and return the copy's path."""
        stamp = time.strftime("%Y%m%d-%H%M%S")
        target = os.path.join(self.data_dir, f"{key}.{stamp}.bak")
        shutil.copy2(self._path(key), target)
        return target

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not os.path.exists(path):
            return default
        try:
            with open(path, encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s: %s", path, e)
            return default

    def set(self, key: str, value: Any) -> None:
        """Write atomically: temp file in the same directory, then replace."""
        os.makedirs(self.data_dir, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(value, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self._path(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


@dataclass
class AppState:
    trips: tuple[Trip, ...]
    profile: UserProfile
    last_currency: Currency


def load_state(store: JsonStore) -> AppState:
    """Read the whole persisted state, falling back per key."""
    profile = get_default_profile()
    raw_user = store.get(USER_KEY)
    if raw_user is not None:
        try:
            profile = UserProfile.from_dict(raw_user)
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning("Stored profile is malformed (%s); using default", e)

    raw_trips = store.get(TRIPS_KEY)
    trips = _parse_trips(raw_trips)
    damaged = not isinstance(raw_trips, list) or len(trips) < len(raw_trips)
    if damaged and store.exists(TRIPS_KEY):
        logger.warning("Trips file did not load cleanly; copy kept at %s", store.backup(TRIPS_KEY))
    if not trips:
        trips = seed_trips(profile)

    last_currency = Currency.TWD
    raw_currency = store.get(LAST_CURRENCY_KEY)
    if raw_currency is not None:
        try:
            last_currency = Currency.parse(raw_currency)
        except ValueError:
            logger.warning("Stored currency %r is unknown; using TWD", raw_currency)

    return AppState(trips=trips, profile=profile, last_currency=last_currency)


def _parse_trips(raw: Any) -> tuple[Trip, ...]:
    if not isinstance(raw, list):
        return ()
    trips = []
    for index, data in enumerate(raw):
        try:
            trips.append(Trip.from_dict(data))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            label = data.get("id") if isinstance(data, dict) else None
            logger.warning("Skipping stored trip %s: %s", label or f"#{index}", e)
    return tuple(trips)


def save_trips(store: JsonStore, trips: tuple[Trip, ...]) -> None:
    store.set(TRIPS_KEY, [t.to_dict() for t in trips])


def save_profile(store: JsonStore, profile: UserProfile) -> None:
    store.set(USER_KEY, profile.to_dict())


def save_last_currency(store: JsonStore, currency: Currency) -> None:
    store.set(LAST_CURRENCY_KEY, currency.value)
