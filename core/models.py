# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the *shape* of every piece of information that
# flows through the engine: trips, the people on them, what they do each day,
# what they spend, and the transfers that settle the bill.
#
# IMMUTABILITY:
#   Every model is a frozen dataclass.  Collections inside a model are tuples
#   (ordered lists) or dicts that are never mutated after construction.  An
#   operation on a trip always returns a NEW trip; a caller holding the old
#   value keeps seeing the old state.
#
# CLOSED ENUMERATIONS:
#   Categories, currencies and icons are str-Enums.  Anything arriving from
#   outside (a collaborator answer, a JSON file, a tool argument) is mapped
#   into the enum at the boundary via the `parse` helpers below.
#
# SERIALIZATION:
#   `to_dict()` / `from_dict()` produce and read the persisted layout, which
#   uses camelCase keys (startTime, payerId, splitDetails, ...).
# =============================================================================

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


ME_ID = "me"                            # Reserved member id for the local user


class ValidationError(ValueError):
    """Raised when an operation's input is rejected before any state change."""


def new_id() -> str:
    """Fresh unique identifier for trips, members, activities, expenses, todos."""
    return str(uuid.uuid4())


# -----------------------------------------------------------------------------
# Enumerations
# -----------------------------------------------------------------------------
class Category(str, Enum):
    """Expense categories (closed set)."""

    FOOD = "Food"
    TRANSPORT = "Transport"
    ACCOMMODATION = "Accommodation"
    SHOPPING = "Shopping"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Any) -> "Category":
        """Map any value onto the closed set; unknown values become OTHER."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.OTHER
        text = value.strip().strip(".").lower()
        for category in cls:
            if category.value.lower() == text:
                return category
        return cls.OTHER


class Currency(str, Enum):
    """Currencies an expense can be recorded in.  TWD is the base."""

    TWD = "TWD"
    JPY = "JPY"
    USD = "USD"
    EUR = "EUR"
    KRW = "KRW"

    @classmethod
    def parse(cls, value: Any) -> "Currency":
        """Strict parse: unknown codes raise ValueError."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().upper())


class IconName(str, Enum):
    """Icons for trips and activities."""

    PLANE = "Plane"
    TRAIN = "Train"
    BUS = "Bus"
    CAR = "Car"
    HOTEL = "Hotel"
    UTENSILS = "Utensils"
    COFFEE = "Coffee"
    BEER = "Beer"
    SHOPPING_BAG = "ShoppingBag"
    CAMERA = "Camera"
    MAP_PIN = "MapPin"
    MOUNTAIN = "Mountain"
    SUN = "Sun"
    MOON = "Moon"
    UMBRELLA = "Umbrella"
    MUSIC = "Music"
    TICKET = "Ticket"
    CREDIT_CARD = "CreditCard"
    DOLLAR_SIGN = "DollarSign"
    GIFT = "Gift"
    HEART = "Heart"
    STAR = "Star"
    FLAG = "Flag"
    ANCHOR = "Anchor"
    BRIEFCASE = "Briefcase"
    HOME = "Home"
    USER = "User"
    USERS = "Users"
    SMARTPHONE = "Smartphone"
    WIFI = "Wifi"
    BATTERY = "Battery"
    WATCH = "Watch"

    @classmethod
    def parse(cls, value: Any) -> "IconName":
        """Map any value onto the icon set; unknown values become MAP_PIN."""
        if isinstance(value, cls):
            return value
        for icon in cls:
            if icon.value == value:
                return icon
        return cls.MAP_PIN


# -----------------------------------------------------------------------------
# UserProfile: the local traveler, mirrored into every trip as member "me"
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class UserProfile:
    """The person using the app on this device."""

    name: str
    avatar: str                        # Emoji character

    def to_dict(self) -> dict:
        return {"name": self.name, "avatar": self.avatar}

    @classmethod
    def from_dict(cls, data: dict) -> "UserProfile":
        return cls(name=str(data["name"]), avatar=str(data["avatar"]))


# -----------------------------------------------------------------------------
# Member: one traveler on one trip
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Member:
    id: str
    name: str
    avatar: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "avatar": self.avatar}

    @classmethod
    def from_dict(cls, data: dict) -> "Member":
        return cls(id=str(data["id"]), name=str(data["name"]), avatar=str(data.get("avatar", "")))


# -----------------------------------------------------------------------------
# Activity: one entry in a day's itinerary
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Activity:
    """A scheduled stop on a given day."""

    id: str
    name: str
    start_time: str                    # "HH:MM", zero-padded 24h
    duration: str = ""                 # Free-form, e.g. "1h 30m"
    note: str = ""
    icon: IconName = IconName.MAP_PIN
    link: Optional[str] = None         # Navigation link (maps URL)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "startTime": self.start_time,
            "duration": self.duration,
            "note": self.note,
            "icon": self.icon.value,
        }
        if self.link:
            data["link"] = self.link
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Activity":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            start_time=str(data.get("startTime", "")),
            duration=str(data.get("duration", "")),
            note=str(data.get("note", "")),
            icon=IconName.parse(data.get("icon")),
            link=data.get("link") or None,
        )


# -----------------------------------------------------------------------------
# Expense: one payment, and who is responsible for how much of it
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Expense:
    """A shared expense.

    `split_details` maps member id → owed amount in the expense's OWN currency
    and sums to `amount`.  `manual_splits` records which of those entries the
    user typed in by hand; None means the expense predates that record.
    """

    id: str
    payer_id: str
    amount: float
    currency: Currency
    item: str
    date: str                          # ISO-8601 timestamp (UTC)
    category: Category
    split_details: dict[str, float] = field(default_factory=dict)
    manual_splits: Optional[dict[str, float]] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "payerId": self.payer_id,
            "amount": self.amount,
            "currency": self.currency.value,
            "item": self.item,
            "date": self.date,
            "category": self.category.value,
            "splitDetails": dict(self.split_details),
        }
        if self.manual_splits is not None:
            data["manualSplits"] = dict(self.manual_splits)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Expense":
        manual = data.get("manualSplits")
        return cls(
            id=str(data["id"]),
            payer_id=str(data["payerId"]),
            amount=float(data["amount"]),
            currency=Currency.parse(data["currency"]),
            item=str(data.get("item", "")),
            date=str(data.get("date", "")),
            category=Category.parse(data.get("category")),
            split_details={k: float(v) for k, v in (data.get("splitDetails") or {}).items()},
            manual_splits=None if manual is None else {k: float(v) for k, v in manual.items()},
        )


@dataclass(frozen=True)
class Todo:
    id: str
    text: str
    completed: bool = False

    def to_dict(self) -> dict:
        return {"id": self.id, "text": self.text, "completed": self.completed}

    @classmethod
    def from_dict(cls, data: dict) -> "Todo":
        return cls(id=str(data["id"]), text=str(data.get("text", "")), completed=bool(data.get("completed", False)))


# -----------------------------------------------------------------------------
# Weather: whatever the Weather Advisor answered for one date
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class WeatherData:
    temp_min: float                    # Celsius
    temp_max: float                    # Celsius
    rain_prob: int                     # 0–100
    condition: str                     # e.g. "多雲"

    def to_dict(self) -> dict:
        return {
            "tempMin": self.temp_min,
            "tempMax": self.temp_max,
            "rainProb": self.rain_prob,
            "condition": self.condition,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WeatherData":
        return cls(
            temp_min=float(data["tempMin"]),
            temp_max=float(data["tempMax"]),
            rain_prob=int(data["rainProb"]),
            condition=str(data["condition"]),
        )


@dataclass(frozen=True)
class WeatherEntry:
    """Cached advisor answer for one date: forecast plus free-text advice."""

    forecast: WeatherData
    advice: str

    def to_dict(self) -> dict:
        return {"forecast": self.forecast.to_dict(), "advice": self.advice}

    @classmethod
    def from_dict(cls, data: dict) -> "WeatherEntry":
        # Older saves nest the forecast under "data".
        raw = data.get("forecast") or data.get("data") or {}
        return cls(forecast=WeatherData.from_dict(raw), advice=str(data.get("advice", "")))


# -----------------------------------------------------------------------------
# Trip: the aggregate.  Owns everything above except the profile.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Trip:
    """One trip and everything that belongs to it."""

    id: str
    name: str
    location: str
    start_date: str                    # "YYYY-MM-DD", inclusive
    end_date: str                      # "YYYY-MM-DD", inclusive
    icon: IconName = IconName.PLANE
    members: tuple[Member, ...] = ()
    itinerary: dict[str, tuple[Activity, ...]] = field(default_factory=dict)
    expenses: tuple[Expense, ...] = ()
    todos: tuple[Todo, ...] = ()
    weather: dict[str, WeatherEntry] = field(default_factory=dict)

    def member_ids(self) -> list[str]:
        return [m.id for m in self.members]

    def find_member(self, member_id: str) -> Optional[Member]:
        for member in self.members:
            if member.id == member_id:
                return member
        return None

    def find_expense(self, expense_id: str) -> Optional[Expense]:
        for expense in self.expenses:
            if expense.id == expense_id:
                return expense
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "icon": self.icon.value,
            "members": [m.to_dict() for m in self.members],
            "itinerary": {
                day: [a.to_dict() for a in bucket] for day, bucket in self.itinerary.items()
            },
            "expenses": [e.to_dict() for e in self.expenses],
            "todos": [t.to_dict() for t in self.todos],
            "weather": {day: w.to_dict() for day, w in self.weather.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Trip":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            location=str(data.get("location", "")),
            start_date=str(data.get("startDate", "")),
            end_date=str(data.get("endDate", "")),
            icon=IconName.parse(data.get("icon")),
            members=tuple(Member.from_dict(m) for m in data.get("members") or []),
            itinerary={
                day: tuple(Activity.from_dict(a) for a in bucket)
                for day, bucket in (data.get("itinerary") or {}).items()
            },
            expenses=tuple(Expense.from_dict(e) for e in data.get("expenses") or []),
            todos=tuple(Todo.from_dict(t) for t in data.get("todos") or []),
            weather={
                day: WeatherEntry.from_dict(w) for day, w in (data.get("weather") or {}).items()
            },
        )


# -----------------------------------------------------------------------------
# Transfer: one line of the settlement ("B pays A 300 TWD")
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Transfer:
    from_id: str
    to_id: str
    amount: float                      # Base currency

    def to_dict(self) -> dict:
        return {"from": self.from_id, "to": self.to_id, "amount": self.amount}
