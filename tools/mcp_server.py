# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (every ledger operation)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes the trip ledger as MCP tools.  Each tool is a thin wrapper around
#   one TripBook method: it parses the arguments, calls into core/, and turns
#   the result into a compact dict.
#
# HOW IT WORKS (the flow):
#   1. The assistant decides it needs to read or change a trip
#   2. It calls a tool by name via MCP (e.g., "add_expense")
#   3. FastMCP routes the call to the decorated function below
#   4. The function calls TripBook, which saves the change to the JSON store
#   5. The assistant receives a small dict describing the new state
#
# TOOL NAMING CONVENTIONS:
#   - list_* / get_*   → read-only, safe to retry
#   - add_* / create_* → append a new record (NOT idempotent: retrying adds twice)
#   - edit_* / update_* / toggle_* / reorder_* / delete_* → change one record by id
#
# ERRORS:
#   Rejected input (ValidationError) and unknown trip ids come back as
#   {"error": ..., "hint": ...} dicts.  The store is left untouched in both
#   cases, so the assistant can fix the arguments and call again.
#
# RUNNING THIS SERVER:
#     a) Standalone:  python -m tools.mcp_server
#     b) Spawned by the assistant (agent/trip_agent.py) over stdio
# =============================================================================

import json
import logging
import sys

from dotenv import load_dotenv
from fastmcp import FastMCP

from core.book import TripBook
from core.config import get_settings
from core.currency import format_amount
from core.ledger import ALL_MEMBERS, split_inputs
from core.models import Trip, ValidationError
from core.store import JsonStore
from core.user_profile import list_avatars

load_dotenv()

# =============================================================================
# Logging Setup
# =============================================================================
# STDOUT carries the MCP protocol, so every log line goes to STDERR.
#
#   CYAN   → incoming tool call with its parameters
#   YELLOW → intermediate status
#   GREEN  → the response dict
# =============================================================================
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)


def _log_request(tool_name: str, **params) -> None:
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: dict) -> dict:
    """Log the tool response as compact JSON in GREEN, then return it."""
    logging.info(
        f"{_GREEN}  ← {tool_name} response: "
        f"{json.dumps(result, ensure_ascii=False, separators=(',', ':'))}{_RESET}"
    )
    return result


def _error(tool_name: str, message: str, hint: str) -> dict:
    _log_status(message)
    return _log_response(tool_name, {"error": message, "hint": hint})


def _unknown_trip(tool_name: str, trip_id: str) -> dict:
    return _error(
        tool_name,
        f"Trip '{trip_id}' not found.",
        "Call list_trips to see the available trip ids.",
    )


# =============================================================================
# The TripBook behind every tool
# =============================================================================
# Opened lazily so importing this module doesn't touch the data directory.
_book: TripBook | None = None


def _get_book() -> TripBook:
    global _book
    if _book is None:
        settings = get_settings()
        _book = TripBook.open(JsonStore(settings.data_dir))
    return _book


# =============================================================================
# Response shaping
# =============================================================================
# Full trips can hold hundreds of activities and expenses.  Tools return a
# summary and let the assistant ask for one day or the ledger when it needs them.
def _trip_summary(trip: Trip) -> dict:
    return {
        "id": trip.id,
        "name": trip.name,
        "location": trip.location,
        "start_date": trip.start_date,
        "end_date": trip.end_date,
        "icon": trip.icon.value,
        "members": [m.to_dict() for m in trip.members],
        "expense_count": len(trip.expenses),
        "todos": [t.to_dict() for t in trip.todos],
    }


def _member_names(trip: Trip) -> dict[str, str]:
    return {m.id: m.name for m in trip.members}


mcp = FastMCP("trip-ledger")


# =============================================================================
# TRIPS & PROFILE
# =============================================================================
@mcp.tool()
def list_trips() -> dict:
    """List every trip with its id, dates, members and todo list.

    WHEN TO CALL THIS: First, whenever you need a trip_id.  Every other trip
    tool takes the id returned here.
    """
    _log_request("list_trips")
    book = _get_book()
    return _log_response("list_trips", {
        "profile": book.profile.to_dict(),
        "trips": [_trip_summary(t) for t in book.trips],
    })


@mcp.tool()
def create_trip(name: str, location: str, start_date: str, end_date: str, icon: str = "Plane") -> dict:
    """Create a new trip.  The user is added automatically as member "me".

    Args:
        name: Trip title (e.g., "大阪跨年之旅").
        location: Destination used for weather lookups (e.g., "大阪").
        start_date: First day, "YYYY-MM-DD".
        end_date: Last day (inclusive), "YYYY-MM-DD".
        icon: Icon name such as "Plane", "Train" or "Mountain".
    """
    _log_request("create_trip", name=name, location=location,
                 start_date=start_date, end_date=end_date, icon=icon)
    try:
        trip = _get_book().create_trip(name, location, start_date, end_date, icon)
    except ValidationError as e:
        return _error("create_trip", str(e), "Provide a non-empty trip name.")
    return _log_response("create_trip", _trip_summary(trip))


@mcp.tool()
def update_trip(
    trip_id: str,
    name: str | None = None,
    location: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    icon: str | None = None,
) -> dict:
    """Change a trip's name, location, dates or icon.  Omitted fields stay as they are."""
    changes = {
        key: value
        for key, value in (
            ("name", name), ("location", location),
            ("start_date", start_date), ("end_date", end_date), ("icon", icon),
        )
        if value is not None
    }
    _log_request("update_trip", trip_id=trip_id, **changes)
    try:
        trip = _get_book().update_trip(trip_id, **changes)
    except ValidationError as e:
        return _error("update_trip", str(e), "Trip names cannot be blank.")
    if trip is None:
        return _unknown_trip("update_trip", trip_id)
    return _log_response("update_trip", _trip_summary(trip))


@mcp.tool()
def delete_trip(trip_id: str) -> dict:
    """Delete a trip with ALL of its itinerary, expenses, todos and weather.

    This cannot be undone.  Confirm with the user before calling.
    """
    _log_request("delete_trip", trip_id=trip_id)
    if not _get_book().delete_trip(trip_id):
        return _unknown_trip("delete_trip", trip_id)
    return _log_response("delete_trip", {"deleted": trip_id})


@mcp.tool()
def add_member(trip_id: str, name: str, avatar: str = "🐱") -> dict:
    """Add a travel companion to a trip.

    Args:
        trip_id: The trip to join.
        name: Display name.
        avatar: One emoji used as the member's avatar.
    """
    _log_request("add_member", trip_id=trip_id, name=name, avatar=avatar)
    try:
        trip = _get_book().add_member(trip_id, name, avatar)
    except ValidationError as e:
        return _error("add_member", str(e), "Member names cannot be blank.")
    if trip is None:
        return _unknown_trip("add_member", trip_id)
    return _log_response("add_member", {"trip_id": trip.id, "members": [m.to_dict() for m in trip.members]})


@mcp.tool()
def update_profile(name: str, avatar: str) -> dict:
    """Change the user's name and avatar.  Updates member "me" in every trip."""
    _log_request("update_profile", name=name, avatar=avatar)
    try:
        profile = _get_book().update_profile(name, avatar)
    except ValidationError as e:
        return _error("update_profile", str(e), f"Pick an avatar from: {' '.join(list_avatars())}")
    return _log_response("update_profile", profile.to_dict())


# =============================================================================
# ITINERARY
# =============================================================================
@mcp.tool()
async def get_day(trip_id: str, date: str) -> dict:
    """Get one day of a trip: its activities in order and the weather forecast.

    The forecast is looked up once per date and then remembered, so calling
    this again for the same date is cheap.

    Args:
        trip_id: The trip.
        date: The day, "YYYY-MM-DD".  Use list_trips to see the trip's range.
    """
    _log_request("get_day", trip_id=trip_id, date=date)
    book = _get_book()
    if book.get(trip_id) is None:
        return _unknown_trip("get_day", trip_id)
    weather = await book.ensure_weather(trip_id, date)
    activities = book.activities_on(trip_id, date)
    _log_status(f"{len(activities)} activities on {date}")
    return _log_response("get_day", {
        "date": date,
        "trip_dates": book.dates(trip_id),
        "weather": weather.to_dict() if weather else None,
        "activities": [a.to_dict() for a in activities],
    })


@mcp.tool()
def add_activity(
    trip_id: str,
    date: str,
    name: str,
    start_time: str,
    duration: str = "",
    note: str = "",
    icon: str = "MapPin",
    link: str | None = None,
) -> dict:
    """Add a stop to a day's itinerary.  The day stays sorted by start time.

    Args:
        trip_id: The trip.
        date: The day, "YYYY-MM-DD".
        name: What or where (e.g., "道頓堀").
        start_time: 24h "HH:MM" (e.g., "09:30").
        duration: Free text such as "1h 30m".
        note: Optional note.
        icon: Icon name such as "Utensils", "Train" or "Camera".
        link: Optional maps / website URL.
    """
    _log_request("add_activity", trip_id=trip_id, date=date, name=name, start_time=start_time)
    try:
        trip = _get_book().add_activity(
            trip_id, date, name=name, start_time=start_time,
            duration=duration, note=note, icon=icon, link=link,
        )
    except ValidationError as e:
        return _error("add_activity", str(e), "Use a non-empty name and a 24h HH:MM start time.")
    if trip is None:
        return _unknown_trip("add_activity", trip_id)
    return _log_response("add_activity", {
        "date": date,
        "activities": [a.to_dict() for a in trip.itinerary.get(date, ())],
    })


@mcp.tool()
def edit_activity(
    trip_id: str,
    date: str,
    activity_id: str,
    name: str,
    start_time: str,
    duration: str = "",
    note: str = "",
    icon: str = "MapPin",
    link: str | None = None,
) -> dict:
    """Replace the fields of one activity.  The day is re-sorted by start time."""
    _log_request("edit_activity", trip_id=trip_id, date=date, activity_id=activity_id,
                 name=name, start_time=start_time)
    try:
        trip = _get_book().edit_activity(
            trip_id, date, activity_id, name=name, start_time=start_time,
            duration=duration, note=note, icon=icon, link=link,
        )
    except ValidationError as e:
        return _error("edit_activity", str(e), "Use a non-empty name and a 24h HH:MM start time.")
    if trip is None:
        return _unknown_trip("edit_activity", trip_id)
    return _log_response("edit_activity", {
        "date": date,
        "activities": [a.to_dict() for a in trip.itinerary.get(date, ())],
    })


@mcp.tool()
def delete_activity(trip_id: str, date: str, activity_id: str) -> dict:
    """Remove one activity from a day."""
    _log_request("delete_activity", trip_id=trip_id, date=date, activity_id=activity_id)
    trip = _get_book().delete_activity(trip_id, date, activity_id)
    if trip is None:
        return _unknown_trip("delete_activity", trip_id)
    return _log_response("delete_activity", {
        "date": date,
        "activities": [a.to_dict() for a in trip.itinerary.get(date, ())],
    })


@mcp.tool()
def reorder_activities(trip_id: str, date: str, activity_ids: list[str]) -> dict:
    """Put a day's activities in exactly the given order (e.g., after drag and drop).

    Start times are NOT changed, so the list may end up out of time order.
    Ids that don't belong to the day are ignored.
    """
    _log_request("reorder_activities", trip_id=trip_id, date=date, activity_ids=activity_ids)
    trip = _get_book().reorder_activities(trip_id, date, activity_ids)
    if trip is None:
        return _unknown_trip("reorder_activities", trip_id)
    return _log_response("reorder_activities", {
        "date": date,
        "activities": [a.to_dict() for a in trip.itinerary.get(date, ())],
    })


# =============================================================================
# LEDGER
# =============================================================================
_SPLIT_HINT = (
    "Amounts must be positive numbers, payer and split members must belong to "
    "the trip, and hand-entered shares must not exceed the total."
)


@mcp.tool()
async def add_expense(
    trip_id: str,
    item: str,
    amount: float,
    currency: str,
    payer_id: str,
    member_ids: list[str],
    manual_splits: dict[str, float] | None = None,
) -> dict:
    """Record a shared expense.  The category is assigned automatically.

    Args:
        trip_id: The trip.
        item: What it was for (e.g., "拉麵", "Taxi to hotel").
        amount: Total paid, in `currency`.
        currency: One of TWD, JPY, USD, EUR, KRW.
        payer_id: Member id of whoever paid.
        member_ids: Member ids sharing the cost.
        manual_splits: Optional fixed shares {member_id: amount}.  Members
            not listed here split the remainder equally.

    Returns:
        The stored expense, including its split and category.
    """
    _log_request("add_expense", trip_id=trip_id, item=item, amount=amount, currency=currency,
                 payer_id=payer_id, member_ids=member_ids, manual_splits=manual_splits)
    book = _get_book()
    try:
        trip = await book.add_expense(trip_id, item, amount, currency, payer_id, member_ids, manual_splits)
    except ValidationError as e:
        return _error("add_expense", str(e), _SPLIT_HINT)
    if trip is None:
        return _unknown_trip("add_expense", trip_id)
    expense = trip.expenses[-1]
    _log_status(f"Categorized '{expense.item}' as {expense.category.value}")
    return _log_response("add_expense", expense.to_dict())


@mcp.tool()
def edit_expense(
    trip_id: str,
    expense_id: str,
    item: str,
    amount: float,
    currency: str,
    payer_id: str,
    member_ids: list[str],
    manual_splits: dict[str, float] | None = None,
) -> dict:
    """Replace an expense's item, amount, currency, payer and split.

    Its date and category are kept.  Use list_expenses first to see the
    current member_ids and manual_splits and pass them back unchanged
    where the user didn't ask for a change.
    """
    _log_request("edit_expense", trip_id=trip_id, expense_id=expense_id, item=item, amount=amount,
                 currency=currency, payer_id=payer_id, member_ids=member_ids, manual_splits=manual_splits)
    try:
        trip = _get_book().edit_expense(
            trip_id, expense_id, item, amount, currency, payer_id, member_ids, manual_splits
        )
    except ValidationError as e:
        return _error("edit_expense", str(e), _SPLIT_HINT)
    if trip is None:
        return _unknown_trip("edit_expense", trip_id)
    expense = trip.find_expense(expense_id)
    if expense is None:
        return _error("edit_expense", f"Expense '{expense_id}' not found.",
                      "Call list_expenses to see the expense ids.")
    return _log_response("edit_expense", expense.to_dict())


@mcp.tool()
def delete_expense(trip_id: str, expense_id: str) -> dict:
    """Remove an expense from the ledger."""
    _log_request("delete_expense", trip_id=trip_id, expense_id=expense_id)
    trip = _get_book().delete_expense(trip_id, expense_id)
    if trip is None:
        return _unknown_trip("delete_expense", trip_id)
    return _log_response("delete_expense", {"deleted": expense_id, "expense_count": len(trip.expenses)})


@mcp.tool()
def list_expenses(trip_id: str) -> dict:
    """List a trip's expenses grouped by day, newest day first.

    Each expense includes `member_ids` and `manual_splits` in the form
    edit_expense expects.
    """
    _log_request("list_expenses", trip_id=trip_id)
    book = _get_book()
    trip = book.get(trip_id)
    if trip is None:
        return _unknown_trip("list_expenses", trip_id)
    names = _member_names(trip)
    days = []
    for day, expenses in book.expense_groups(trip_id):
        entries = []
        for expense in expenses:
            selection, manual = split_inputs(expense)
            entry = expense.to_dict()
            entry["payerName"] = names.get(expense.payer_id, expense.payer_id)
            entry["member_ids"] = selection
            entry["manual_splits"] = manual
            entries.append(entry)
        days.append({"date": day, "expenses": entries})
    _log_status(f"{len(trip.expenses)} expenses over {len(days)} days")
    return _log_response("list_expenses", {"trip_id": trip_id, "days": days})


@mcp.tool()
def get_expense_stats(trip_id: str, member_id: str = ALL_MEMBERS, currency: str = "TWD") -> dict:
    """Spending per category, either for the whole group or one member's share.

    Args:
        trip_id: The trip.
        member_id: "all" for the group total, or a member id for what that
            member is responsible for.
        currency: Currency to report in (TWD, JPY, USD, EUR, KRW).
    """
    _log_request("get_expense_stats", trip_id=trip_id, member_id=member_id, currency=currency)
    book = _get_book()
    if book.get(trip_id) is None:
        return _unknown_trip("get_expense_stats", trip_id)
    try:
        stats = book.expense_stats(trip_id, member_id, currency)
    except ValueError as e:
        return _error("get_expense_stats", str(e), "Use one of TWD, JPY, USD, EUR, KRW.")
    by_category = {category.value: format_amount(value) for category, value in stats.items()}
    return _log_response("get_expense_stats", {
        "member": member_id,
        "currency": currency.upper(),
        "by_category": by_category,
        "total": format_amount(sum(stats.values())),
    })


@mcp.tool()
def settle_up(trip_id: str) -> dict:
    """Who pays whom, in TWD, to settle all debts with few transfers.

    Balances within 1 TWD are treated as settled.  Members are identified by
    id; two members may share a display name.

    Returns:
        balances: [{"member_id", "name", "amount"}] in roster order.  Positive
            means the member is owed money.
        transfers: [{"from_id", "from_name", "to_id", "to_name", "amount"}].
    """
    _log_request("settle_up", trip_id=trip_id)
    book = _get_book()
    trip = book.get(trip_id)
    if trip is None:
        return _unknown_trip("settle_up", trip_id)
    names = _member_names(trip)
    transfers = book.settlement(trip_id)
    _log_status(f"{len(transfers)} transfers needed")
    return _log_response("settle_up", {
        "currency": "TWD",
        "balances": [
            {"member_id": member_id, "name": names.get(member_id, member_id), "amount": format_amount(value)}
            for member_id, value in book.net_positions(trip_id).items()
        ],
        "transfers": [
            {
                "from_id": t.from_id,
                "from_name": names.get(t.from_id, t.from_id),
                "to_id": t.to_id,
                "to_name": names.get(t.to_id, t.to_id),
                "amount": format_amount(t.amount),
            }
            for t in transfers
        ],
    })


# =============================================================================
# TODOS
# =============================================================================
@mcp.tool()
def add_todo(trip_id: str, text: str) -> dict:
    """Add an item to the trip's packing / todo list."""
    _log_request("add_todo", trip_id=trip_id, text=text)
    try:
        trip = _get_book().add_todo(trip_id, text)
    except ValidationError as e:
        return _error("add_todo", str(e), "Todo text cannot be blank.")
    if trip is None:
        return _unknown_trip("add_todo", trip_id)
    return _log_response("add_todo", {"todos": [t.to_dict() for t in trip.todos]})


@mcp.tool()
def toggle_todo(trip_id: str, todo_id: str) -> dict:
    """Flip a todo between done and not done."""
    _log_request("toggle_todo", trip_id=trip_id, todo_id=todo_id)
    trip = _get_book().toggle_todo(trip_id, todo_id)
    if trip is None:
        return _unknown_trip("toggle_todo", trip_id)
    return _log_response("toggle_todo", {"todos": [t.to_dict() for t in trip.todos]})


@mcp.tool()
def delete_todo(trip_id: str, todo_id: str) -> dict:
    """Remove a todo."""
    _log_request("delete_todo", trip_id=trip_id, todo_id=todo_id)
    trip = _get_book().delete_todo(trip_id, todo_id)
    if trip is None:
        return _unknown_trip("delete_todo", trip_id)
    return _log_response("delete_todo", {"todos": [t.to_dict() for t in trip.todos]})


# =============================================================================
# Server entry point
# =============================================================================
if __name__ == "__main__":
    mcp.run()
