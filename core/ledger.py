# =============================================================================
# core/ledger.py  —  Expense Ledger
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Records a trip's expenses, decides who owes what share of each one, and
#   aggregates the ledger for display (grouped by day, totals by category).
#
# HOW A SPLIT IS COMPUTED:
#   The user picks the members who share the expense and may type a manual
#   amount for some of them.
#
#       manual members  → owe exactly what was typed
#       other members   → share (amount − sum of manual) equally
#
#   Example: 1000 split between X (manual 700), Y and Z → Y = Z = 150.
#
#   Shares are in the expense's OWN currency.  Conversion to the base
#   currency happens only when aggregating (stats, net positions).
#
# VALIDATION HAPPENS FIRST:
#   Every public mutation validates its whole input before building the new
#   trip.  A rejected call raises ValidationError and the ledger is untouched.
# =============================================================================

import logging
import math
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from core.currency import BASE_CURRENCY, from_base, to_base
from core.models import Category, Currency, Expense, Trip, ValidationError, new_id


logger = logging.getLogger(__name__)

# Tolerance (in the expense currency) when checking that manual splits add up.
SPLIT_TOLERANCE = 0.01

ALL_MEMBERS = "all"


# =============================================================================
# Input parsing
# =============================================================================
def parse_amount(value: Any) -> float:
    """Parse a user-entered amount.  Must be a finite number > 0."""
    if isinstance(value, bool):
        raise ValidationError("Amount must be a positive number.")
    try:
        amount = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise ValidationError(f"Amount must be a positive number, got {value!r}.")
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError(f"Amount must be a positive number, got {value!r}.")
    return amount


def _parse_manual_value(value: Any) -> float | None:
    """A manual split entry, or None when the field was left empty."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            value = float(value)
        except ValueError:
            return None
    number = float(value)
    if not math.isfinite(number):
        return None
    if number < 0:
        raise ValidationError(f"Manual split amounts cannot be negative, got {value!r}.")
    return number


def _unique(ids: Iterable[str]) -> list[str]:
    seen = set()
    result = []
    for member_id in ids:
        if member_id not in seen:
            seen.add(member_id)
            result.append(member_id)
    return result


# =============================================================================
# Split computation
# =============================================================================
def compute_split(
    amount: float,
    member_selection: Iterable[str],
    manual_splits: Mapping[str, Any] | None = None,
) -> tuple[dict[str, float], dict[str, float]]:
    """Work out each selected member's share of `amount`.

    Args:
        amount: The expense total in its own currency.
        member_selection: Members who share this expense.
        manual_splits: Optional member id → typed value.  Empty strings,
            None and non-numeric text count as "not entered".

    Returns:
        (split_details, manual) where `split_details` covers every selected
        member and `manual` is the subset that came from typed values.
        An empty selection gives two empty dicts.
    """
    manual_splits = manual_splits or {}
    split: dict[str, float] = {}
    manual: dict[str, float] = {}
    auto_members: list[str] = []
    manual_sum = 0.0

    for member_id in _unique(member_selection):
        value = _parse_manual_value(manual_splits.get(member_id))
        if value is None:
            auto_members.append(member_id)
        else:
            split[member_id] = value
            manual[member_id] = value
            manual_sum += value

    if auto_members:
        share = (amount - manual_sum) / len(auto_members)
        for member_id in auto_members:
            split[member_id] = share

    return split, manual


def _validated_split(
    trip: Trip,
    item: Any,
    amount: Any,
    currency: Any,
    payer_id: str,
    member_selection: Iterable[str],
    manual_splits: Mapping[str, Any] | None,
) -> tuple[str, float, Currency, dict[str, float], dict[str, float]]:
    """Validate every input of an add/edit and compute the split."""
    if not isinstance(item, str) or not item.strip():
        raise ValidationError("Expense item description is required.")
    parsed_amount = parse_amount(amount)
    try:
        parsed_currency = Currency.parse(currency)
    except ValueError:
        raise ValidationError(f"Unknown currency {currency!r}.")

    members = set(trip.member_ids())
    if payer_id not in members:
        raise ValidationError(f"Payer {payer_id!r} is not a member of this trip.")
    selection = _unique(member_selection)
    outsiders = [m for m in selection if m not in members]
    if outsiders:
        raise ValidationError(f"Not members of this trip: {', '.join(outsiders)}.")

    split, manual = compute_split(parsed_amount, selection, manual_splits)
    manual_sum = sum(manual.values())
    if round(manual_sum - parsed_amount, 9) > SPLIT_TOLERANCE:
        raise ValidationError(
            f"Manual splits ({manual_sum:g}) exceed the expense amount ({parsed_amount:g})."
        )
    if selection and len(manual) == len(selection) and round(abs(manual_sum - parsed_amount), 9) > SPLIT_TOLERANCE:
        raise ValidationError(
            f"Manual splits ({manual_sum:g}) must add up to the expense amount ({parsed_amount:g})."
        )
    return item.strip(), parsed_amount, parsed_currency, split, manual


def validate_expense(
    trip: Trip,
    item: Any,
    amount: Any,
    currency: Any,
    payer_id: str,
    member_selection: Iterable[str],
    manual_splits: Mapping[str, Any] | None = None,
) -> None:
    """Raise ValidationError if add_expense would reject these inputs."""
    _validated_split(trip, item, amount, currency, payer_id, member_selection, manual_splits)


# =============================================================================
# Mutations
# =============================================================================
def add_expense(
    trip: Trip,
    item: Any,
    amount: Any,
    currency: Any,
    payer_id: str,
    member_selection: Iterable[str],
    manual_splits: Mapping[str, Any] | None = None,
    *,
    category: Category | str = Category.OTHER,
    now: datetime | None = None,
) -> Trip:
    """Record a new expense.

    The category is whatever the caller obtained from the categorizer; it is
    stored as is and never recomputed.  A fresh id and a UTC creation
    timestamp are assigned here.
    """
    item, amount, currency, split, manual = _validated_split(
        trip, item, amount, currency, payer_id, member_selection, manual_splits
    )
    expense = Expense(
        id=new_id(),
        payer_id=payer_id,
        amount=amount,
        currency=currency,
        item=item,
        date=_timestamp(now),
        category=Category.parse(category),
        split_details=split,
        manual_splits=manual,
    )
    logger.debug("Expense %s added to trip %s (%s %s)", expense.id, trip.id, amount, currency.value)
    return replace(trip, expenses=trip.expenses + (expense,))


def edit_expense(
    trip: Trip,
    expense_id: str,
    item: Any,
    amount: Any,
    currency: Any,
    payer_id: str,
    member_selection: Iterable[str],
    manual_splits: Mapping[str, Any] | None = None,
) -> Trip:
    """Replace item, amount, currency, payer and split of an expense.

    Id, creation date and category are kept.  An unknown id is a no-op.
    """
    existing = trip.find_expense(expense_id)
    if existing is None:
        return trip
    item, amount, currency, split, manual = _validated_split(
        trip, item, amount, currency, payer_id, member_selection, manual_splits
    )
    updated = replace(
        existing,
        item=item,
        amount=amount,
        currency=currency,
        payer_id=payer_id,
        split_details=split,
        manual_splits=manual,
    )
    return replace(trip, expenses=tuple(updated if e.id == expense_id else e for e in trip.expenses))


def delete_expense(trip: Trip, expense_id: str) -> Trip:
    remaining = tuple(e for e in trip.expenses if e.id != expense_id)
    if len(remaining) == len(trip.expenses):
        return trip
    return replace(trip, expenses=remaining)


def split_inputs(expense: Expense) -> tuple[list[str], dict[str, float]]:
    """The (member selection, manual values) that reproduce an expense's split.

    Used to pre-fill an edit.  Expenses saved before manual entries were
    recorded report every share as manual, which freezes their split.
    """
    selection = list(expense.split_details)
    if expense.manual_splits is None:
        return selection, dict(expense.split_details)
    return selection, dict(expense.manual_splits)


# =============================================================================
# Aggregation (derived, never persisted)
# =============================================================================
def expense_day(expense: Expense) -> str:
    """Calendar day ("YYYY-MM-DD") of the expense's timestamp."""
    try:
        return datetime.fromisoformat(expense.date.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return expense.date[:10]


def grouped_by_date(trip: Trip) -> list[tuple[str, list[Expense]]]:
    """Expenses partitioned by day, newest day first.

    Within a day expenses keep the order they were recorded in.
    """
    groups: dict[str, list[Expense]] = {}
    for expense in trip.expenses:
        groups.setdefault(expense_day(expense), []).append(expense)
    return sorted(groups.items(), key=lambda entry: entry[0], reverse=True)


def stats_by_category(
    trip: Trip,
    member_filter: str = ALL_MEMBERS,
    display_currency: Currency | str = BASE_CURRENCY,
) -> dict[Category, float]:
    """Spending per category.

    Args:
        trip: The trip to aggregate.
        member_filter: "all" sums every expense's full amount; a member id
            sums only that member's share of each expense.
        display_currency: Currency the totals are expressed in.

    Returns:
        Every category (zero where nothing was spent), unrounded.
    """
    totals = {category: 0.0 for category in Category}
    for expense in trip.expenses:
        if member_filter == ALL_MEMBERS:
            amount = expense.amount
        else:
            amount = expense.split_details.get(member_filter, 0.0)
        totals[expense.category] += to_base(amount, expense.currency)
    return {category: from_base(value, display_currency) for category, value in totals.items()}


def total_in(trip: Trip, currency: Currency | str = BASE_CURRENCY) -> float:
    """Total of all expenses, expressed in `currency`."""
    return from_base(sum(to_base(e.amount, e.currency) for e in trip.expenses), currency)


def _timestamp(now: datetime | None) -> str:
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
