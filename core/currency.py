# =============================================================================
# core/currency.py  —  Currency Conversion Table
# =============================================================================
#
# A fixed table of "how many TWD is one unit of X worth".  TWD is the base
# currency: every net position, settlement transfer and internal statistic is
# computed in TWD, then converted for display only.
#
# There is no network lookup.  The table is a constant.
# =============================================================================

from core.models import Currency


BASE_CURRENCY = Currency.TWD

EXCHANGE_RATES: dict[Currency, float] = {
    Currency.TWD: 1.0,
    Currency.JPY: 0.21,
    Currency.USD: 31.5,
    Currency.EUR: 34.2,
    Currency.KRW: 0.024,
}


def rate(currency: Currency | str) -> float:
    """Value of one unit of `currency` in the base currency.

    Raises:
        ValueError: if the code is not in the table.
    """
    return EXCHANGE_RATES[Currency.parse(currency)]


def to_base(amount: float, currency: Currency | str) -> float:
    return amount * rate(currency)


def from_base(amount_in_base: float, currency: Currency | str) -> float:
    return amount_in_base / rate(currency)


def convert(amount: float, from_currency: Currency | str, to_currency: Currency | str) -> float:
    """Convert between any two table currencies via the base currency."""
    if Currency.parse(from_currency) == Currency.parse(to_currency):
        return amount
    return from_base(to_base(amount, from_currency), to_currency)


def format_amount(value: float) -> int:
    """Round to the nearest whole unit.  Display only, never fed back in."""
    return int(round(value))
