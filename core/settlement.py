# =============================================================================
# core/settlement.py  —  Settlement Solver ("who pays whom")
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   1. Reduces a trip's ledger to one NET POSITION per member, in the base
#      currency:  net = (paid by member) − (shares owed by member).
#      Positive → the member is owed money.  Negative → the member owes.
#   2. Turns those positions into a short list of transfers that brings
#      everyone back to (approximately) zero.
#
# THE ALGORITHM (greedy matching):
#   - debtors   = members with net < −ε, most negative first
#   - creditors = members with net > +ε, most positive first
#   - repeatedly move min(|debtor|, creditor) from the current debtor to the
#     current creditor; step past whoever is now within ε of zero
#   - stop when either list runs out
#
#   Both sorts are stable, so equal positions keep their input order and the
#   output is deterministic for a given ordered input.  The result has at
#   most (debtors + creditors − 1) transfers.  This is a heuristic: it is not
#   guaranteed to be the global minimum number of transfers.
#
#   ε is one unit of base currency.  It absorbs the float drift that equal
#   splits (e.g. 1000 / 3) leave behind.
# =============================================================================

from typing import Iterable, Mapping

from core.currency import to_base
from core.models import Transfer, Trip


SETTLEMENT_EPSILON = 1.0


def net_positions(trip: Trip) -> dict[str, float]:
    """Each member's paid-minus-owed total in the base currency.

    Ordered by the trip's roster.  Ids that appear only in expenses (not in
    the roster) are appended after the roster in first-seen order, so the
    positions always sum to zero.
    """
    net: dict[str, float] = {member.id: 0.0 for member in trip.members}
    for expense in trip.expenses:
        net[expense.payer_id] = net.get(expense.payer_id, 0.0) + to_base(expense.amount, expense.currency)
        for member_id, share in expense.split_details.items():
            net[member_id] = net.get(member_id, 0.0) - to_base(share, expense.currency)
    return net


def settle(net: Mapping[str, float], epsilon: float = SETTLEMENT_EPSILON) -> list[Transfer]:
    """Greedy debtor/creditor matching over ordered net positions.

    Args:
        net: Ordered mapping member id → net position (base currency).
        epsilon: Positions within ±epsilon of zero count as settled.

    Returns:
        Transfers in the order they were generated.
    """
    debtors = sorted(
        ([member_id, value] for member_id, value in net.items() if value < -epsilon),
        key=lambda entry: entry[1],
    )
    creditors = sorted(
        ([member_id, value] for member_id, value in net.items() if value > epsilon),
        key=lambda entry: entry[1],
        reverse=True,
    )

    transfers: list[Transfer] = []
    i = j = 0
    while i < len(debtors) and j < len(creditors):
        debtor, creditor = debtors[i], creditors[j]
        amount = min(abs(debtor[1]), creditor[1])
        transfers.append(Transfer(from_id=debtor[0], to_id=creditor[0], amount=amount))
        debtor[1] += amount
        creditor[1] -= amount
        if abs(debtor[1]) < epsilon:
            i += 1
        if creditor[1] < epsilon:
            j += 1
    return transfers


def settle_trip(trip: Trip, epsilon: float = SETTLEMENT_EPSILON) -> list[Transfer]:
    return settle(net_positions(trip), epsilon)


def apply_transfers(net: Mapping[str, float], transfers: Iterable[Transfer]) -> dict[str, float]:
    """The positions left after every transfer is paid."""
    residual = dict(net)
    for transfer in transfers:
        residual[transfer.from_id] = residual.get(transfer.from_id, 0.0) + transfer.amount
        residual[transfer.to_id] = residual.get(transfer.to_id, 0.0) - transfer.amount
    return residual
