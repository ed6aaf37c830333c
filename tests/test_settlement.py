import pytest

from core import ledger
from core.models import ME_ID, Transfer
from core.settlement import SETTLEMENT_EPSILON, apply_transfers, net_positions, settle, settle_trip


ALL = [ME_ID, "ken", "amy"]


def test_one_payer_three_way_split(trip):
    trip = ledger.add_expense(trip, "Dinner", 900, "TWD", ME_ID, ALL)

    assert net_positions(trip) == {ME_ID: 600, "ken": -300, "amy": -300}
    assert settle_trip(trip) == [
        Transfer(from_id="ken", to_id=ME_ID, amount=300),
        Transfer(from_id="amy", to_id=ME_ID, amount=300),
    ]


def test_no_expenses_means_no_transfers(trip):
    assert settle_trip(trip) == []
    assert list(net_positions(trip)) == [ME_ID, "ken", "amy"]


def test_positions_within_epsilon_are_settled():
    assert settle({"a": 0.6, "b": -0.6}) == []


def test_mixed_currencies_leave_no_residual(trip):
    trip = ledger.add_expense(trip, "Hotel", 1000, "TWD", ME_ID, ALL)
    trip = ledger.add_expense(trip, "Ramen", 3000, "JPY", "ken", [ME_ID, "ken"])
    trip = ledger.add_expense(trip, "Tickets", 50, "USD", "amy", ALL)

    net = net_positions(trip)
    assert sum(net.values()) == pytest.approx(0, abs=1e-9)

    transfers = settle(net)
    assert [(t.from_id, t.to_id) for t in transfers] == [("ken", "amy"), (ME_ID, "amy")]
    residual = apply_transfers(net, transfers)
    assert all(abs(value) < SETTLEMENT_EPSILON for value in residual.values())


def test_transfer_count_bound():
    net = {"a": 500, "b": 250, "c": -100, "d": -350, "e": -300}
    transfers = settle(net)
    assert len(transfers) <= 2 + 3 - 1
    assert all(abs(v) < SETTLEMENT_EPSILON for v in apply_transfers(net, transfers).values())


def test_equal_positions_keep_input_order():
    assert [t.from_id for t in settle({"a": -100, "b": -100, "c": 200})] == ["a", "b"]
    assert [t.from_id for t in settle({"b": -100, "a": -100, "c": 200})] == ["b", "a"]


def test_deterministic_for_same_input():
    net = {"a": 120.5, "b": -40.25, "c": -80.25, "d": 0.2}
    assert settle(net) == settle(dict(net))


def test_settle_does_not_modify_input():
    net = {"a": 100, "b": -100}
    settle(net)
    assert net == {"a": 100, "b": -100}
