"""Tests for the allocation engine."""

import random
from decimal import Decimal
from fractions import Fraction

import pytest

from bill_splitter import compute_breakdown, format_breakdown
from data_models import Friend, Item, ReceiptTotals


@pytest.fixture
def friends():
    return [Friend("F1", "Ann"), Friend("F2", "Bob")]


@pytest.fixture
def items():
    return [Item("a", "Pasta", Decimal("10")), Item("b", "Steak", Decimal("20"))]


@pytest.fixture
def totals():
    return ReceiptTotals(subtotal=Decimal("30"), tax=Decimal("3"), tip=Decimal("0"),
                         total=Decimal("33"), currency="$")


def test_shared_and_single_items_with_proportional_tax(items, totals, friends):
    assignments = {"a": {"F1", "F2"}, "b": {"F1"}}

    breakdown = compute_breakdown(items, totals, friends, assignments)
    f1 = breakdown.share_for("F1")
    f2 = breakdown.share_for("F2")

    assert f1.item_share == 25
    assert f2.item_share == 5
    assert breakdown.distributed_subtotal == 30
    assert f1.fee_share == Fraction(5, 2)
    assert f2.fee_share == Fraction(1, 2)
    assert f1.rounded_total == Decimal("27.50")
    assert f2.rounded_total == Decimal("5.50")
    assert breakdown.unassigned_total == 0


def test_nothing_assigned_leaves_everything_unassigned(items, totals, friends):
    breakdown = compute_breakdown(items, totals, friends, {"a": set(), "b": set()})

    assert breakdown.unassigned_total == 30
    assert breakdown.distributed_subtotal == 0
    for share in breakdown.per_friend:
        assert share.item_share == 0
        assert share.fee_share == 0
        assert share.total == 0


def test_item_split_three_ways_sums_back_exactly(totals):
    friends = [Friend("x", "X"), Friend("y", "Y"), Friend("z", "Z")]
    items = [Item("a", "Pizza", Decimal("10"))]

    breakdown = compute_breakdown(items, totals, friends, {"a": {"x", "y", "z"}})

    assert sum(s.item_share for s in breakdown.per_friend) == Fraction(10)
    rounded = sum(s.rounded_item_share for s in breakdown.per_friend)
    assert abs(rounded - Decimal("10")) <= Decimal("0.005") * 3


def test_unassigned_item_carries_no_fees(items, friends):
    totals = ReceiptTotals(tax=Decimal("3"), tip=Decimal("6"))

    breakdown = compute_breakdown(items, totals, friends, {"a": {"F2"}, "b": set()})

    assert breakdown.unassigned_total == 20
    assert breakdown.share_for("F2").fee_share == 9
    assert breakdown.share_for("F1").fee_share == 0


def test_fee_pool_uses_assigned_amounts_not_stated_subtotal(items, friends):
    # OCR read a subtotal that doesn't match the items
    totals = ReceiptTotals(subtotal=Decimal("100"), tax=Decimal("4"), tip=Decimal("2"))

    breakdown = compute_breakdown(items, totals, friends, {"a": {"F1"}, "b": {"F2"}})

    assert breakdown.share_for("F1").fee_share == 2
    assert breakdown.share_for("F2").fee_share == 4
    assert sum(s.fee_share for s in breakdown.per_friend) == 6


def test_assignees_outside_roster_are_ignored(items, totals, friends):
    breakdown = compute_breakdown(items, totals, friends, {"a": {"ghost"}, "b": {"F1", "ghost"}})

    assert breakdown.unassigned_total == 10
    assert breakdown.share_for("F1").item_share == 20
    assert breakdown.share_for("ghost") is None


def test_per_friend_follows_roster_order(items, totals):
    friends = [Friend("z", "Zed"), Friend("a", "Amy"), Friend("m", "Max")]

    breakdown = compute_breakdown(items, totals, friends, {})

    assert [s.friend_id for s in breakdown.per_friend] == ["z", "a", "m"]


def test_conservation_over_random_assignments():
    rng = random.Random(7)
    friends = [Friend(str(i), f"P{i}") for i in range(5)]
    items = [Item(f"i{n}", f"Item {n}", Decimal(rng.randint(1, 5000)) / 100) for n in range(25)]
    totals = ReceiptTotals(tax=Decimal("7.77"), tip=Decimal("12.10"))

    for _ in range(20):
        assignments = {
            item.id: {f.id for f in friends if rng.random() < 0.4}
            for item in items
        }
        breakdown = compute_breakdown(items, totals, friends, assignments)

        assigned = sum(s.item_share for s in breakdown.per_friend)
        assert assigned + breakdown.unassigned_total == sum(Fraction(i.price) for i in items)
        fees = sum(s.fee_share for s in breakdown.per_friend)
        if breakdown.distributed_subtotal > 0:
            assert fees == Fraction(totals.fee_pool)
        else:
            assert fees == 0


def test_zero_priced_items_do_not_divide_by_zero(friends):
    items = [Item("free", "Water", Decimal("0"))]
    totals = ReceiptTotals(tax=Decimal("1"))

    breakdown = compute_breakdown(items, totals, friends, {"free": {"F1"}})

    assert breakdown.distributed_subtotal == 0
    assert breakdown.share_for("F1").total == 0


def test_as_dict_rounds_for_export(items, totals, friends):
    breakdown = compute_breakdown(items, totals, friends, {"a": {"F1", "F2"}, "b": {"F1"}})

    exported = breakdown.as_dict()

    assert exported["per_friend"][0] == {
        "friend_id": "F1", "item_share": 25.0, "fee_share": 2.5, "total": 27.5,
    }
    assert exported["unassigned_total"] == 0.0
    assert exported["fee_pool"] == 3.0


def test_format_breakdown_warns_about_unassigned(items, totals, friends):
    breakdown = compute_breakdown(items, totals, friends, {"a": {"F1"}})

    lines = format_breakdown(breakdown, friends, "$")

    assert lines[0].startswith("Ann")
    assert "$13.00" in lines[0]
    assert "$20.00 of items are still unassigned" in lines[-1]
