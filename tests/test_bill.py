import pytest

from receiptsplit.schemas import ExtractedReceipt
from receiptsplit.services.assignments import UnknownItemError
from receiptsplit.services.bill import (
    Bill,
    PercentageOutOfRangeError,
    ProtectedParticipantError,
    UnknownParticipantError,
)
from receiptsplit.services.split import conserves


def make_bill() -> Bill:
    bill = Bill("You")
    bill.add_participant("Alice")
    bill.add_item({"name": "Burger", "qty": 1, "price": 12.99})
    bill.add_item({"name": "Fries", "qty": 2, "price": 4.50})
    return bill


def test_defaults():
    bill = Bill()
    assert bill.participants == []
    assert bill.primary is None
    assert (bill.tax_pct, bill.tip_pct, bill.currency) == (0.13, 0.18, "USD")


def test_add_participant_ignores_duplicates_and_blanks():
    bill = Bill("You")
    assert bill.add_participant("Alice") is True
    assert bill.add_participant(" Alice ") is False
    assert bill.add_participant("   ") is False
    assert bill.participants == ["You", "Alice"]


def test_primary_cannot_be_removed():
    bill = make_bill()
    with pytest.raises(ProtectedParticipantError):
        bill.remove_participant("You")
    with pytest.raises(UnknownParticipantError):
        bill.remove_participant("Nobody")


def test_removing_participant_clears_their_assignments():
    bill = make_bill()
    burger = bill.items[0]
    bill.toggle(burger.id, "Alice")
    bill.remove_participant("Alice")
    assert bill.assignments.participants_for(burger.id) == frozenset()
    assert bill.participants == ["You"]


def test_add_item_normalizes_and_ids_stay_unique():
    bill = make_bill()
    item = bill.add_item({"name": "", "qty": 0, "price": "cheap", "id": "1"})
    assert (item.name, item.quantity, item.unit_price) == ("Item 3", 1, 0.0)
    assert len({i.id for i in bill.items}) == 3

    bill.remove_item(bill.items[0].id)
    again = bill.add_item({"name": "Soda"})
    assert again.id not in {i.id for i in bill.items[:-1]}


def test_edit_item_keeps_invariants():
    bill = make_bill()
    fries = bill.items[1]
    bill.edit_item(fries.id, quantity=3)
    assert fries.quantity == 3
    bill.edit_item(fries.id, name="", quantity=0, unit_price=-1)
    assert (fries.name, fries.quantity, fries.unit_price) == ("Item 2", 1, 0.0)
    assert fries.id == bill.items[1].id


def test_remove_item_drops_assignments():
    bill = make_bill()
    burger = bill.items[0]
    bill.toggle(burger.id, "Alice")
    bill.remove_item(burger.id)
    assert burger.id not in bill.assignments
    with pytest.raises(UnknownItemError):
        bill.remove_item(burger.id)


def test_toggle_requires_known_participant():
    bill = make_bill()
    with pytest.raises(UnknownParticipantError):
        bill.toggle(bill.items[0].id, "Mallory")


def test_item_at():
    bill = make_bill()
    assert bill.item_at(2).name == "Fries"
    with pytest.raises(UnknownItemError):
        bill.item_at(3)
    with pytest.raises(UnknownItemError):
        bill.item_at(0)


@pytest.mark.parametrize("value", [-0.01, 0.51, 1.3])
def test_percentages_are_range_checked(value):
    bill = Bill()
    with pytest.raises(PercentageOutOfRangeError):
        bill.set_tax_pct(value)
    with pytest.raises(ValueError):
        bill.set_tip_pct(value)


def test_load_receipt_replaces_items_and_uses_defaults():
    bill = make_bill()
    bill.set_tax_pct(0.05)
    receipt = ExtractedReceipt.model_validate(
        {
            "merchant": "Diner",
            "currency": "CAD",
            "items": [{"name": "Pancakes", "qty": 2, "price": 8.0}],
            "tipPct": 0.2,
        }
    )
    bill.load_receipt(receipt, image_key="receipts/1-a-r.jpg")

    assert [item.name for item in bill.items] == ["Pancakes"]
    assert bill.items[0].quantity == 2
    assert bill.tax_pct == 0.13
    assert bill.tip_pct == 0.2
    assert (bill.currency, bill.merchant, bill.image_key) == ("CAD", "Diner", "receipts/1-a-r.jpg")
    assert bill.participants == ["You", "Alice"]


def test_allocate_reflects_every_mutation():
    bill = make_bill()
    burger, fries = bill.items
    bill.toggle(burger.id, "Alice")

    first = bill.allocate()
    assert first.raw_per_participant["Alice"] == pytest.approx(12.99 + 4.50)
    assert first.raw_per_participant["You"] == pytest.approx(4.50)

    bill.add_participant("Bob")
    second = bill.allocate()
    assert second.raw_per_participant["Bob"] == pytest.approx(3.0)
    assert conserves(second)

    bill.set_tip_pct(0.0)
    bill.set_tax_pct(0.0)
    assert bill.allocate().grand_total == pytest.approx(21.99)


def test_participant_tokens_are_not_reused():
    bill = make_bill()
    alice = bill.participant_token("Alice")
    assert bill.participant_by_token(alice) == "Alice"

    bill.remove_participant("Alice")
    bill.add_participant("Alice")
    assert bill.participant_token("Alice") != alice
    assert bill.participant_by_token(alice) is None
    with pytest.raises(UnknownParticipantError):
        bill.participant_token("Nobody")
