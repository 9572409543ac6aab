import math

import pytest

from receiptsplit.models import Item
from receiptsplit.services.normalize import normalize_item, normalize_items


def test_defaults_for_bad_values():
    item = normalize_item({"name": "", "qty": -1, "price": -5}, 3)
    assert item.name == "Item 3"
    assert item.quantity == 1
    assert item.unit_price == 0


def test_valid_item_is_unchanged():
    item = Item(id="7", name="Burger", quantity=2, unit_price=12.99)
    assert normalize_item(item, 1) == item
    assert normalize_item(normalize_item(item, 5), 9) == item


def test_alternate_keys():
    item = normalize_item({"name": "Fries", "quantity": 2, "unitPrice": 4.5}, 1)
    assert (item.quantity, item.unit_price) == (2, 4.5)

    item = normalize_item({"name": "Soda", "quantity": 3, "unit_price": 1.25}, 1)
    assert (item.quantity, item.unit_price) == (3, 1.25)


@pytest.mark.parametrize("qty", [0, -2, 1.5, "2", None, True, math.inf, math.nan, 10**400])
def test_bad_quantity_defaults_to_one(qty):
    assert normalize_item({"name": "X", "qty": qty}, 1).quantity == 1


def test_integral_float_quantity_is_accepted():
    item = normalize_item({"name": "X", "qty": 3.0}, 1)
    assert item.quantity == 3
    assert isinstance(item.quantity, int)


@pytest.mark.parametrize("price", [-0.01, "12.99", None, False, math.inf, math.nan, [1], 10**400, -(10**400)])
def test_bad_price_defaults_to_zero(price):
    assert normalize_item({"name": "X", "price": price}, 1).unit_price == 0


def test_zero_price_is_kept():
    assert normalize_item({"name": "Water", "price": 0}, 1).unit_price == 0


@pytest.mark.parametrize("name", [None, 42, "   ", ["Burger"]])
def test_bad_name_gets_placeholder(name):
    assert normalize_item({"name": name}, 4).name == "Item 4"


def test_non_mapping_record():
    item = normalize_item("garbage", 2)
    assert item == Item(id="2", name="Item 2", quantity=1, unit_price=0.0)


def test_id_resolution():
    assert normalize_item({"id": "abc"}, 1, item_id="zzz").id == "abc"
    assert normalize_item({"id": ""}, 1, item_id="zzz").id == "zzz"
    assert normalize_item({}, 6).id == "6"


def test_normalize_items_positions():
    items = normalize_items([{"name": "Burger", "qty": 1, "price": 12.99}, {}, None])
    assert [item.name for item in items] == ["Burger", "Item 2", "Item 3"]
    assert [item.id for item in items] == ["1", "2", "3"]


def test_empty_input():
    assert normalize_items([]) == []
