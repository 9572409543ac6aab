"""Coercion of untrusted item records into valid items.

Records come from the extraction model or from chat input, so every field
may be missing or of the wrong type. Normalization never fails: bad values
fall back to defaults.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping

from receiptsplit.models import Item

NAME_KEYS = ("name",)
QUANTITY_KEYS = ("qty", "quantity")
PRICE_KEYS = ("price", "unitPrice", "unit_price")


def _pick(record: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    return None


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid amount
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def normalize_name(value: Any, position: int) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return f"Item {position}"


def _as_float(value: Any) -> float | None:
    if not _is_number(value):
        return None
    try:
        number = float(value)
    except OverflowError:
        # ints beyond float range, e.g. a 400-digit price from the model
        return None
    return number if math.isfinite(number) else None


def normalize_quantity(value: Any) -> int:
    number = _as_float(value)
    if number is None or not number.is_integer() or number <= 0:
        return 1
    return int(value)


def normalize_price(value: Any) -> float:
    number = _as_float(value)
    if number is None or number < 0:
        return 0.0
    return number


def _as_record(record: Mapping[str, Any] | Item | Any) -> Mapping[str, Any]:
    if isinstance(record, Item):
        return {
            "id": record.id,
            "name": record.name,
            "quantity": record.quantity,
            "unit_price": record.unit_price,
        }
    if isinstance(record, Mapping):
        return record
    return {}


def normalize_item(
    record: Mapping[str, Any] | Item | Any,
    position: int,
    *,
    item_id: str | None = None,
) -> Item:
    """Build a valid :class:`Item` from ``record``.

    ``position`` is 1-based and only used for the placeholder name and as
    the id of last resort.
    """
    data = _as_record(record)

    raw_id = data.get("id")
    if isinstance(raw_id, str) and raw_id:
        resolved_id = raw_id
    elif item_id:
        resolved_id = item_id
    else:
        resolved_id = str(position)

    return Item(
        id=resolved_id,
        name=normalize_name(_pick(data, NAME_KEYS), position),
        quantity=normalize_quantity(_pick(data, QUANTITY_KEYS)),
        unit_price=normalize_price(_pick(data, PRICE_KEYS)),
    )


def normalize_items(records: Iterable[Mapping[str, Any] | Item | Any]) -> list[Item]:
    return [normalize_item(record, position) for position, record in enumerate(records, start=1)]
