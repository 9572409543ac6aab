from __future__ import annotations

import re
from typing import Any

from receiptsplit.schemas import MAX_PCT

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def parse_number(text: str) -> float | str:
    """Read a typed amount such as ``12.99``, ``$12,99`` or ``2``.

    Unreadable input is returned unchanged so the normalizer can fall back
    to its defaults.
    """
    cleaned = text.strip().replace("−", "-").replace(",", ".")
    cleaned = cleaned.replace("$", "").replace("€", "").replace("£", "").strip()
    if not _NUMBER.fullmatch(cleaned):
        return text
    value = float(cleaned)
    return int(value) if value.is_integer() and "." not in cleaned else value


def parse_item_fields(text: str) -> dict[str, Any]:
    """``name | qty | price`` into a raw item record; trailing parts are optional."""
    parts = [part.strip() for part in text.split("|")]
    record: dict[str, Any] = {}
    if parts and parts[0]:
        record["name"] = parts[0]
    if len(parts) > 1 and parts[1]:
        record["qty"] = parse_number(parts[1])
    if len(parts) > 2 and parts[2]:
        record["price"] = parse_number(parts[2])
    return record


def parse_percent(text: str) -> float:
    """``13``, ``13%`` or ``8.75 %`` into a fraction; values above 50% are rejected."""
    cleaned = text.strip().rstrip("%").strip().replace(",", ".")
    if not _NUMBER.fullmatch(cleaned):
        raise ValueError("Expected a percentage such as 13 or 8.75%")
    value = float(cleaned) / 100
    if not 0 <= value <= MAX_PCT:
        raise ValueError(f"Percentage must be between 0 and {MAX_PCT * 100:g}")
    return value


def parse_position(text: str) -> int:
    try:
        position = int(text.strip().lstrip("#"))
    except ValueError as exc:
        raise ValueError("Expected an item number") from exc
    if position < 1:
        raise ValueError("Item numbers start at 1")
    return position


def unreadable_numbers(record: dict[str, Any]) -> list[str]:
    """Numeric fields of a parsed item that were left as raw text."""
    return [key for key in ("qty", "price") if isinstance(record.get(key), str)]
