from __future__ import annotations

import itertools
from typing import Any, Iterable, Mapping, Optional

from receiptsplit.models import AllocationResult, Item
from receiptsplit.schemas import DEFAULT_CURRENCY, MAX_PCT, ExtractedReceipt
from receiptsplit.services.assignments import Assignments, UnknownItemError
from receiptsplit.services.normalize import normalize_item
from receiptsplit.services.split import allocate

DEFAULT_TAX_PCT = 0.13
DEFAULT_TIP_PCT = 0.18


class ProtectedParticipantError(PermissionError):
    pass


class UnknownParticipantError(KeyError):
    pass


class PercentageOutOfRangeError(ValueError):
    pass


def check_pct(value: float) -> float:
    if not 0 <= value <= MAX_PCT:
        raise PercentageOutOfRangeError(f"percentage must be between 0 and {MAX_PCT:g}, got {value:g}")
    return value


class Bill:
    """One user's receipt being split: items, people and who had what."""

    def __init__(
        self,
        primary: Optional[str] = None,
        *,
        tax_pct: float = DEFAULT_TAX_PCT,
        tip_pct: float = DEFAULT_TIP_PCT,
        currency: str = DEFAULT_CURRENCY,
    ) -> None:
        self.items: list[Item] = []
        self.participants: list[str] = []
        self.assignments = Assignments()
        self.primary: Optional[str] = None
        self.tax_pct = check_pct(tax_pct)
        self.tip_pct = check_pct(tip_pct)
        self.default_tax_pct = self.tax_pct
        self.default_tip_pct = self.tip_pct
        self.currency = currency
        self.merchant: Optional[str] = None
        self.date: Optional[str] = None
        self.image_key: Optional[str] = None
        self._ids = itertools.count(1)
        self._people_ids = itertools.count(1)
        self._tokens: dict[str, str] = {}

        if primary and self.add_participant(primary):
            self.primary = primary.strip()

    # items

    def load_receipt(self, receipt: ExtractedReceipt, image_key: Optional[str] = None) -> None:
        self.clear_items()
        for item in receipt.items:
            self.add_item(item.model_dump())
        self.tax_pct = self.default_tax_pct if receipt.tax_pct is None else check_pct(receipt.tax_pct)
        self.tip_pct = self.default_tip_pct if receipt.tip_pct is None else check_pct(receipt.tip_pct)
        self.currency = receipt.currency
        self.merchant = receipt.merchant
        self.date = receipt.date
        self.image_key = image_key

    def add_items(self, records: Iterable[Mapping[str, Any]]) -> list[Item]:
        return [self.add_item(record) for record in records]

    def add_item(self, record: Mapping[str, Any] | None = None) -> Item:
        data = dict(record or {})
        # ids are allocated here so they stay unique across deletes
        data.pop("id", None)
        item = normalize_item(data, len(self.items) + 1, item_id=str(next(self._ids)))
        self.items.append(item)
        self.assignments.register(item.id)
        return item

    def edit_item(self, item_id: str, **changes: Any) -> Item:
        index = self._index(item_id)
        current = self.items[index]
        record: dict[str, Any] = {
            "id": current.id,
            "name": current.name,
            "quantity": current.quantity,
            "unit_price": current.unit_price,
        }
        for key, value in changes.items():
            if value is not None:
                record[key] = value
        updated = normalize_item(record, index + 1)
        current.name = updated.name
        current.quantity = updated.quantity
        current.unit_price = updated.unit_price
        return current

    def remove_item(self, item_id: str) -> Item:
        index = self._index(item_id)
        self.assignments.unassign_all(item_id)
        self.assignments.discard(item_id)
        return self.items.pop(index)

    def clear_items(self) -> None:
        for item in self.items:
            self.assignments.discard(item.id)
        self.items = []

    def item_at(self, position: int) -> Item:
        """Item by its 1-based position in the list shown to the user."""
        if not 1 <= position <= len(self.items):
            raise UnknownItemError(str(position))
        return self.items[position - 1]

    def get_item(self, item_id: str) -> Item:
        return self.items[self._index(item_id)]

    # participants

    def add_participant(self, name: str) -> bool:
        clean = name.strip()
        if not clean or clean in self.participants:
            return False
        self.participants.append(clean)
        self._tokens[clean] = str(next(self._people_ids))
        return True

    def remove_participant(self, name: str) -> None:
        clean = name.strip()
        if clean not in self.participants:
            raise UnknownParticipantError(clean)
        if clean == self.primary:
            raise ProtectedParticipantError(f"{clean} started this bill and cannot be removed")
        self.participants.remove(clean)
        del self._tokens[clean]
        self.assignments.drop_participant(clean)

    def participant_token(self, name: str) -> str:
        """Short id for ``name`` that is never reused, even after removal."""
        try:
            return self._tokens[name]
        except KeyError:
            raise UnknownParticipantError(name) from None

    def participant_by_token(self, token: str) -> Optional[str]:
        for name, known in self._tokens.items():
            if known == token:
                return name
        return None

    def toggle(self, item_id: str, participant: str) -> bool:
        if participant not in self.participants:
            raise UnknownParticipantError(participant)
        return self.assignments.toggle(item_id, participant)

    # percentages

    def set_tax_pct(self, value: float) -> None:
        self.tax_pct = check_pct(value)

    def set_tip_pct(self, value: float) -> None:
        self.tip_pct = check_pct(value)

    def allocate(self) -> AllocationResult:
        return allocate(
            self.items,
            self.participants,
            self.assignments.as_mapping(),
            self.tax_pct,
            self.tip_pct,
        )

    def _index(self, item_id: str) -> int:
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return index
        raise UnknownItemError(item_id)
