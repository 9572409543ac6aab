from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class Item:
    id: str
    name: str
    quantity: int = 1
    unit_price: float = 0.0

    @property
    def cost(self) -> float:
        return self.quantity * self.unit_price


@dataclass(slots=True, frozen=True)
class AllocationResult:
    subtotal: float
    tax_amount: float
    tip_amount: float
    grand_total: float
    per_participant: dict[str, float]
    raw_per_participant: dict[str, float] = field(default_factory=dict)
    item_counts: dict[str, int] = field(default_factory=dict)
    unallocated_subtotal: float = 0.0

    @property
    def allocated_total(self) -> float:
        return sum(self.per_participant.values())

    @property
    def has_unallocated(self) -> bool:
        return self.unallocated_subtotal > 0

    @property
    def unallocated_total(self) -> float:
        """Item cost nobody shares, plus the tax and tip that rides on it."""
        if self.subtotal <= 0:
            return 0.0
        return self.unallocated_subtotal * self.grand_total / self.subtotal


@dataclass(slots=True, frozen=True)
class StoredImage:
    key: str
    url: str
