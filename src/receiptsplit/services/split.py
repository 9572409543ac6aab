from __future__ import annotations

from decimal import Decimal, ROUND_HALF_EVEN
from typing import AbstractSet, Iterable, Mapping, Sequence

from receiptsplit.models import AllocationResult, Item

CENT = Decimal("0.01")
TOLERANCE = 1e-6


def split_amount(amount: float, beneficiaries: Sequence[str]) -> dict[str, float]:
    if amount < 0:
        raise ValueError("amount must be non-negative")
    if not beneficiaries:
        raise ValueError("beneficiaries must not be empty")

    share = amount / len(beneficiaries)
    return {name: share for name in beneficiaries}


def merge_shares(
    shares: Iterable[Mapping[str, float]],
    initial: Mapping[str, float] | None = None,
) -> dict[str, float]:
    result: dict[str, float] = dict(initial or {})
    for share in shares:
        for name, amount in share.items():
            result[name] = result.get(name, 0.0) + amount
    return result


def _beneficiaries(assigned: AbstractSet[str], participants: Sequence[str]) -> list[str]:
    if not assigned:
        return list(participants)
    # participant order first so repeated runs sum in the same order
    known = [name for name in participants if name in assigned]
    return known + sorted(assigned.difference(participants))


def allocate(
    items: Sequence[Item],
    participants: Sequence[str],
    assignments: Mapping[str, AbstractSet[str]],
    tax_pct: float,
    tip_pct: float,
) -> AllocationResult:
    """Split a bill between participants.

    Each item's cost goes evenly to its assigned participants, or to every
    participant when nobody is assigned. Tax and tip are computed on the
    items subtotal and handed out in proportion to each participant's share
    of that subtotal. Percentages are expected to be validated already.

    With no participants at all, communal items have nobody to pay for them:
    their cost still counts towards the totals and is reported in
    ``unallocated_subtotal``.
    """
    people = list(dict.fromkeys(participants))
    zero = {name: 0.0 for name in people}
    counts = {name: 0 for name in people}

    per_item: list[dict[str, float]] = []
    unallocated = 0.0
    subtotal = 0.0

    for item in items:
        cost = item.cost
        subtotal += cost
        beneficiaries = _beneficiaries(assignments.get(item.id, frozenset()), people)
        if not beneficiaries:
            unallocated += cost
            continue
        per_item.append(split_amount(cost, beneficiaries))
        for name in beneficiaries:
            counts[name] = counts.get(name, 0) + 1

    raw = merge_shares(per_item, initial=zero)

    tax_amount = subtotal * tax_pct
    tip_amount = subtotal * tip_pct
    extra = tax_amount + tip_amount

    per_participant: dict[str, float] = {}
    for name, amount in raw.items():
        ratio = amount / subtotal if subtotal > 0 else 0.0
        per_participant[name] = amount + ratio * extra

    return AllocationResult(
        subtotal=subtotal,
        tax_amount=tax_amount,
        tip_amount=tip_amount,
        grand_total=subtotal + tax_amount + tip_amount,
        per_participant=per_participant,
        raw_per_participant=raw,
        item_counts=counts,
        unallocated_subtotal=unallocated,
    )


def conserves(result: AllocationResult, tolerance: float = TOLERANCE) -> bool:
    """True when the per-participant amounts add up to the grand total."""
    scale = max(1.0, abs(result.grand_total))
    return abs(result.allocated_total - result.grand_total) <= tolerance * scale


def _to_cents(value: float) -> Decimal:
    return Decimal(str(value)) / CENT


def round_to_cents(amounts: Mapping[str, float], total: float) -> dict[str, int]:
    """Round shares to whole cents so that they still add up to ``total``.

    Every share is rounded half-even, then the leftover cents are handed out
    one at a time, starting with the shares that lost the most to rounding.
    """
    if not amounts:
        return {}

    exact = {name: _to_cents(value) for name, value in amounts.items()}
    rounded = {name: int(value.quantize(Decimal("1"), rounding=ROUND_HALF_EVEN)) for name, value in exact.items()}
    total_cents = int(_to_cents(total).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))
    remainder = total_cents - sum(rounded.values())

    step = 1 if remainder > 0 else -1
    order = sorted(exact, key=lambda name: exact[name] - rounded[name], reverse=step > 0)

    idx = 0
    while remainder != 0:
        rounded[order[idx]] += step
        remainder -= step
        idx = (idx + 1) % len(order)

    return rounded
