from __future__ import annotations

from decimal import Decimal, ROUND_HALF_EVEN
from html import escape

from receiptsplit.models import AllocationResult
from receiptsplit.services.bill import Bill
from receiptsplit.services.split import round_to_cents

CURRENCY_SYMBOLS = {
    "USD": "$",
    "CAD": "$",
    "EUR": "€",
    "GBP": "£",
}


def _with_currency(amount: Decimal, currency: str) -> str:
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    if symbol:
        return f"{symbol}{amount:.2f}"
    return f"{amount:.2f} {currency}"


def format_money(amount: float, currency: str = "USD") -> str:
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_EVEN)
    return _with_currency(value, currency)


def format_cents(cents: int, currency: str = "USD") -> str:
    return _with_currency(Decimal(cents) / 100, currency)


def format_pct(value: float) -> str:
    return f"{value * 100:g}%"


def format_items(bill: Bill) -> str:
    if not bill.items:
        return "No items yet. Send a receipt photo or use /add name | qty | price."

    lines = []
    for position, item in enumerate(bill.items, start=1):
        members = bill.assignments.participants_for(item.id)
        who = ", ".join(escape(name) for name in bill.participants if name in members) if members else "everyone"
        lines.append(
            f"{position}. {escape(item.name)} × {item.quantity} @ {format_money(item.unit_price, bill.currency)}"
            f" = {format_money(item.cost, bill.currency)} · {who}"
        )
    return "\n".join(lines)


def format_summary(bill: Bill, result: AllocationResult) -> str:
    currency = bill.currency
    header = f"<b>{escape(bill.merchant or 'Your receipt')}</b>"
    if bill.date:
        header += f"\n{escape(bill.date)}"

    lines = [
        header,
        "",
        f"Subtotal: {format_money(result.subtotal, currency)}",
        f"Tax ({format_pct(bill.tax_pct)}): {format_money(result.tax_amount, currency)}",
        f"Tip ({format_pct(bill.tip_pct)}): {format_money(result.tip_amount, currency)}",
        f"<b>Total: {format_money(result.grand_total, currency)}</b>",
        "",
    ]

    if not bill.participants:
        lines.append("No people added yet. Use /addperson to see the split.")
    else:
        lines.append("<b>Per person</b>")
        cents = round_to_cents(result.per_participant, result.allocated_total)
        for name, amount in result.per_participant.items():
            share = amount / result.grand_total * 100 if result.grand_total > 0 else 0.0
            count = result.item_counts.get(name, 0)
            noun = "item" if count == 1 else "items"
            lines.append(
                f"{escape(name)}: {format_cents(cents[name], currency)} ({share:.1f}% of total, {count} {noun})"
            )

    if result.has_unallocated:
        lines.append("")
        lines.append(
            f"⚠️ {format_money(result.unallocated_total, currency)} is not assigned to anyone. "
            "Add people to split it."
        )

    return "\n".join(lines)
