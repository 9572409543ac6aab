from __future__ import annotations

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from receiptsplit.models import Item
from receiptsplit.services.bill import Bill

MAX_LABEL = 24


def _label(text: str) -> str:
    return text if len(text) <= MAX_LABEL else text[: MAX_LABEL - 1] + "…"


def main_menu_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🧾 Items", callback_data="items")],
            [InlineKeyboardButton(text="💰 Summary", callback_data="summary")],
        ]
    )


def items_keyboard(bill: Bill) -> InlineKeyboardMarkup:
    rows: list[list[InlineKeyboardButton]] = []
    for position, item in enumerate(bill.items, start=1):
        rows.append(
            [InlineKeyboardButton(text=f"{position}. {_label(item.name)}", callback_data=f"item:{item.id}")]
        )
    rows.append([InlineKeyboardButton(text="💰 Summary", callback_data="summary")])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def assign_keyboard(bill: Bill, item: Item) -> InlineKeyboardMarkup:
    members = bill.assignments.participants_for(item.id)
    rows: list[list[InlineKeyboardButton]] = []
    row: list[InlineKeyboardButton] = []
    # short participant tokens keep callback data under Telegram's 64-byte limit
    for name in bill.participants:
        mark = "✅" if name in members else "▫️"
        data = f"assign:{item.id}:{bill.participant_token(name)}"
        row.append(InlineKeyboardButton(text=f"{mark} {_label(name)}", callback_data=data))
        if len(row) == 2:
            rows.append(row)
            row = []
    if row:
        rows.append(row)
    rows.append(
        [
            InlineKeyboardButton(text="◀️ Items", callback_data="items"),
            InlineKeyboardButton(text="💰 Summary", callback_data="summary"),
        ]
    )
    return InlineKeyboardMarkup(inline_keyboard=rows)
