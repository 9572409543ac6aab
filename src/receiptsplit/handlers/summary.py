from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message

from receiptsplit.config import Settings
from receiptsplit.logging import get_logger
from receiptsplit.services.bill import Bill
from receiptsplit.services.summary import format_pct, format_summary
from receiptsplit.state import SessionStore
from receiptsplit.utils.parse import parse_percent

summary_router = Router()


def _render(bill: Bill, user_id: int) -> str:
    result = bill.allocate()
    if result.has_unallocated:
        get_logger(__name__).warning(
            "split.unallocated",
            user_id=user_id,
            amount=round(result.unallocated_total, 2),
        )
    return format_summary(bill, result)


@summary_router.message(Command("summary"))
async def cmd_summary(message: Message, sessions: SessionStore, settings: Settings) -> None:
    user = message.from_user
    if not user:
        return

    bill = sessions.get_or_create(user.id, settings.primary_name)
    await message.answer(_render(bill, user.id))


@summary_router.callback_query(F.data == "summary")
async def cb_summary(callback: CallbackQuery, sessions: SessionStore, settings: Settings) -> None:
    bill = sessions.get_or_create(callback.from_user.id, settings.primary_name)
    await callback.message.answer(_render(bill, callback.from_user.id))
    await callback.answer()


@summary_router.message(Command("tax", "tip"))
async def cmd_percent(message: Message, command: CommandObject, sessions: SessionStore, settings: Settings) -> None:
    user = message.from_user
    if not user:
        return

    label = command.command
    try:
        value = parse_percent(command.args or "")
    except ValueError as exc:
        await message.answer(f"{exc}. Usage: /{label} 13")
        return

    bill = sessions.get_or_create(user.id, settings.primary_name)
    if label == "tax":
        bill.set_tax_pct(value)
    else:
        bill.set_tip_pct(value)

    get_logger(__name__).info("bill.pct", user_id=user.id, kind=label, value=value)
    await message.answer(f"{label.capitalize()} set to {format_pct(value)}.\n\n{_render(bill, user.id)}")
