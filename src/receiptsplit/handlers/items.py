from __future__ import annotations

from html import escape

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message

from receiptsplit.config import Settings
from receiptsplit.keyboards import assign_keyboard, items_keyboard
from receiptsplit.logging import get_logger
from receiptsplit.models import Item
from receiptsplit.services.assignments import UnknownItemError
from receiptsplit.services.bill import Bill
from receiptsplit.services.summary import format_items, format_money
from receiptsplit.state import SessionStore
from receiptsplit.utils.parse import parse_item_fields, parse_position, unreadable_numbers

items_router = Router()


def _item_card(bill: Bill, item: Item) -> str:
    return (
        f"<b>{escape(item.name)}</b> × {item.quantity} = {format_money(item.cost, bill.currency)}\n\n"
        "Tick who had it. Leave everyone unticked to share it with the whole table."
    )


@items_router.message(Command("add"))
async def cmd_add(message: Message, command: CommandObject, sessions: SessionStore, settings: Settings) -> None:
    user = message.from_user
    if not user:
        return
    if not command.args:
        await message.answer("Usage: /add name | qty | price")
        return

    bill = sessions.get_or_create(user.id, settings.primary_name)
    item = bill.add_item(parse_item_fields(command.args))
    get_logger(__name__).info("bill.item.added", user_id=user.id, item_id=item.id)
    await message.answer(f"➕ Added {len(bill.items)}. {escape(item.name)}\n\n{format_items(bill)}", reply_markup=items_keyboard(bill))


@items_router.message(Command("edit"))
async def cmd_edit(message: Message, command: CommandObject, sessions: SessionStore, settings: Settings) -> None:
    user = message.from_user
    if not user:
        return
    if not command.args or "|" not in command.args:
        await message.answer("Usage: /edit n | name | qty | price (leave a part empty to keep it)")
        return

    position_text, _, rest = command.args.partition("|")
    bill = sessions.get_or_create(user.id, settings.primary_name)
    try:
        item = bill.item_at(parse_position(position_text))
    except (ValueError, UnknownItemError):
        await message.answer("No such item. See /items for the numbers.")
        return

    fields = parse_item_fields(rest)
    unreadable = unreadable_numbers(fields)
    if unreadable:
        await message.answer(f"Could not read the {' and '.join(unreadable)}. Nothing was changed.")
        return

    bill.edit_item(item.id, name=fields.get("name"), quantity=fields.get("qty"), unit_price=fields.get("price"))
    get_logger(__name__).info("bill.item.edited", user_id=user.id, item_id=item.id)
    await message.answer(f"✏️ Updated.\n\n{format_items(bill)}", reply_markup=items_keyboard(bill))


@items_router.message(Command("del"))
async def cmd_del(message: Message, command: CommandObject, sessions: SessionStore, settings: Settings) -> None:
    user = message.from_user
    if not user:
        return

    bill = sessions.get_or_create(user.id, settings.primary_name)
    try:
        item = bill.item_at(parse_position(command.args or ""))
    except (ValueError, UnknownItemError):
        await message.answer("Usage: /del n (see /items for the numbers)")
        return

    bill.remove_item(item.id)
    get_logger(__name__).info("bill.item.removed", user_id=user.id, item_id=item.id)
    await message.answer(f"🗑 Removed {escape(item.name)}.\n\n{format_items(bill)}", reply_markup=items_keyboard(bill))


@items_router.message(Command("items"))
async def cmd_items(message: Message, sessions: SessionStore, settings: Settings) -> None:
    user = message.from_user
    if not user:
        return

    bill = sessions.get_or_create(user.id, settings.primary_name)
    await message.answer(format_items(bill), reply_markup=items_keyboard(bill))


@items_router.callback_query(F.data == "items")
async def cb_items(callback: CallbackQuery, sessions: SessionStore, settings: Settings) -> None:
    bill = sessions.get_or_create(callback.from_user.id, settings.primary_name)
    await callback.message.edit_text(format_items(bill), reply_markup=items_keyboard(bill))
    await callback.answer()


@items_router.callback_query(F.data.startswith("item:"))
async def cb_item(callback: CallbackQuery, sessions: SessionStore) -> None:
    bill = sessions.get(callback.from_user.id)
    item_id = callback.data.split(":", 1)[1]
    if bill is None or item_id not in bill.assignments:
        await callback.answer("This bill has expired. Send the receipt again.", show_alert=True)
        return

    item = bill.get_item(item_id)
    await callback.message.edit_text(_item_card(bill, item), reply_markup=assign_keyboard(bill, item))
    await callback.answer()


@items_router.callback_query(F.data.startswith("assign:"))
async def cb_assign(callback: CallbackQuery, sessions: SessionStore) -> None:
    bill = sessions.get(callback.from_user.id)
    _, item_id, token = callback.data.split(":", 2)
    if bill is None or item_id not in bill.assignments:
        await callback.answer("This bill has expired. Send the receipt again.", show_alert=True)
        return

    name = bill.participant_by_token(token)
    if name is None:
        await callback.answer("That person is no longer on the bill.")
        return

    assigned = bill.toggle(item_id, name)
    item = bill.get_item(item_id)
    get_logger(__name__).info("bill.assign", user_id=callback.from_user.id, item_id=item_id, assigned=assigned)
    await callback.message.edit_text(_item_card(bill, item), reply_markup=assign_keyboard(bill, item))
    await callback.answer(f"{name} {'added' if assigned else 'removed'}")
