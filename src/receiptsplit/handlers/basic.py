from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from receiptsplit.config import Settings
from receiptsplit.keyboards import main_menu_keyboard
from receiptsplit.logging import get_logger
from receiptsplit.state import SessionStore

basic_router = Router()

HELP_TEXT = (
    "<b>How it works</b>\n\n"
    "📸 Send a photo of a receipt and I'll read the items.\n"
    "✍️ Or type them: /add Burger | 1 | 12.99\n\n"
    "<b>Items</b>\n"
    "/items - list items and choose who had what\n"
    "/edit 2 | Fries | 2 | 4.50 - change an item\n"
    "/del 2 - remove an item\n\n"
    "<b>People</b>\n"
    "/addperson Alice, /removeperson Alice, /people\n\n"
    "<b>Split</b>\n"
    "/tax 13, /tip 18 - percentages of the subtotal\n"
    "/summary - who owes what\n"
    "/new - start over\n\n"
    "Items nobody is ticked on are shared by everyone."
)


@basic_router.message(CommandStart())
async def cmd_start(message: Message, sessions: SessionStore, settings: Settings) -> None:
    user = message.from_user
    if not user:
        return

    sessions.start(user.id, settings.primary_name)
    get_logger(__name__).info("bill.start", user_id=user.id)
    await message.answer(
        f"👋 Hi, {user.first_name}!\n\n"
        "I split restaurant bills: tax and tip are shared in proportion to what everyone ordered.\n\n"
        "Send me a photo of your receipt, or /help for commands.",
        reply_markup=main_menu_keyboard(),
    )


@basic_router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


@basic_router.message(Command("new", "manual"))
async def cmd_new(message: Message, sessions: SessionStore, settings: Settings) -> None:
    user = message.from_user
    if not user:
        return

    sessions.start(user.id, settings.primary_name)
    get_logger(__name__).info("bill.reset", user_id=user.id)
    await message.answer(
        "🆕 New bill started.\n\n"
        "Send a receipt photo, or add items yourself:\n"
        "/add Burger | 1 | 12.99"
    )
