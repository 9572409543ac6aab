from __future__ import annotations

from html import escape

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from receiptsplit.config import Settings
from receiptsplit.logging import get_logger
from receiptsplit.services.bill import Bill, ProtectedParticipantError, UnknownParticipantError
from receiptsplit.state import SessionStore

people_router = Router()


def _people_text(bill: Bill) -> str:
    if not bill.participants:
        return "No people added yet."
    count = len(bill.participants)
    lines = [f"👥 {count} {'person' if count == 1 else 'people'} splitting the bill:"]
    for name in bill.participants:
        suffix = " (you)" if name == bill.primary else ""
        lines.append(f"• {escape(name)}{suffix}")
    return "\n".join(lines)


@people_router.message(Command("addperson"))
async def cmd_addperson(message: Message, command: CommandObject, sessions: SessionStore, settings: Settings) -> None:
    user = message.from_user
    if not user:
        return
    if not command.args or not command.args.strip():
        await message.answer("Usage: /addperson name")
        return

    bill = sessions.get_or_create(user.id, settings.primary_name)
    name = command.args.strip()
    if not bill.add_participant(name):
        await message.answer(f"{escape(name)} is already on the bill.")
        return

    get_logger(__name__).info("bill.person.added", user_id=user.id, participants=len(bill.participants))
    await message.answer(_people_text(bill))


@people_router.message(Command("removeperson"))
async def cmd_removeperson(message: Message, command: CommandObject, sessions: SessionStore, settings: Settings) -> None:
    user = message.from_user
    if not user:
        return
    if not command.args or not command.args.strip():
        await message.answer("Usage: /removeperson name")
        return

    bill = sessions.get_or_create(user.id, settings.primary_name)
    name = command.args.strip()
    try:
        bill.remove_participant(name)
    except UnknownParticipantError:
        await message.answer(f"{escape(name)} is not on the bill.")
        return
    except ProtectedParticipantError:
        await message.answer("You started this bill, so you can't remove yourself.")
        return

    get_logger(__name__).info("bill.person.removed", user_id=user.id, participants=len(bill.participants))
    await message.answer(_people_text(bill))


@people_router.message(Command("people"))
async def cmd_people(message: Message, sessions: SessionStore, settings: Settings) -> None:
    user = message.from_user
    if not user:
        return

    bill = sessions.get_or_create(user.id, settings.primary_name)
    await message.answer(_people_text(bill))
