from __future__ import annotations

from aiogram import Bot, F, Router
from aiogram.types import Message

from receiptsplit.config import Settings
from receiptsplit.keyboards import items_keyboard
from receiptsplit.logging import get_logger
from receiptsplit.services.extraction import ReceiptExtractor, scan_stored_image
from receiptsplit.services.storage import ImageStore
from receiptsplit.services.summary import format_items, format_pct
from receiptsplit.state import SessionStore

receipts_router = Router()


@receipts_router.message(F.photo)
async def on_photo(
    message: Message,
    bot: Bot,
    sessions: SessionStore,
    image_store: ImageStore,
    extractor: ReceiptExtractor,
    settings: Settings,
) -> None:
    if not message.photo:
        return
    photo = message.photo[-1]
    await _scan(message, bot, photo.file_id, "image/jpeg", "receipt.jpg", sessions, image_store, extractor, settings)


@receipts_router.message(F.document.mime_type.startswith("image/"))
async def on_image_document(
    message: Message,
    bot: Bot,
    sessions: SessionStore,
    image_store: ImageStore,
    extractor: ReceiptExtractor,
    settings: Settings,
) -> None:
    document = message.document
    if not document:
        return
    await _scan(
        message,
        bot,
        document.file_id,
        document.mime_type or "image/jpeg",
        document.file_name or "receipt.jpg",
        sessions,
        image_store,
        extractor,
        settings,
    )


async def _scan(
    message: Message,
    bot: Bot,
    file_id: str,
    content_type: str,
    filename: str,
    sessions: SessionStore,
    image_store: ImageStore,
    extractor: ReceiptExtractor,
    settings: Settings,
) -> None:
    user = message.from_user
    if not user:
        return

    log = get_logger(__name__).bind(user_id=user.id)
    progress = await message.answer("🔎 Analyzing receipt…")

    buffer = await bot.download(file_id)
    if buffer is None:
        await progress.edit_text("❌ Could not download the image. Please send it again.")
        return

    try:
        stored = await image_store.store(buffer.read(), content_type, filename)
    except OSError:
        log.exception("receipt.store_failed")
        await progress.edit_text("❌ Could not save the image. Please try again later.")
        return

    result = await scan_stored_image(image_store, extractor, stored, content_type)
    if not result.ok or result.receipt is None:
        log.warning("receipt.extract_failed", status=result.status.value, error=result.error)
        await progress.edit_text(
            "❌ I couldn't read that receipt.\n\n"
            "Try a sharper photo, or type the items with /manual."
        )
        return

    bill = sessions.get_or_create(user.id, settings.primary_name)
    bill.load_receipt(result.receipt, image_key=stored.key)
    log.info("receipt.loaded", key=stored.key, model=result.model, items=len(bill.items))

    await progress.edit_text(
        f"✅ Found {len(bill.items)} items "
        f"(tax {format_pct(bill.tax_pct)}, tip {format_pct(bill.tip_pct)}).\n\n"
        f"{format_items(bill)}\n\n"
        "Tap an item to choose who had it.",
        reply_markup=items_keyboard(bill),
    )
