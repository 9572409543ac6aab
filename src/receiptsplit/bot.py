from __future__ import annotations

import asyncio
from functools import partial

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from openai import AsyncOpenAI

from receiptsplit.config import Settings, get_settings
from receiptsplit.handlers import basic_router, items_router, people_router, receipts_router, summary_router
from receiptsplit.logging import configure_logging, get_logger
from receiptsplit.scheduler import setup_scheduler
from receiptsplit.services.bill import Bill
from receiptsplit.services.extraction import OpenAIReceiptExtractor, build_strategies
from receiptsplit.services.storage import LocalImageStorage
from receiptsplit.state import SessionStore


def build_session_store(settings: Settings) -> SessionStore:
    factory = partial(
        Bill,
        tax_pct=settings.default_tax_pct,
        tip_pct=settings.default_tip_pct,
        currency=settings.default_currency,
    )
    return SessionStore(factory)


def build_dispatcher(settings: Settings, sessions: SessionStore) -> Dispatcher:
    client = AsyncOpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.extraction_timeout,
    )
    # collaborators reach handlers as keyword arguments through workflow data
    dp = Dispatcher(
        settings=settings,
        sessions=sessions,
        image_store=LocalImageStorage(settings.storage_dir, settings.public_base_url),
        extractor=OpenAIReceiptExtractor(client, build_strategies(settings.extraction_models)),
    )
    dp.include_router(basic_router)
    dp.include_router(receipts_router)
    dp.include_router(items_router)
    dp.include_router(people_router)
    dp.include_router(summary_router)
    return dp


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    sessions = build_session_store(settings)
    dp = build_dispatcher(settings, sessions)

    scheduler = setup_scheduler(sessions, settings)

    log = get_logger(__name__)
    log.info("bot.start", models=settings.extraction_models)
    try:
        await dp.start_polling(bot)
    finally:
        scheduler.shutdown(wait=False)
        await bot.session.close()
        log.info("bot.stop")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
