from __future__ import annotations

from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from receiptsplit.config import Settings
from receiptsplit.logging import get_logger
from receiptsplit.state import SessionStore


def setup_scheduler(sessions: SessionStore, settings: Settings) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(timezone=settings.zoneinfo)
    scheduler.add_job(
        purge_sessions_job,
        IntervalTrigger(minutes=5),
        kwargs={"sessions": sessions, "ttl": timedelta(minutes=settings.session_ttl_minutes)},
    )
    scheduler.start()
    return scheduler


async def purge_sessions_job(sessions: SessionStore, ttl: timedelta) -> None:
    expired = sessions.purge_idle(ttl)
    if expired:
        get_logger(__name__).info("sessions.purged", count=len(expired), remaining=len(sessions))
