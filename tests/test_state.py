from datetime import datetime, timedelta, timezone

import pytest

from receiptsplit.scheduler import purge_sessions_job
from receiptsplit.services.bill import Bill
from receiptsplit.state import SessionStore


def test_get_or_create_reuses_bill():
    sessions = SessionStore()
    bill = sessions.get_or_create(1, "You")
    assert bill.participants == ["You"]
    assert sessions.get_or_create(1, "Someone else") is bill
    assert sessions.get(2) is None


def test_start_replaces_bill():
    sessions = SessionStore()
    first = sessions.get_or_create(1, "You")
    first.add_item({"name": "Burger", "price": 10})
    second = sessions.start(1, "You")
    assert second is not first
    assert second.items == []


def test_sessions_are_isolated():
    sessions = SessionStore()
    sessions.get_or_create(1, "You").add_participant("Alice")
    assert sessions.get_or_create(2, "You").participants == ["You"]


def test_factory_defaults():
    sessions = SessionStore(lambda primary: Bill(primary, tax_pct=0.05, tip_pct=0.1, currency="EUR"))
    bill = sessions.get_or_create(1, "You")
    assert (bill.tax_pct, bill.tip_pct, bill.currency) == (0.05, 0.1, "EUR")


def test_purge_idle():
    sessions = SessionStore()
    sessions.get_or_create(1, "You")
    sessions.get_or_create(2, "You")

    later = datetime.now(timezone.utc) + timedelta(hours=3)
    assert sessions.purge_idle(timedelta(hours=4), now=later) == []
    assert sorted(sessions.purge_idle(timedelta(hours=2), now=later)) == [1, 2]
    assert len(sessions) == 0
    assert sessions.get(1) is None


@pytest.mark.asyncio
async def test_purge_job_keeps_fresh_sessions():
    sessions = SessionStore()
    sessions.get_or_create(1, "You")
    await purge_sessions_job(sessions, timedelta(minutes=5))
    assert len(sessions) == 1
    await purge_sessions_job(sessions, timedelta(seconds=-1))
    assert len(sessions) == 0
