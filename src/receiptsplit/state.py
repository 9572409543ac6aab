"""In-memory bills, one per chat user."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from receiptsplit.services.bill import Bill

BillFactory = Callable[[Optional[str]], Bill]


class SessionStore:
    def __init__(self, factory: BillFactory = Bill) -> None:
        self._factory = factory
        self._bills: dict[int, Bill] = {}
        self._touched: dict[int, datetime] = {}

    def __len__(self) -> int:
        return len(self._bills)

    def get(self, user_id: int) -> Optional[Bill]:
        bill = self._bills.get(user_id)
        if bill is not None:
            self._touch(user_id)
        return bill

    def get_or_create(self, user_id: int, primary: Optional[str] = None) -> Bill:
        bill = self.get(user_id)
        if bill is None:
            bill = self.start(user_id, primary)
        return bill

    def start(self, user_id: int, primary: Optional[str] = None) -> Bill:
        bill = self._factory(primary)
        self._bills[user_id] = bill
        self._touch(user_id)
        return bill

    def drop(self, user_id: int) -> None:
        self._bills.pop(user_id, None)
        self._touched.pop(user_id, None)

    def purge_idle(self, ttl: timedelta, now: Optional[datetime] = None) -> list[int]:
        now = now or datetime.now(timezone.utc)
        expired = [user_id for user_id, touched in self._touched.items() if now - touched > ttl]
        for user_id in expired:
            self.drop(user_id)
        return expired

    def _touch(self, user_id: int) -> None:
        self._touched[user_id] = datetime.now(timezone.utc)
