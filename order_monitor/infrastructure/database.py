import asyncio
import itertools
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import AsyncIterator, Callable

from order_monitor.core.models import Order, OrderMessage, OrderStatusHistory


class InMemoryDatabase:
    """Process-wide tables for orders, their message logs and status history.

    Orders are keyed by their external ``order_id``; logs are kept per order id
    in insertion order. All records share one integer id sequence.
    """

    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}
        self.messages: dict[str, list[OrderMessage]] = {}
        self.status_history: dict[str, list[OrderStatusHistory]] = {}
        self._ids = itertools.count(1)
        self._last_timestamp: datetime | None = None
        # order_id -> (lock, holders and waiters)
        self._locks: dict[str, tuple[asyncio.Lock, int]] = {}

    def next_id(self) -> int:
        return next(self._ids)

    def now(self) -> datetime:
        """Current UTC time, strictly later than any timestamp handed out before."""
        timestamp = datetime.now(UTC)
        if self._last_timestamp is not None and timestamp <= self._last_timestamp:
            timestamp = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = timestamp
        return timestamp

    @asynccontextmanager
    async def lock_for(self, order_id: str) -> AsyncIterator[None]:
        """Hold the order's lock; the entry is dropped once nobody uses it."""
        lock, users = self._locks.get(order_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[order_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = self._locks[order_id]
            if users == 1:
                del self._locks[order_id]
            else:
                self._locks[order_id] = (lock, users - 1)


class InMemorySession:
    """Stages writes against the database until ``commit``."""

    def __init__(self, database: InMemoryDatabase):
        self.database = database
        self._pending: list[Callable[[], None]] = []

    def add(self, write: Callable[[], None]) -> None:
        self._pending.append(write)

    async def commit(self) -> None:
        # Applied without awaiting so readers never observe half a commit.
        pending, self._pending = self._pending, []
        for write in pending:
            write()

    async def rollback(self) -> None:
        self._pending.clear()
