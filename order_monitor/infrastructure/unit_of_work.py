from contextlib import AsyncExitStack, asynccontextmanager

from order_monitor.infrastructure.database import InMemoryDatabase, InMemorySession
from order_monitor.infrastructure.repositories import (
    MessageRepository,
    OrderRepository,
    StatusHistoryRepository,
)


class UnitOfWork:
    def __init__(self, database: InMemoryDatabase) -> None:
        self._database = database

    @asynccontextmanager
    async def __call__(self, order_id: str | None = None):
        """Open a unit of work, holding the order's lock when ``order_id`` is given."""
        async with AsyncExitStack() as stack:
            if order_id is not None:
                await stack.enter_async_context(self._database.lock_for(order_id))

            session = InMemorySession(self._database)
            try:
                yield _UnitOfWorkImplementation(session)
                # Rollback if commit wasn't explicitly called
                await session.rollback()
            except Exception:
                await session.rollback()
                raise


class _UnitOfWorkImplementation:
    def __init__(self, session: InMemorySession):
        self._session = session
        self._order_repo = OrderRepository(session)
        self._message_repo = MessageRepository(session)
        self._history_repo = StatusHistoryRepository(session)

    @property
    def orders(self) -> OrderRepository:
        return self._order_repo

    @property
    def messages(self) -> MessageRepository:
        return self._message_repo

    @property
    def history(self) -> StatusHistoryRepository:
        return self._history_repo

    async def commit(self):
        await self._session.commit()
