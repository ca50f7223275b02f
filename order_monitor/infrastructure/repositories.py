from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from order_monitor.core.models import (
    MessageTypeEnum,
    Order,
    OrderMessage,
    OrderStatusEnum,
    OrderStatusHistory,
)
from order_monitor.infrastructure.database import InMemorySession


class DoesNotExist(Exception):
    pass


class DuplicateKey(Exception):
    pass


class OrderRepository:
    class CreateDTO(BaseModel):
        order_id: str
        customer_id: str
        customer_name: str
        total_amount: Decimal
        item_count: int
        status: OrderStatusEnum

    class UpdateDTO(BaseModel):
        customer_id: str | None = None
        customer_name: str | None = None
        total_amount: Decimal | None = None
        item_count: int | None = None
        status: OrderStatusEnum | None = None

    def __init__(self, session: InMemorySession):
        self._session = session
        self._db = session.database

    async def get_by_id(self, order_id: str) -> Order:
        order = self._db.orders.get(order_id)
        if order is None:
            raise DoesNotExist(f"Order with id {order_id} not found")

        return order

    async def create(self, order: CreateDTO) -> Order:
        if order.order_id in self._db.orders:
            raise DuplicateKey(f"Order with id {order.order_id} already exists")

        now = self._db.now()
        created = Order(
            id=self._db.next_id(),
            **order.model_dump(),
            created_at=now,
            updated_at=now,
        )

        def write():
            self._db.orders[created.order_id] = created

        self._session.add(write)
        return created

    async def update(self, order_id: str, changes: UpdateDTO) -> Order:
        """Merge the supplied fields onto the order and refresh ``updated_at``."""
        current = await self.get_by_id(order_id)
        updated = current.model_copy(
            update={
                **changes.model_dump(exclude_none=True),
                "updated_at": self._db.now(),
            }
        )

        def write():
            self._db.orders[order_id] = updated

        self._session.add(write)
        return updated

    async def list_recent(self, limit: int = 10) -> list[Order]:
        # sorted() is stable, equal timestamps keep insertion order
        orders = sorted(
            self._db.orders.values(), key=lambda order: order.updated_at, reverse=True
        )
        return orders[:limit]


class MessageRepository:
    class CreateDTO(BaseModel):
        order_id: str
        message_type: MessageTypeEnum
        content: str
        metadata: dict[str, Any] | None = None

    def __init__(self, session: InMemorySession):
        self._session = session
        self._db = session.database

    async def list_for_order(self, order_id: str) -> list[OrderMessage]:
        return list(self._db.messages.get(order_id, []))

    async def create(self, message: CreateDTO) -> OrderMessage:
        created = OrderMessage(
            id=self._db.next_id(),
            **message.model_dump(),
            timestamp=self._db.now(),
        )

        def write():
            self._db.messages.setdefault(created.order_id, []).append(created)

        self._session.add(write)
        return created

    async def clear(self, order_id: str) -> None:
        def write():
            self._db.messages.pop(order_id, None)

        self._session.add(write)


class StatusHistoryRepository:
    class CreateDTO(BaseModel):
        order_id: str
        status: OrderStatusEnum
        title: str
        description: str
        operator: str
        duration: str | None = None

    def __init__(self, session: InMemorySession):
        self._session = session
        self._db = session.database

    async def list_for_order(self, order_id: str) -> list[OrderStatusHistory]:
        return list(self._db.status_history.get(order_id, []))

    async def create(self, entry: CreateDTO) -> OrderStatusHistory:
        created = OrderStatusHistory(
            id=self._db.next_id(),
            **entry.model_dump(),
            timestamp=self._db.now(),
        )

        def write():
            self._db.status_history.setdefault(created.order_id, []).append(created)

        self._session.add(write)
        return created
