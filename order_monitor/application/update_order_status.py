import logging
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from order_monitor.core.models import (
    MessageTypeEnum,
    Order,
    OrderStatusEnum,
    OrderUpdateEvent,
)
from order_monitor.core.timeline import status_description, status_title
from order_monitor.infrastructure.broadcaster import Broadcaster
from order_monitor.infrastructure.repositories import (
    MessageRepository,
    OrderRepository,
    StatusHistoryRepository,
)
from order_monitor.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class OrderStatusChange(BaseModel):
    order_id: str
    status: OrderStatusEnum
    operator: str
    content: str
    metadata: dict[str, Any] | None = None
    description: str | None = None
    duration: str | None = None
    customer_name: str | None = None
    total_amount: Decimal | None = None
    item_count: int | None = None
    # Apply only while the order is still in this status.
    expected_status: OrderStatusEnum | None = None


class UpdateOrderStatusUseCase:
    """Move an order to a new status and announce it.

    The status, its history entry and its notification message are written in
    one unit of work under the order's lock, so readers see all three or none.
    Subscribers are notified only after the commit.
    """

    def __init__(self, unit_of_work: UnitOfWork, broadcaster: Broadcaster):
        self._unit_of_work = unit_of_work
        self._broadcaster = broadcaster

    async def __call__(self, change: OrderStatusChange) -> Order | None:
        async with self._unit_of_work(change.order_id) as uow:
            if change.expected_status is not None:
                current = await uow.orders.get_by_id(change.order_id)
                if current.status != change.expected_status:
                    logger.info(
                        f"Order {change.order_id} moved to {current.status}, "
                        f"expected {change.expected_status}; skipping"
                    )
                    return None

            order = await uow.orders.update(
                change.order_id,
                OrderRepository.UpdateDTO(
                    status=change.status,
                    customer_name=change.customer_name,
                    total_amount=change.total_amount,
                    item_count=change.item_count,
                ),
            )
            await uow.history.create(
                StatusHistoryRepository.CreateDTO(
                    order_id=change.order_id,
                    status=change.status,
                    title=status_title(change.status),
                    description=change.description
                    or status_description(change.status),
                    operator=change.operator,
                    duration=change.duration,
                )
            )
            await uow.messages.create(
                MessageRepository.CreateDTO(
                    order_id=change.order_id,
                    message_type=MessageTypeEnum.STATUS_UPDATE,
                    content=change.content,
                    metadata=change.metadata,
                )
            )
            await uow.commit()

        self._broadcaster.publish(OrderUpdateEvent(data=order))
        logger.info(
            f"Order {order.order_id} -> {order.status} by {change.operator}"
        )
        return order
