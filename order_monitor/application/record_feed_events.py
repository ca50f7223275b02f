from decimal import Decimal
from typing import Any

from pydantic import Field

from order_monitor.application.update_order_status import (
    OrderStatusChange,
    UpdateOrderStatusUseCase,
)
from order_monitor.core.models import (
    CamelModel,
    MessageTypeEnum,
    MessageUpdateEvent,
    OperatorEnum,
    Order,
    OrderMessage,
    OrderStatusEnum,
)
from order_monitor.infrastructure.broadcaster import Broadcaster
from order_monitor.infrastructure.repositories import MessageRepository
from order_monitor.infrastructure.unit_of_work import UnitOfWork


class OrderUpdatePayload(CamelModel):
    order_id: str = Field(min_length=1)
    status: OrderStatusEnum
    customer_name: str | None = None
    total_amount: Decimal | None = None
    item_count: int | None = Field(default=None, gt=0)
    description: str | None = None
    operator: str = OperatorEnum.SYSTEM
    duration: str | None = None
    metadata: dict[str, Any] | None = None


class StatusMessagePayload(CamelModel):
    order_id: str = Field(min_length=1)
    message_type: MessageTypeEnum = MessageTypeEnum.INFO
    content: str
    metadata: dict[str, Any] | None = None


class ApplyOrderUpdateUseCase:
    def __init__(self, update_order_status_use_case: UpdateOrderStatusUseCase):
        self._update_order_status = update_order_status_use_case

    async def __call__(self, payload: dict[str, Any]) -> Order | None:
        update = OrderUpdatePayload.model_validate(payload)
        return await self._update_order_status(
            OrderStatusChange(
                order_id=update.order_id,
                status=update.status,
                operator=update.operator,
                content=f"Order status updated to {update.status}",
                metadata=update.metadata or {},
                description=update.description,
                duration=update.duration,
                customer_name=update.customer_name,
                total_amount=update.total_amount,
                item_count=update.item_count,
            )
        )


class RecordOrderMessageUseCase:
    """Append a free-form message to an order's log and announce it.

    The order does not have to exist yet.
    """

    def __init__(self, unit_of_work: UnitOfWork, broadcaster: Broadcaster):
        self._unit_of_work = unit_of_work
        self._broadcaster = broadcaster

    async def __call__(self, payload: dict[str, Any]) -> OrderMessage:
        incoming = StatusMessagePayload.model_validate(payload)
        async with self._unit_of_work(incoming.order_id) as uow:
            message = await uow.messages.create(
                MessageRepository.CreateDTO(
                    order_id=incoming.order_id,
                    message_type=incoming.message_type,
                    content=incoming.content,
                    metadata=incoming.metadata or {},
                )
            )
            await uow.commit()

        self._broadcaster.publish(
            MessageUpdateEvent(
                order_id=message.order_id,
                message_type=message.message_type,
                content=message.content,
                timestamp=message.timestamp,
            )
        )
        return message
