from decimal import Decimal

from pydantic import Field

from order_monitor.core.models import CamelModel, Order, OrderStatusEnum
from order_monitor.infrastructure.repositories import OrderRepository
from order_monitor.infrastructure.unit_of_work import UnitOfWork


class OrderDTO(CamelModel):
    order_id: str = Field(min_length=1)
    customer_id: str = Field(min_length=1)
    customer_name: str = Field(min_length=1)
    total_amount: Decimal = Field(ge=0)
    item_count: int = Field(gt=0)
    status: OrderStatusEnum = OrderStatusEnum.PENDING


class CreateOrderUseCase:
    def __init__(
        self,
        unit_of_work: UnitOfWork,
    ):
        self._unit_of_work = unit_of_work

    async def __call__(self, order: OrderDTO) -> Order:
        async with self._unit_of_work(order.order_id) as uow:
            created = await uow.orders.create(
                order=OrderRepository.CreateDTO(**order.model_dump())
            )
            await uow.commit()
            return created
