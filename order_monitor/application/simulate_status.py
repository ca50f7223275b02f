import logging
import random

from order_monitor.application.update_order_status import (
    OrderStatusChange,
    UpdateOrderStatusUseCase,
)
from order_monitor.core.models import OperatorEnum, Order, OrderStatusEnum
from order_monitor.core.timeline import SIMULATED_DURATIONS, next_status
from order_monitor.infrastructure.repositories import DoesNotExist
from order_monitor.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class SimulateStatusTickUseCase:
    """One simulator tick: advance an order one step along the status chain."""

    def __init__(
        self,
        unit_of_work: UnitOfWork,
        update_order_status_use_case: UpdateOrderStatusUseCase,
        order_ids: list[str],
        rng: random.Random | None = None,
    ):
        self._unit_of_work = unit_of_work
        self._update_order_status = update_order_status_use_case
        self._order_ids = list(order_ids)
        self._rng = rng or random.Random()

    async def __call__(self, order_id: str | None = None) -> Order | None:
        if order_id is None:
            if not self._order_ids:
                return None
            order_id = self._rng.choice(self._order_ids)

        try:
            async with self._unit_of_work() as uow:
                current = await uow.orders.get_by_id(order_id)
        except DoesNotExist:
            logger.info(f"Skipping tick, order {order_id} does not exist")
            return None

        new_status = next_status(current.status)
        if new_status is None:
            return None

        order = await self._update_order_status(
            OrderStatusChange(
                order_id=order_id,
                status=new_status,
                operator=OperatorEnum.SYSTEM,
                content=f"Order status updated to {new_status}",
                metadata={"simulatedUpdate": True},
                duration=self._rng.choice(SIMULATED_DURATIONS),
                expected_status=current.status,
            )
        )
        if order is not None:
            logger.info(f"Simulated order update: {order_id} -> {new_status}")
        return order


class TriggerOrderUpdateUseCase:
    """Manually set an order's status; any target status is accepted."""

    def __init__(
        self,
        update_order_status_use_case: UpdateOrderStatusUseCase,
        rng: random.Random | None = None,
    ):
        self._update_order_status = update_order_status_use_case
        self._rng = rng or random.Random()

    async def __call__(self, order_id: str, status: OrderStatusEnum) -> Order:
        return await self._update_order_status(
            OrderStatusChange(
                order_id=order_id,
                status=status,
                operator=OperatorEnum.MANUAL,
                content=f"Order status manually updated to {status}",
                metadata={"manualUpdate": True},
                duration=self._rng.choice(SIMULATED_DURATIONS),
            )
        )
