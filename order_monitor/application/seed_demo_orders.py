import logging
from decimal import Decimal

from order_monitor.application.create_order import CreateOrderUseCase, OrderDTO
from order_monitor.core.models import Order, OrderStatusEnum
from order_monitor.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

DEMO_ORDERS = [
    OrderDTO(
        order_id="ORD-2024-001",
        customer_id="CUST-123",
        customer_name="John Doe",
        total_amount=Decimal("89.99"),
        item_count=3,
        status=OrderStatusEnum.PENDING,
    ),
    OrderDTO(
        order_id="ORD-2024-002",
        customer_id="CUST-456",
        customer_name="Jane Smith",
        total_amount=Decimal("159.50"),
        item_count=2,
        status=OrderStatusEnum.CONFIRMED,
    ),
    OrderDTO(
        order_id="ORD-2024-003",
        customer_id="CUST-789",
        customer_name="Bob Johnson",
        total_amount=Decimal("45.00"),
        item_count=1,
        status=OrderStatusEnum.PROCESSING,
    ),
]


class SeedDemoOrdersUseCase:
    def __init__(self, unit_of_work: UnitOfWork, create_order_use_case: CreateOrderUseCase):
        self._unit_of_work = unit_of_work
        self._create_order = create_order_use_case

    async def __call__(self) -> list[Order]:
        """Create the demo orders unless the store already holds orders."""
        async with self._unit_of_work() as uow:
            if await uow.orders.list_recent(limit=1):
                return []

        logger.info("Creating default orders...")
        created = [await self._create_order(order) for order in DEMO_ORDERS]
        logger.info(f"Created {len(created)} default orders")
        return created
