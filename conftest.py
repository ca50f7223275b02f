import uuid
from decimal import Decimal

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from order_monitor.application.container import ApplicationContainer
from order_monitor.application.create_order import OrderDTO
from order_monitor.core.models import OrderStatusEnum
from order_monitor.infrastructure.broadcaster import Broadcaster
from order_monitor.infrastructure.database import InMemoryDatabase
from order_monitor.infrastructure.unit_of_work import UnitOfWork
from order_monitor.presentation.server import build_api


@pytest.fixture()
def container() -> ApplicationContainer:
    container = ApplicationContainer()
    container.config.from_yaml("order_monitor/config.yaml", required=True)
    return container


@pytest.fixture()
def database(container: ApplicationContainer) -> InMemoryDatabase:
    return container.infrastructure_container.database()


@pytest.fixture()
def unit_of_work(container: ApplicationContainer) -> UnitOfWork:
    return container.infrastructure_container.unit_of_work()


@pytest.fixture()
def broadcaster(container: ApplicationContainer) -> Broadcaster:
    return container.infrastructure_container.broadcaster()


@pytest.fixture()
def fast_api_app(container: ApplicationContainer) -> FastAPI:
    app = build_api(container)
    yield app
    container.unwire()


@pytest_asyncio.fixture()
async def test_async_client(fast_api_app) -> AsyncClient:
    async with AsyncClient(
        transport=ASGITransport(app=fast_api_app),
        base_url="http://test.com",
    ) as client:
        client.app = fast_api_app
        yield client


@pytest.fixture
def order_factory():
    def _create_order(**kwargs):
        defaults = {
            "order_id": f"ORD-{uuid.uuid4().hex[:8].upper()}",
            "customer_id": "CUST-123",
            "customer_name": "John Doe",
            "total_amount": Decimal("89.99"),
            "item_count": 3,
            "status": OrderStatusEnum.PENDING,
        }
        defaults.update(kwargs)
        return OrderDTO(**defaults)

    return _create_order


@pytest.fixture
def create_order(container: ApplicationContainer, order_factory):
    """Store an order through the create use case and return it."""

    async def _create(**kwargs):
        return await container.create_order_use_case()(order_factory(**kwargs))

    return _create
