import asyncio

import pytest

from order_monitor.application.container import ApplicationContainer
from order_monitor.core.models import MessageTypeEnum, OrderStatusEnum
from order_monitor.infrastructure.broadcaster import Broadcaster
from order_monitor.infrastructure.unit_of_work import UnitOfWork
from order_monitor.presentation.event_consumer_worker import EventConsumerWorker


class FakeConsumer:
    def __init__(self, worker: EventConsumerWorker, messages):
        self._worker = worker
        self._messages = messages
        self.started = False
        self.stopped = False

    async def start(self):
        self.started = True

    async def consume(self):
        for topic, payload in self._messages:
            await self._worker._process_message(topic, payload)

    async def stop(self):
        self.stopped = True


class BrokenConsumer:
    async def start(self):
        raise ConnectionError("broker down")

    async def consume(self):
        raise AssertionError("consume after failed start")

    async def stop(self):
        raise AssertionError("stop after failed start")


@pytest.fixture
def worker(container: ApplicationContainer, broadcaster: Broadcaster) -> EventConsumerWorker:
    return EventConsumerWorker(
        apply_order_update_use_case=container.apply_order_update_use_case(),
        record_order_message_use_case=container.record_order_message_use_case(),
        broadcaster=broadcaster,
        bootstrap_servers="localhost:9092",
    )


class TestEventConsumerWorker:
    @pytest.mark.asyncio
    async def test_routes_topics_to_use_cases(
        self, worker: EventConsumerWorker, unit_of_work: UnitOfWork, create_order
    ):
        # Given
        await create_order(order_id="ORD-2024-001", status=OrderStatusEnum.PENDING)

        # When
        await worker._process_message(
            "order-updates", {"orderId": "ORD-2024-001", "status": "processing"}
        )
        await worker._process_message(
            "order-status",
            {"orderId": "ORD-2024-001", "messageType": "info", "content": "Packed"},
        )

        # Then
        async with unit_of_work() as uow:
            order = await uow.orders.get_by_id("ORD-2024-001")
            messages = await uow.messages.list_for_order("ORD-2024-001")
        assert order.status == OrderStatusEnum.PROCESSING
        assert [m.message_type for m in messages] == [
            MessageTypeEnum.STATUS_UPDATE,
            MessageTypeEnum.INFO,
        ]

    @pytest.mark.asyncio
    async def test_skips_bad_events(
        self, worker: EventConsumerWorker, unit_of_work: UnitOfWork
    ):
        # When - none of these raise
        await worker._process_message("order-updates", {"orderId": "ORD-MISSING", "status": "shipped"})
        await worker._process_message("order-updates", {"status": "shipped"})
        await worker._process_message("order-status", {"orderId": "ORD-1"})
        await worker._process_message("unknown-topic", {"orderId": "ORD-1"})

        # Then
        async with unit_of_work() as uow:
            assert await uow.messages.list_for_order("ORD-1") == []

    @pytest.mark.asyncio
    async def test_run_marks_feed_connected_while_consuming(
        self, worker: EventConsumerWorker, broadcaster: Broadcaster
    ):
        # Given
        client = broadcaster.connect()
        await client.receive()  # connection_status on connect
        fake = FakeConsumer(
            worker, [("order-status", {"orderId": "ORD-1", "content": "Hello"})]
        )
        worker._consumer = fake

        # When
        await worker.run()

        # Then
        payloads = [await client.receive() for _ in range(3)]
        assert [p["type"] for p in payloads] == [
            "connection_status",
            "message_update",
            "connection_status",
        ]
        assert payloads[0]["connected"] is True
        assert payloads[2]["connected"] is False
        assert fake.started and fake.stopped

    @pytest.mark.asyncio
    async def test_run_returns_when_broker_unreachable(
        self, container: ApplicationContainer, broadcaster: Broadcaster
    ):
        # Given - nothing listens on port 1
        worker = EventConsumerWorker(
            apply_order_update_use_case=container.apply_order_update_use_case(),
            record_order_message_use_case=container.record_order_message_use_case(),
            broadcaster=broadcaster,
            bootstrap_servers="127.0.0.1:1",
        )

        # When
        await asyncio.wait_for(worker.run(), timeout=60)

        # Then
        assert broadcaster.feed_connected is False
        assert worker._consumer.is_connected is False

    @pytest.mark.asyncio
    async def test_startup_failure_leaves_feed_disconnected(
        self, worker: EventConsumerWorker, broadcaster: Broadcaster
    ):
        # Given
        client = broadcaster.connect()
        await client.receive()  # connection_status on connect
        worker._consumer = BrokenConsumer()

        # When
        await worker.run()

        # Then - no feed status was broadcast
        broadcaster.disconnect(client.client_id)
        assert await client.receive() is None
        assert broadcaster.feed_connected is False
