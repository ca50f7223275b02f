import json
from http import HTTPStatus

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient
from httpx import AsyncClient

from order_monitor.core.models import OrderStatusEnum
from order_monitor.infrastructure.broadcaster import Broadcaster
from order_monitor.presentation.live_updates import (
    _listen,
    event_stream,
    order_updates_socket,
)


def _parse_frame(frame: str) -> dict:
    assert frame.startswith("data: ") and frame.endswith("\n\n")
    return json.loads(frame[len("data: ") :])


class TestEventStream:
    @pytest.mark.asyncio
    async def test_stream_starts_with_connection_status(self, broadcaster: Broadcaster):
        # Given
        client = broadcaster.connect(order_id="ORD-TEST-1")
        stream = event_stream(client, broadcaster)

        # When
        first = _parse_frame(await stream.__anext__())
        await stream.aclose()

        # Then
        assert first["type"] == "connection_status"
        assert first["subscribedTo"] == "ORD-TEST-1"

    @pytest.mark.asyncio
    async def test_stream_delivers_subscribed_order_updates(
        self, broadcaster: Broadcaster, container, create_order
    ):
        # Given
        await create_order(order_id="ORD-A", status=OrderStatusEnum.PENDING)
        await create_order(order_id="ORD-B", status=OrderStatusEnum.PENDING)
        client = broadcaster.connect(order_id="ORD-A")
        stream = event_stream(client, broadcaster)
        await stream.__anext__()
        trigger = container.trigger_order_update_use_case()

        # When
        await trigger("ORD-B", OrderStatusEnum.SHIPPED)
        await trigger("ORD-A", OrderStatusEnum.CONFIRMED)
        frame = _parse_frame(await stream.__anext__())
        await stream.aclose()

        # Then
        assert frame["type"] == "order_update"
        assert frame["data"]["orderId"] == "ORD-A"
        assert frame["data"]["status"] == "confirmed"

    @pytest.mark.asyncio
    async def test_stream_sends_keepalive_when_idle(self, broadcaster: Broadcaster):
        # Given
        client = broadcaster.connect()
        stream = event_stream(client, broadcaster, keepalive_seconds=0.01)
        await stream.__anext__()

        # When
        frame = await stream.__anext__()
        await stream.aclose()

        # Then
        assert frame == ": keep-alive\n\n"

    @pytest.mark.asyncio
    async def test_closing_stream_evicts_client(self, broadcaster: Broadcaster):
        # Given
        client = broadcaster.connect()
        other = broadcaster.connect()
        stream = event_stream(client, broadcaster)
        await stream.__anext__()

        # When - the HTTP connection drops
        await stream.aclose()
        broadcaster.set_feed_status(True)

        # Then
        assert broadcaster.client_count == 1
        assert broadcaster.get(other.client_id) is other

    @pytest.mark.asyncio
    async def test_stream_ends_when_client_disconnected(self, broadcaster: Broadcaster):
        # Given
        client = broadcaster.connect()
        stream = event_stream(client, broadcaster)
        await stream.__anext__()

        # When
        broadcaster.disconnect(client.client_id)

        # Then
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()


class TestSubscriptionEndpoints:
    @pytest.mark.asyncio
    async def test_subscribe(self, test_async_client: AsyncClient, broadcaster: Broadcaster):
        # Given
        client = broadcaster.connect()

        # When
        response = await test_async_client.post(
            "/api/events/subscribe",
            json={"clientId": client.client_id, "orderId": "ORD-TEST-1"},
        )

        # Then
        assert response.status_code == HTTPStatus.OK
        assert response.json() == {
            "success": True,
            "message": "Subscribed to order ORD-TEST-1",
        }
        assert client.order_ids == {"ORD-TEST-1"}

    @pytest.mark.asyncio
    async def test_unsubscribe(
        self, test_async_client: AsyncClient, broadcaster: Broadcaster
    ):
        # Given
        client = broadcaster.connect(order_id="ORD-TEST-1")

        # When
        response = await test_async_client.post(
            "/api/events/unsubscribe",
            json={"clientId": client.client_id, "orderId": "ORD-TEST-1"},
        )

        # Then
        assert response.status_code == HTTPStatus.OK
        assert client.order_ids == frozenset()

    @pytest.mark.asyncio
    async def test_subscribe_unknown_client(self, test_async_client: AsyncClient):
        response = await test_async_client.post(
            "/api/events/subscribe",
            json={"clientId": "client_missing", "orderId": "ORD-TEST-1"},
        )

        assert response.status_code == HTTPStatus.NOT_FOUND
        assert response.json() == {"error": "Client not found"}

    @pytest.mark.asyncio
    async def test_subscribe_requires_both_fields(self, test_async_client: AsyncClient):
        response = await test_async_client.post(
            "/api/events/subscribe", json={"orderId": "ORD-TEST-1"}
        )

        assert response.status_code == HTTPStatus.BAD_REQUEST


class FakeWebSocket:
    def __init__(self, frames):
        self._frames = list(frames)

    async def receive_json(self):
        if not self._frames:
            raise WebSocketDisconnect(code=1000)
        return self._frames.pop(0)


class BrokenWebSocket:
    def __init__(self):
        self.sent = []

    async def accept(self):
        pass

    async def receive_json(self):
        raise ValueError("frame reader crashed")

    async def send_json(self, payload):
        self.sent.append(payload)


class TestOrderUpdatesSocket:
    @pytest.mark.asyncio
    async def test_listener_failure_is_raised_not_lost(self, broadcaster: Broadcaster):
        # Given
        websocket = BrokenWebSocket()

        # When / Then
        with pytest.raises(ValueError, match="frame reader crashed"):
            await order_updates_socket(
                websocket, order_id="ORD-A", broadcaster=broadcaster
            )
        assert broadcaster.client_count == 0
        assert websocket.sent[0]["type"] == "connection_status"

    @pytest.mark.asyncio
    async def test_listen_applies_subscription_frames(self, broadcaster: Broadcaster):
        # Given
        client = broadcaster.connect()
        websocket = FakeWebSocket(
            [
                {"type": "subscribe_order", "orderId": "ORD-A"},
                {"type": "subscribe_order", "orderId": "ORD-B"},
                {"type": "unsubscribe_order", "orderId": "ORD-A"},
                {"type": "ping"},
            ]
        )

        # When
        await _listen(websocket, broadcaster, client)

        # Then - subscriptions applied, then the disconnect evicts the client
        assert client.order_ids == {"ORD-B"}
        assert broadcaster.client_count == 0

    def test_socket_receives_updates_for_its_order(self, fast_api_app):
        with TestClient(fast_api_app) as client:
            # Given
            for order_id in ("ORD-A", "ORD-B"):
                created = client.post(
                    "/api/orders",
                    json={
                        "orderId": order_id,
                        "customerId": "CUST-123",
                        "customerName": "John Doe",
                        "totalAmount": "89.99",
                        "itemCount": 3,
                    },
                )
                assert created.status_code == HTTPStatus.OK

            with client.websocket_connect("/ws?orderId=ORD-A") as websocket:
                status = websocket.receive_json()

                # When
                client.post("/api/orders/ORD-B/trigger-update", json={"status": "shipped"})
                client.post(
                    "/api/orders/ORD-A/trigger-update", json={"status": "confirmed"}
                )
                update = websocket.receive_json()

            # Then
            assert status["type"] == "connection_status"
            assert status["subscribedTo"] == "ORD-A"
            assert update["type"] == "order_update"
            assert update["data"]["orderId"] == "ORD-A"
            assert update["data"]["status"] == "confirmed"
