import asyncio
import logging
import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, AsyncIterator

from order_monitor.core.models import ConnectionStatusEvent, LiveEvent

logger = logging.getLogger(__name__)

ALL_ORDERS = "all_orders"

_CLOSED = object()


class UnknownClient(Exception):
    pass


class TransportError(Exception):
    pass


class ClientState(StrEnum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class LiveClient:
    """One live-update connection and the orders it follows.

    Events are queued in emission order and drained by the transport (SSE
    stream or WebSocket). A client with no explicit subscriptions follows all
    orders.
    """

    def __init__(
        self, client_id: str, order_ids: set[str] | None = None, max_pending: int = 100
    ):
        self.client_id = client_id
        self.state = ClientState.CONNECTING
        self._order_ids = order_ids
        self._max_pending = max_pending
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

    @property
    def follows_all(self) -> bool:
        return self._order_ids is None

    @property
    def order_ids(self) -> frozenset[str]:
        return frozenset(self._order_ids or ())

    def wants(self, order_id: str) -> bool:
        return self.follows_all or order_id in self._order_ids

    def subscribe(self, order_id: str) -> None:
        if self._order_ids is None:
            self._order_ids = set()
        self._order_ids.add(order_id)

    def unsubscribe(self, order_id: str) -> None:
        if self._order_ids is not None:
            self._order_ids.discard(order_id)

    def open(self) -> None:
        if self.state == ClientState.CONNECTING:
            self.state = ClientState.OPEN

    def send(self, payload: dict[str, Any]) -> None:
        if self.state == ClientState.CLOSED:
            raise TransportError(f"Client {self.client_id} is closed")
        if self._queue.qsize() >= self._max_pending:
            raise TransportError(
                f"Client {self.client_id} has {self._queue.qsize()} undelivered events"
            )
        self._queue.put_nowait(payload)

    def close(self) -> None:
        if self.state == ClientState.CLOSED:
            return
        self.state = ClientState.CLOSED
        self._queue.put_nowait(_CLOSED)

    async def receive(self) -> dict[str, Any] | None:
        """Next queued event, or None once the client is closed and drained."""
        payload = await self._queue.get()
        if payload is _CLOSED:
            # Leave the marker for any other reader.
            self._queue.put_nowait(_CLOSED)
            return None
        return payload

    async def events(self) -> AsyncIterator[dict[str, Any]]:
        while (payload := await self.receive()) is not None:
            yield payload


class Broadcaster:
    def __init__(self, max_pending: int = 100):
        self._max_pending = max_pending
        self._clients: dict[str, LiveClient] = {}
        self._feed_connected = False

    @property
    def feed_connected(self) -> bool:
        return self._feed_connected

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def get(self, client_id: str) -> LiveClient:
        client = self._clients.get(client_id)
        if client is None:
            raise UnknownClient(f"Client {client_id} not found")
        return client

    def connect(self, order_id: str | None = None) -> LiveClient:
        client = LiveClient(
            client_id=f"client_{uuid.uuid4().hex[:12]}",
            order_ids={order_id} if order_id else None,
            max_pending=self._max_pending,
        )
        client.send(
            ConnectionStatusEvent(
                connected=self.feed_connected,
                timestamp=datetime.now(UTC),
                client_id=client.client_id,
                subscribed_to=order_id or ALL_ORDERS,
            ).to_payload()
        )
        client.open()
        self._clients[client.client_id] = client

        logger.info(
            f"Client {client.client_id} connected for {order_id or ALL_ORDERS} "
            f"({self.client_count} active)"
        )
        return client

    def disconnect(self, client_id: str) -> bool:
        client = self._clients.pop(client_id, None)
        if client is None:
            return False

        client.close()
        logger.info(f"Client {client_id} disconnected ({self.client_count} active)")
        return True

    def subscribe(self, client_id: str, order_id: str) -> None:
        client = self.get(client_id)
        client.subscribe(order_id)
        logger.info(
            f"Client {client_id} subscribed to order {order_id}, "
            f"following {sorted(client.order_ids)}"
        )

    def unsubscribe(self, client_id: str, order_id: str) -> None:
        client = self.get(client_id)
        client.unsubscribe(order_id)
        logger.info(
            f"Client {client_id} unsubscribed from order {order_id}, "
            f"following {sorted(client.order_ids)}"
        )

    def publish(self, event: LiveEvent) -> int:
        """Deliver the event to interested clients and return how many got it.

        Order-scoped events reach only clients following that order, anything
        else reaches every client. Clients that fail a write are evicted.
        """
        order_id = event.scope()
        payload = event.to_payload()
        delivered = 0

        # Snapshot, eviction below mutates the table.
        for client in list(self._clients.values()):
            if order_id is not None and not client.wants(order_id):
                continue
            try:
                client.send(payload)
            except TransportError as e:
                logger.warning(f"Evicting client {client.client_id}: {e}")
                self.disconnect(client.client_id)
                continue
            delivered += 1

        logger.info(
            f"Broadcast {event.type} for {order_id or 'all clients'} "
            f"sent to {delivered}/{self.client_count} clients"
        )
        return delivered

    def set_feed_status(self, connected: bool) -> None:
        self._feed_connected = connected
        self.publish(
            ConnectionStatusEvent(connected=connected, timestamp=datetime.now(UTC))
        )
