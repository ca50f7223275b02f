import asyncio
import json
import logging
from contextlib import suppress
from http import HTTPStatus
from typing import AsyncIterator

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import Field

from order_monitor.application.container import ApplicationContainer
from order_monitor.core.models import CamelModel
from order_monitor.infrastructure.broadcaster import Broadcaster, LiveClient, UnknownClient

logger = logging.getLogger(__name__)

router = APIRouter()

KEEPALIVE_SECONDS = 15.0

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class SubscriptionRequest(CamelModel):
    client_id: str = Field(min_length=1)
    order_id: str = Field(min_length=1)


async def event_stream(
    client: LiveClient,
    broadcaster: Broadcaster,
    keepalive_seconds: float = KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """Render a client's events as SSE frames until it is closed.

    The client is evicted however the stream ends, including cancellation
    when the HTTP connection drops.
    """
    try:
        while True:
            try:
                payload = await asyncio.wait_for(client.receive(), keepalive_seconds)
            except asyncio.TimeoutError:
                yield ": keep-alive\n\n"
                continue
            if payload is None:
                break
            yield f"data: {json.dumps(payload)}\n\n"
    finally:
        broadcaster.disconnect(client.client_id)


@router.get("/api/events")
@inject
async def open_event_stream(
    order_id: str | None = Query(default=None, alias="orderId"),
    broadcaster: Broadcaster = Depends(
        Provide[ApplicationContainer.infrastructure_container.broadcaster]
    ),
):
    client = broadcaster.connect(order_id=order_id)
    return StreamingResponse(
        event_stream(client, broadcaster),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post("/api/events/subscribe", status_code=HTTPStatus.OK)
@inject
async def subscribe(
    request: SubscriptionRequest,
    broadcaster: Broadcaster = Depends(
        Provide[ApplicationContainer.infrastructure_container.broadcaster]
    ),
):
    try:
        broadcaster.subscribe(request.client_id, request.order_id)
    except UnknownClient:
        return JSONResponse(
            content={"error": "Client not found"}, status_code=HTTPStatus.NOT_FOUND
        )
    return {"success": True, "message": f"Subscribed to order {request.order_id}"}


@router.post("/api/events/unsubscribe", status_code=HTTPStatus.OK)
@inject
async def unsubscribe(
    request: SubscriptionRequest,
    broadcaster: Broadcaster = Depends(
        Provide[ApplicationContainer.infrastructure_container.broadcaster]
    ),
):
    try:
        broadcaster.unsubscribe(request.client_id, request.order_id)
    except UnknownClient:
        return JSONResponse(
            content={"error": "Client not found"}, status_code=HTTPStatus.NOT_FOUND
        )
    return {"success": True, "message": f"Unsubscribed from order {request.order_id}"}


async def _listen(websocket: WebSocket, broadcaster: Broadcaster, client: LiveClient):
    """Apply subscribe/unsubscribe frames sent by the browser."""
    try:
        while True:
            frame = await websocket.receive_json()
            frame_type = frame.get("type") if isinstance(frame, dict) else None
            order_id = frame.get("orderId") if isinstance(frame, dict) else None

            if frame_type == "subscribe_order" and order_id:
                broadcaster.subscribe(client.client_id, order_id)
            elif frame_type == "unsubscribe_order" and order_id:
                broadcaster.unsubscribe(client.client_id, order_id)
            else:
                logger.warning(f"Ignoring frame from {client.client_id}: {frame!r}")
    except (WebSocketDisconnect, UnknownClient) as e:
        logger.info(f"Stopped listening to {client.client_id}: {e!r}")
    except json.JSONDecodeError as e:
        logger.warning(f"Closing {client.client_id} after undecodable frame: {e}")
    finally:
        broadcaster.disconnect(client.client_id)


@router.websocket("/ws")
@inject
async def order_updates_socket(
    websocket: WebSocket,
    order_id: str | None = Query(default=None, alias="orderId"),
    broadcaster: Broadcaster = Depends(
        Provide[ApplicationContainer.infrastructure_container.broadcaster]
    ),
):
    await websocket.accept()
    client = broadcaster.connect(order_id=order_id)
    listener = asyncio.create_task(_listen(websocket, broadcaster, client))
    try:
        async for payload in client.events():
            await websocket.send_json(payload)
    except (WebSocketDisconnect, RuntimeError) as e:
        logger.info(f"Socket for {client.client_id} closed: {e}")
    finally:
        listener.cancel()
        with suppress(asyncio.CancelledError):
            await listener
        broadcaster.disconnect(client.client_id)
