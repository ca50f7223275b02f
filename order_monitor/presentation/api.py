import logging
from http import HTTPStatus

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from order_monitor.application.container import ApplicationContainer
from order_monitor.application.create_order import CreateOrderUseCase, OrderDTO
from order_monitor.application.simulate_status import TriggerOrderUpdateUseCase
from order_monitor.core.models import (
    CamelModel,
    Order,
    OrderMessage,
    OrderStatusEnum,
    OrderStatusHistory,
)
from order_monitor.infrastructure.repositories import DoesNotExist, DuplicateKey
from order_monitor.infrastructure.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

DEFAULT_ORDER_LIMIT = 10


class OrderCreateRequest(OrderDTO):
    pass


class OrderResponseModel(Order):
    pass


class TriggerUpdateRequest(CamelModel):
    status: OrderStatusEnum


def _error(message: str, status_code: HTTPStatus) -> JSONResponse:
    return JSONResponse(content={"error": message}, status_code=status_code)


def _parse_limit(raw: str | None) -> int:
    """Positive integer limit, or the default for anything else."""
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_ORDER_LIMIT
    return limit if limit > 0 else DEFAULT_ORDER_LIMIT


@router.get(
    "/orders",
    status_code=HTTPStatus.OK,
    response_model=list[OrderResponseModel],
)
@inject
async def list_orders(
    limit: str | None = Query(default=None),
    unit_of_work: UnitOfWork = Depends(
        Provide[ApplicationContainer.infrastructure_container.unit_of_work]
    ),
):
    try:
        async with unit_of_work() as uow:
            return await uow.orders.list_recent(limit=_parse_limit(limit))
    except Exception:
        logger.exception("Failed to fetch orders")
        return _error("Failed to fetch orders", HTTPStatus.INTERNAL_SERVER_ERROR)


@router.post(
    "/orders",
    status_code=HTTPStatus.OK,
    response_model=OrderResponseModel,
)
@inject
async def create_order(
    order: OrderCreateRequest,
    create_order_use_case: CreateOrderUseCase = Depends(
        Provide[ApplicationContainer.create_order_use_case]
    ),
):
    try:
        return await create_order_use_case(order=order)
    except DuplicateKey:
        return _error(f"Order {order.order_id} already exists", HTTPStatus.CONFLICT)
    except Exception:
        logger.exception(f"Failed to create order {order.order_id}")
        return _error("Failed to create order", HTTPStatus.INTERNAL_SERVER_ERROR)


@router.get(
    "/orders/{order_id}",
    status_code=HTTPStatus.OK,
    response_model=OrderResponseModel,
)
@inject
async def get_order(
    order_id: str,
    unit_of_work: UnitOfWork = Depends(
        Provide[ApplicationContainer.infrastructure_container.unit_of_work]
    ),
):
    try:
        async with unit_of_work() as uow:
            return await uow.orders.get_by_id(order_id)
    except DoesNotExist:
        return _error("Order not found", HTTPStatus.NOT_FOUND)
    except Exception:
        logger.exception(f"Failed to fetch order {order_id}")
        return _error("Failed to fetch order", HTTPStatus.INTERNAL_SERVER_ERROR)


@router.get(
    "/orders/{order_id}/messages",
    status_code=HTTPStatus.OK,
    response_model=list[OrderMessage],
)
@inject
async def get_order_messages(
    order_id: str,
    unit_of_work: UnitOfWork = Depends(
        Provide[ApplicationContainer.infrastructure_container.unit_of_work]
    ),
):
    try:
        async with unit_of_work() as uow:
            return await uow.messages.list_for_order(order_id)
    except Exception:
        logger.exception(f"Failed to fetch messages for {order_id}")
        return _error("Failed to fetch messages", HTTPStatus.INTERNAL_SERVER_ERROR)


@router.delete("/orders/{order_id}/messages", status_code=HTTPStatus.OK)
@inject
async def clear_order_messages(
    order_id: str,
    unit_of_work: UnitOfWork = Depends(
        Provide[ApplicationContainer.infrastructure_container.unit_of_work]
    ),
):
    try:
        async with unit_of_work(order_id) as uow:
            await uow.messages.clear(order_id)
            await uow.commit()
        return {"success": True}
    except Exception:
        logger.exception(f"Failed to clear messages for {order_id}")
        return _error("Failed to clear messages", HTTPStatus.INTERNAL_SERVER_ERROR)


@router.get(
    "/orders/{order_id}/history",
    status_code=HTTPStatus.OK,
    response_model=list[OrderStatusHistory],
)
@inject
async def get_order_history(
    order_id: str,
    unit_of_work: UnitOfWork = Depends(
        Provide[ApplicationContainer.infrastructure_container.unit_of_work]
    ),
):
    try:
        async with unit_of_work() as uow:
            return await uow.history.list_for_order(order_id)
    except Exception:
        logger.exception(f"Failed to fetch history for {order_id}")
        return _error("Failed to fetch history", HTTPStatus.INTERNAL_SERVER_ERROR)


@router.post("/orders/{order_id}/trigger-update", status_code=HTTPStatus.OK)
@inject
async def trigger_order_update(
    order_id: str,
    request: TriggerUpdateRequest,
    trigger_order_update_use_case: TriggerOrderUpdateUseCase = Depends(
        Provide[ApplicationContainer.trigger_order_update_use_case]
    ),
):
    try:
        await trigger_order_update_use_case(order_id=order_id, status=request.status)
        return {"success": True, "message": "Order update triggered"}
    except DoesNotExist:
        logger.warning(f"Trigger for unknown order {order_id} ignored")
        return {"success": True, "message": "Order update triggered"}
    except Exception:
        logger.exception(f"Failed to trigger update for {order_id}")
        return _error("Failed to trigger update", HTTPStatus.INTERNAL_SERVER_ERROR)
