from order_monitor.core.models import OrderStatusEnum

# Forward progression followed by the simulator. Cancelled is reachable only
# through explicit updates.
STATUS_CHAIN: dict[OrderStatusEnum, OrderStatusEnum] = {
    OrderStatusEnum.PENDING: OrderStatusEnum.CONFIRMED,
    OrderStatusEnum.CONFIRMED: OrderStatusEnum.PROCESSING,
    OrderStatusEnum.PROCESSING: OrderStatusEnum.SHIPPED,
    OrderStatusEnum.SHIPPED: OrderStatusEnum.DELIVERED,
}

STATUS_TITLES: dict[str, str] = {
    OrderStatusEnum.PENDING: "Order Placed",
    OrderStatusEnum.CONFIRMED: "Order Confirmed",
    OrderStatusEnum.PROCESSING: "Processing",
    OrderStatusEnum.SHIPPED: "Shipped",
    OrderStatusEnum.DELIVERED: "Delivered",
    OrderStatusEnum.CANCELLED: "Cancelled",
}

STATUS_DESCRIPTIONS: dict[str, str] = {
    OrderStatusEnum.PENDING: "Your order has been placed and is awaiting confirmation.",
    OrderStatusEnum.CONFIRMED: (
        "Your order has been confirmed and is being prepared for processing."
    ),
    OrderStatusEnum.PROCESSING: "Items are being prepared and packaged for shipment.",
    OrderStatusEnum.SHIPPED: "Your order has been shipped and is on its way.",
    OrderStatusEnum.DELIVERED: "Your order has been delivered successfully.",
    OrderStatusEnum.CANCELLED: "Your order has been cancelled.",
}

SIMULATED_DURATIONS = ("2m", "5m", "15m", "30m", "1h", "2h")


def next_status(status: str) -> OrderStatusEnum | None:
    return STATUS_CHAIN.get(status)


def status_title(status: str) -> str:
    return STATUS_TITLES.get(status, "Status Update")


def status_description(status: str) -> str:
    return STATUS_DESCRIPTIONS.get(status, "Status has been updated.")
