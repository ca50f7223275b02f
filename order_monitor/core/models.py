from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderStatusEnum(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class MessageTypeEnum(StrEnum):
    STATUS_UPDATE = "status_update"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class OperatorEnum(StrEnum):
    SYSTEM = "System"
    MANUAL = "Manual"


class Order(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: int
    order_id: str
    customer_id: str
    customer_name: str
    total_amount: Decimal
    item_count: int = Field(gt=0)
    status: OrderStatusEnum
    created_at: datetime
    updated_at: datetime


class OrderMessage(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: int
    order_id: str
    message_type: MessageTypeEnum
    content: str
    timestamp: datetime
    metadata: dict[str, Any] | None = None


class OrderStatusHistory(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: int
    order_id: str
    status: OrderStatusEnum
    title: str
    description: str
    operator: str
    duration: str | None = None
    timestamp: datetime


# Live-update channel payloads


class LiveEvent(CamelModel):
    type: str

    def scope(self) -> str | None:
        """Order id the event is about, None when every client should get it."""
        return None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ConnectionStatusEvent(LiveEvent):
    type: Literal["connection_status"] = "connection_status"
    connected: bool
    timestamp: datetime
    client_id: str | None = None
    subscribed_to: str | None = None


class OrderUpdateEvent(LiveEvent):
    type: Literal["order_update"] = "order_update"
    data: Order

    def scope(self) -> str | None:
        return self.data.order_id


class MessageUpdateEvent(LiveEvent):
    type: Literal["message_update"] = "message_update"
    order_id: str
    message_type: MessageTypeEnum
    content: str
    timestamp: datetime

    def scope(self) -> str | None:
        return self.order_id
