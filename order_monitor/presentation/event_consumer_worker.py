import logging
from typing import Any

from pydantic import ValidationError

from order_monitor.application.record_feed_events import (
    ApplyOrderUpdateUseCase,
    RecordOrderMessageUseCase,
)
from order_monitor.infrastructure.broadcaster import Broadcaster
from order_monitor.infrastructure.kafka_consumer import KafkaEventConsumer
from order_monitor.infrastructure.repositories import DoesNotExist

logger = logging.getLogger(__name__)


class EventConsumerWorker:
    """Feeds order events from Kafka into the store and on to live clients."""

    def __init__(
        self,
        apply_order_update_use_case: ApplyOrderUpdateUseCase,
        record_order_message_use_case: RecordOrderMessageUseCase,
        broadcaster: Broadcaster,
        bootstrap_servers: str,
        order_topic: str = "order-updates",
        status_topic: str = "order-status",
        group_id: str = "order-monitor-group",
    ):
        self._apply_order_update = apply_order_update_use_case
        self._record_order_message = record_order_message_use_case
        self._broadcaster = broadcaster
        self._order_topic = order_topic
        self._status_topic = status_topic
        self._consumer = KafkaEventConsumer(
            bootstrap_servers=bootstrap_servers,
            topics=[order_topic, status_topic],
            group_id=group_id,
            process_message_callback=self._process_message,
        )

    async def _process_message(self, topic: str, event_data: dict[str, Any]):
        try:
            if topic == self._order_topic:
                await self._apply_order_update(event_data)
            elif topic == self._status_topic:
                await self._record_order_message(event_data)
            else:
                logger.warning(f"Unknown topic: {topic}")

        except ValidationError as e:
            logger.warning(f"Skipping malformed event from {topic}: {e}")
        except DoesNotExist as e:
            logger.warning(f"Skipping event from {topic}: {e}")

    async def run(self):
        try:
            await self._consumer.start()
        except Exception as e:
            # The API keeps serving the store; dashboards see connected=False.
            logger.error(
                f"Kafka feed unavailable, continuing without it: {e}", exc_info=True
            )
            return

        self._broadcaster.set_feed_status(True)
        try:
            await self._consumer.consume()
        finally:
            self._broadcaster.set_feed_status(False)
            await self._consumer.stop()
