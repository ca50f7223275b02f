import asyncio
import json
import logging
from typing import Any, Awaitable, Callable

from aiokafka import AIOKafkaConsumer

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str, dict[str, Any]], Awaitable[None]]


def _decode(raw: bytes | None) -> dict[str, Any] | None:
    if not raw:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.warning(f"Dropping undecodable message: {raw[:80]!r}")
        return None


class KafkaEventConsumer:
    def __init__(
        self,
        bootstrap_servers: str,
        topics: list[str],
        group_id: str,
        process_message_callback: MessageCallback,
        client_id: str = "order-monitor",
    ):
        self._bootstrap_servers = bootstrap_servers
        self._topics = topics
        self._group_id = group_id
        self._client_id = client_id
        self._process_message = process_message_callback
        self._consumer: AIOKafkaConsumer | None = None

    @property
    def is_connected(self) -> bool:
        return self._consumer is not None

    async def start(self):
        consumer = AIOKafkaConsumer(
            *self._topics,
            bootstrap_servers=self._bootstrap_servers,
            group_id=self._group_id,
            client_id=self._client_id,
            auto_offset_reset="latest",
            enable_auto_commit=True,
            value_deserializer=_decode,
        )
        try:
            await consumer.start()
        except Exception:
            await consumer.stop()
            raise
        self._consumer = consumer
        logger.info(f"Kafka consumer connected to {self._bootstrap_servers}")

    async def stop(self):
        if self.is_connected:
            consumer, self._consumer = self._consumer, None
            await consumer.stop()
            logger.info("Kafka consumer disconnected")

    async def consume(self):
        if not self._consumer:
            raise RuntimeError("Consumer not started")

        logger.info(f"Started consuming from topics: {self._topics}")

        try:
            async for message in self._consumer:
                if message.value is None:
                    continue
                try:
                    await self._process_message(message.topic, message.value)
                except Exception as e:
                    logger.error(
                        f"Error processing message from {message.topic} "
                        f"at offset {message.offset}: {e}",
                        exc_info=True,
                    )
                    continue

        except asyncio.CancelledError:
            logger.info("Consumer cancelled")
            raise
        except Exception as e:
            logger.error(f"Fatal error in consumer: {e}", exc_info=True)
