import logging
from typing import Optional
import aio_pika
from aio_pika import ExchangeType
from aio_pika.abc import AbstractExchange, AbstractRobustConnection, AbstractRobustChannel

from fulfillment.core.config import settings

logger = logging.getLogger(__name__)

ORDERS_EXCHANGE = "orders"


class RabbitMQBroker:
    def __init__(self) -> None:
        self.connection: Optional[AbstractRobustConnection] = None
        self.channel: Optional[AbstractRobustChannel] = None
        self.exchange: Optional[AbstractExchange] = None

    @property
    def is_connected(self) -> bool:
        return self.connection is not None and not self.connection.is_closed

    async def connect(self, url: Optional[str] = None) -> None:
        url = url or settings.rabbitmq_url
        if not url:
            raise RuntimeError("RabbitMQ URL is not configured")

        self.connection = await aio_pika.connect_robust(url)
        self.channel = await self.connection.channel()
        await self.channel.set_qos(prefetch_count=settings.rabbitmq_prefetch_count)

        self.exchange = await self.channel.declare_exchange(
            ORDERS_EXCHANGE,
            ExchangeType.TOPIC,
            durable=True
        )

        logger.info("Connected to RabbitMQ")

    async def close(self) -> None:
        if self.channel:
            await self.channel.close()
        if self.connection:
            await self.connection.close()
        self.exchange = None
        logger.info("Disconnected from RabbitMQ")

    async def publish(self, routing_key: str, message: bytes) -> None:
        if not self.exchange:
            raise RuntimeError("Channel is not initialized")

        await self.exchange.publish(
            aio_pika.Message(
                body=message,
                content_type="application/json",
                delivery_mode=aio_pika.DeliveryMode.PERSISTENT
            ),
            routing_key=routing_key
        )
        logger.info(f"Published message to {routing_key}")


broker = RabbitMQBroker()
