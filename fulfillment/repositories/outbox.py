from datetime import datetime, timedelta, timezone
from typing import List
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from fulfillment.models.outbox import OutboxMessage


class OutboxRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, order_id: int, routing_key: str, payload: str) -> OutboxMessage:
        message = OutboxMessage(order_id=order_id, routing_key=routing_key, payload=payload)
        self.session.add(message)
        await self.session.flush()
        return message

    async def get_pending(self, limit: int = 100, max_attempts: int = 3) -> List[OutboxMessage]:
        result = await self.session.execute(
            select(OutboxMessage)
            .where(OutboxMessage.published_at.is_(None))
            .where(OutboxMessage.attempts < max_attempts)
            .order_by(OutboxMessage.created_at, OutboxMessage.id)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def mark_published(self, message: OutboxMessage) -> None:
        message.published_at = datetime.now(timezone.utc)
        message.last_error = None
        await self.session.flush()

    async def mark_failed(self, message: OutboxMessage, error: str) -> None:
        message.attempts += 1
        message.last_error = error
        await self.session.flush()

    async def purge_published(self, older_than_hours: int = 24) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(hours=older_than_hours)
        result = await self.session.execute(
            delete(OutboxMessage)
            .where(OutboxMessage.published_at.isnot(None))
            .where(OutboxMessage.published_at < cutoff)
        )
        return result.rowcount
