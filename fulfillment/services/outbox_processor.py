import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fulfillment.core.broker import broker
from fulfillment.models.outbox import OutboxMessage
from fulfillment.repositories.outbox import OutboxRepository

logger = logging.getLogger(__name__)


class OutboxProcessor:
    """Publishes committed order events from the outbox table."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        poll_interval: int = 5,
        batch_size: int = 100,
        max_retries: int = 3,
        purge_every: int = 720,
        retention_hours: int = 24
    ) -> None:
        self.session_maker = session_maker
        self.poll_interval = poll_interval
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.purge_every = purge_every
        self.retention_hours = retention_hours
        self._polls = 0
        self._running = False
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        if self._running:
            logger.warning("OutboxProcessor is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._process_loop())
        logger.info("OutboxProcessor started")

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("OutboxProcessor stopped")

    async def _process_loop(self) -> None:
        while self._running:
            try:
                await self.poll_once()
            except Exception as e:
                logger.error(f"Error in outbox processor loop: {e}", exc_info=True)

            await asyncio.sleep(self.poll_interval)

    async def poll_once(self) -> int:
        """Publish one batch, purging old published rows every ``purge_every`` polls."""
        published = await self.process_batch()
        self._polls += 1
        if self.purge_every and self._polls % self.purge_every == 0:
            await self.purge_published(self.retention_hours)
        return published

    async def process_batch(self) -> int:
        """Publish one batch of pending messages; returns how many went out."""
        async with self.session_maker() as session:
            repository = OutboxRepository(session)

            try:
                messages = await repository.get_pending(limit=self.batch_size, max_attempts=self.max_retries)

                if not messages:
                    await session.commit()
                    return 0

                logger.debug(f"Processing {len(messages)} outbox messages")

                published = 0
                for message in messages:
                    if await self._publish(message, repository):
                        published += 1

                await session.commit()
                return published

            except Exception as e:
                logger.error(f"Error processing outbox batch: {e}", exc_info=True)
                await session.rollback()
                raise

    async def _publish(self, message: OutboxMessage, repository: OutboxRepository) -> bool:
        try:
            await broker.publish(message.routing_key, message.payload.encode())
        except Exception as e:
            error_msg = f"{type(e).__name__}: {str(e)}"
            await repository.mark_failed(message, error_msg)
            logger.error(
                f"Failed to publish outbox message {message.id} "
                f"(attempt {message.attempts}/{self.max_retries}): {error_msg}"
            )
            return False

        await repository.mark_published(message)
        logger.info(
            f"Published outbox message {message.id} "
            f"(event: {message.routing_key}, order: {message.order_id})"
        )
        return True

    async def purge_published(self, older_than_hours: Optional[int] = None) -> int:
        async with self.session_maker() as session:
            repository = OutboxRepository(session)
            try:
                deleted_count = await repository.purge_published(
                    self.retention_hours if older_than_hours is None else older_than_hours
                )
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            if deleted_count > 0:
                logger.info(f"Purged {deleted_count} published outbox messages")
            return deleted_count
