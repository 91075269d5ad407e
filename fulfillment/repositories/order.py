from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fulfillment.models.order import Order


class OrderRepository:
    """Order persistence. Callers own the transaction; nothing here commits."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def insert(self, order: Order) -> Order:
        self.session.add(order)
        await self.session.flush()
        return order

    async def get_by_id(self, order_id: int) -> Optional[Order]:
        result = await self.session.execute(
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, order_id: int) -> Optional[Order]:
        result = await self.session.execute(
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> List[Order]:
        result = await self.session.execute(
            select(Order)
            .order_by(Order.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_by_customer(self, customer_id: int) -> List[Order]:
        result = await self.session.execute(
            select(Order)
            .where(Order.customer_id == customer_id)
            .order_by(Order.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def update(self, order: Order) -> Order:
        await self.session.flush()
        return order

    async def delete(self, order: Order) -> None:
        await self.session.delete(order)
        await self.session.flush()
