from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from fulfillment.models.catalog import Customer


class CustomerRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_customer(self, customer_id: int) -> Optional[Customer]:
        return await self.session.get(Customer, customer_id)
