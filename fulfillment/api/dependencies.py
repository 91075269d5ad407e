from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fulfillment.core.config import settings
from fulfillment.core.database import get_db
from fulfillment.services.order import OrderService


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    return OrderService(db, release_stock_on_delete=settings.release_stock_on_delete)
