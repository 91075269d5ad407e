from typing import List

from fastapi import APIRouter, Depends

from fulfillment.api.dependencies import get_order_service
from fulfillment.services.order import OrderService
from fulfillment.schemas.order import OrderResponse

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("/{customer_id}/orders", response_model=List[OrderResponse])
async def list_customer_orders(
    customer_id: int,
    service: OrderService = Depends(get_order_service)
) -> List[OrderResponse]:
    return await service.list_orders_by_customer(customer_id)
