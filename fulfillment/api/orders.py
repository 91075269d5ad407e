from typing import List

from fastapi import APIRouter, Depends, Response, status

from fulfillment.api.dependencies import get_order_service
from fulfillment.services.order import OrderService
from fulfillment.schemas.order import OrderCreate, OrderResponse, OrderStatusUpdate

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    service: OrderService = Depends(get_order_service)
) -> OrderResponse:
    return await service.create_order(
        order_data.customer_id,
        order_data.items,
        shipping_address=order_data.shipping_address
    )


@router.get("", response_model=List[OrderResponse])
async def list_orders(
    service: OrderService = Depends(get_order_service)
) -> List[OrderResponse]:
    return await service.list_orders()


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    service: OrderService = Depends(get_order_service)
) -> OrderResponse:
    return await service.get_order(order_id)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    update: OrderStatusUpdate,
    service: OrderService = Depends(get_order_service)
) -> OrderResponse:
    return await service.update_order_status(order_id, update.status, body_order_id=update.order_id)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(
    order_id: int,
    service: OrderService = Depends(get_order_service)
) -> Response:
    await service.delete_order(order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
