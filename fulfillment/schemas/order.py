from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from fulfillment.models.order import OrderStatus


class OrderItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)


class OrderCreate(BaseModel):
    customer_id: int
    shipping_address: Optional[str] = Field(default=None, max_length=500)
    items: List[OrderItemCreate] = Field(min_length=1)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    order_id: Optional[int] = None


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: int
    customer_id: int
    status: OrderStatus
    total_amount: Decimal
    shipping_address: Optional[str] = None
    shipped_date: Optional[datetime] = None
    delivered_date: Optional[datetime] = None
    items: List[OrderItemResponse]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrderEventItem(BaseModel):
    product_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class OrderCreatedEvent(BaseModel):
    order_id: int
    customer_id: int
    items: List[OrderEventItem]
    total_amount: Decimal
    created_at: datetime


class OrderStatusChangedEvent(BaseModel):
    order_id: int
    previous_status: OrderStatus
    status: OrderStatus
    changed_at: datetime


class OrderDeletedEvent(BaseModel):
    order_id: int
    customer_id: int
    status: OrderStatus
    stock_released: bool
    deleted_at: datetime
