from fulfillment.core.database import Base
from fulfillment.models.catalog import Customer, Product
from fulfillment.models.order import Order, OrderItem, OrderStatus
from fulfillment.models.outbox import OutboxMessage

__all__ = ["Base", "Customer", "Product", "Order", "OrderItem", "OrderStatus", "OutboxMessage"]
