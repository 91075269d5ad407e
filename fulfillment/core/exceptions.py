"""Domain errors raised by the fulfillment services.

The API layer maps each error to a transport status via ``http_status``;
services never build HTTP responses themselves.
"""
from typing import Optional


class FulfillmentError(Exception):
    code = "fulfillment_error"
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FulfillmentError):
    code = "validation_error"
    http_status = 400


class ProductNotFound(FulfillmentError):
    code = "product_not_found"
    http_status = 400

    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class InsufficientStock(FulfillmentError):
    code = "insufficient_stock"
    http_status = 409

    def __init__(self, product_id: int, requested: int, available: int) -> None:
        super().__init__(
            f"Not enough stock for product {product_id}: requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class CustomerNotFound(FulfillmentError):
    code = "customer_not_found"
    http_status = 404

    def __init__(self, customer_id: int) -> None:
        super().__init__(f"Customer {customer_id} not found")
        self.customer_id = customer_id


class OrderNotFound(FulfillmentError):
    code = "order_not_found"
    http_status = 404

    def __init__(self, order_id: int) -> None:
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class InvalidStatusTransition(FulfillmentError):
    code = "invalid_status_transition"
    http_status = 409

    def __init__(self, current: str, target: str, order_id: Optional[int] = None) -> None:
        subject = f"Order {order_id}" if order_id is not None else "Order"
        super().__init__(f"{subject} cannot move from {current} to {target}")
        self.current = current
        self.target = target
        self.order_id = order_id


class StoreUnavailable(FulfillmentError):
    code = "store_unavailable"
    http_status = 503
