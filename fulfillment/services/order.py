import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from fulfillment.core.database import unit_of_work
from fulfillment.core.exceptions import (
    CustomerNotFound,
    OrderNotFound,
    ProductNotFound,
    ValidationError,
)
from fulfillment.models.order import Order, OrderItem, OrderStatus
from fulfillment.repositories.catalog import CatalogRepository
from fulfillment.repositories.customer import CustomerRepository
from fulfillment.repositories.order import OrderRepository
from fulfillment.repositories.outbox import OutboxRepository
from fulfillment.schemas.order import (
    OrderCreatedEvent,
    OrderDeletedEvent,
    OrderEventItem,
    OrderItemCreate,
    OrderResponse,
    OrderStatusChangedEvent,
)
from fulfillment.services.inventory import InventoryLedger
from fulfillment.services.lifecycle import RESERVING_STATES, apply_transition
from fulfillment.services.pricing import order_total, price_line

logger = logging.getLogger(__name__)


class OrderService:
    """Order creation, lifecycle changes and lookups.

    Every operation runs as one unit of work on the given session: stock
    reservations, the order rows and the outbox event either all commit or
    all roll back.
    """

    def __init__(self, session: AsyncSession, release_stock_on_delete: bool = True) -> None:
        self.session = session
        self.release_stock_on_delete = release_stock_on_delete
        self.orders = OrderRepository(session)
        self.catalog = CatalogRepository(session)
        self.customers = CustomerRepository(session)
        self.outbox = OutboxRepository(session)
        self.ledger = InventoryLedger(self.catalog)

    async def create_order(
        self,
        customer_id: int,
        items: Sequence[OrderItemCreate],
        shipping_address: Optional[str] = None
    ) -> OrderResponse:
        if not items:
            raise ValidationError("Order must contain at least one item")
        for item in items:
            if item.quantity <= 0:
                raise ValidationError(
                    f"Quantity for product {item.product_id} must be positive, got {item.quantity}"
                )

        async with unit_of_work(self.session):
            if await self.customers.get_customer(customer_id) is None:
                raise CustomerNotFound(customer_id)

            # Row locks are taken in id order so concurrent orders cannot deadlock.
            products = await self.catalog.lock_products(item.product_id for item in items)
            reservations = []
            for item in items:
                if item.product_id not in products:
                    raise ProductNotFound(item.product_id)
                reservations.append(await self.ledger.reserve(item.product_id, item.quantity))

            lines = [price_line(r.unit_price, r.quantity) for r in reservations]
            order = Order(
                customer_id=customer_id,
                status=OrderStatus.PENDING.value,
                total_amount=order_total(lines),
                shipping_address=shipping_address,
                items=[
                    OrderItem(
                        product_id=reservation.product_id,
                        quantity=reservation.quantity,
                        unit_price=line.unit_price,
                        total_price=line.line_total
                    )
                    for reservation, line in zip(reservations, lines)
                ]
            )
            order = await self.orders.insert(order)

            event = OrderCreatedEvent(
                order_id=order.id,
                customer_id=order.customer_id,
                items=[
                    OrderEventItem(
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                        total_price=item.total_price
                    )
                    for item in order.items
                ],
                total_amount=order.total_amount,
                created_at=order.created_at
            )
            await self.outbox.add(order.id, "order.created", event.model_dump_json())

        logger.info(
            f"Order created: {order.id}, customer: {customer_id}, "
            f"items: {len(order.items)}, total: {order.total_amount}"
        )
        return OrderResponse.model_validate(order)

    async def update_order_status(
        self,
        order_id: int,
        status: OrderStatus,
        body_order_id: Optional[int] = None
    ) -> OrderResponse:
        if body_order_id is not None and body_order_id != order_id:
            raise ValidationError(f"Order id in body ({body_order_id}) does not match path ({order_id})")
        try:
            target = OrderStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown order status {status!r}") from e

        async with unit_of_work(self.session):
            order = await self.orders.get_for_update(order_id)
            if order is None:
                raise OrderNotFound(order_id)

            previous = OrderStatus(order.status)
            changed = apply_transition(order, target)

            if changed and target == OrderStatus.CANCELLED:
                for item in order.items:
                    await self.ledger.release_quantity(item.product_id, item.quantity)

            order = await self.orders.update(order)

            if changed:
                event = OrderStatusChangedEvent(
                    order_id=order.id,
                    previous_status=previous,
                    status=target,
                    changed_at=order.updated_at
                )
                await self.outbox.add(order.id, "order.status_changed", event.model_dump_json())

        if changed:
            logger.info(f"Order updated: {order.id}, status: {previous.value} -> {target.value}")
        else:
            logger.info(f"Order {order.id} already {target.value}, status unchanged")
        return OrderResponse.model_validate(order)

    async def get_order(self, order_id: int) -> OrderResponse:
        async with unit_of_work(self.session):
            order = await self.orders.get_by_id(order_id)
            if order is None:
                raise OrderNotFound(order_id)
        return OrderResponse.model_validate(order)

    async def list_orders(self) -> List[OrderResponse]:
        async with unit_of_work(self.session):
            orders = await self.orders.list_all()
        return [OrderResponse.model_validate(order) for order in orders]

    async def list_orders_by_customer(self, customer_id: int) -> List[OrderResponse]:
        async with unit_of_work(self.session):
            if await self.customers.get_customer(customer_id) is None:
                raise CustomerNotFound(customer_id)
            orders = await self.orders.list_by_customer(customer_id)
        return [OrderResponse.model_validate(order) for order in orders]

    async def delete_order(self, order_id: int) -> None:
        async with unit_of_work(self.session):
            order = await self.orders.get_for_update(order_id)
            if order is None:
                raise OrderNotFound(order_id)

            status = OrderStatus(order.status)
            release = self.release_stock_on_delete and status in RESERVING_STATES
            if release:
                for item in order.items:
                    await self.ledger.release_quantity(item.product_id, item.quantity)

            event = OrderDeletedEvent(
                order_id=order.id,
                customer_id=order.customer_id,
                status=status,
                stock_released=release,
                deleted_at=datetime.now(timezone.utc)
            )
            await self.orders.delete(order)
            await self.outbox.add(order_id, "order.deleted", event.model_dump_json())

        logger.info(f"Order deleted: {order_id}, stock released: {release}")
