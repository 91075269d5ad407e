import logging
from dataclasses import dataclass
from decimal import Decimal

from fulfillment.core.exceptions import InsufficientStock, ProductNotFound, ValidationError
from fulfillment.repositories.catalog import CatalogRepository

logger = logging.getLogger(__name__)


@dataclass
class Reservation:
    product_id: int
    quantity: int
    unit_price: Decimal
    released: bool = False


class InventoryLedger:
    """Check-and-reserve / release over product stock.

    Reservations become durable only when the caller's transaction commits;
    a rollback undoes them along with everything else in that transaction.
    """

    def __init__(self, catalog: CatalogRepository) -> None:
        self.catalog = catalog

    async def reserve(self, product_id: int, quantity: int) -> Reservation:
        if quantity <= 0:
            raise ValidationError(f"Quantity for product {product_id} must be positive, got {quantity}")

        reserved = await self.catalog.reserve_stock(product_id, quantity)
        product = await self.catalog.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        if not reserved:
            logger.warning(
                f"Reservation rejected for product {product_id}: "
                f"requested {quantity}, available {product.stock_quantity}"
            )
            raise InsufficientStock(product_id, requested=quantity, available=product.stock_quantity)

        logger.debug(f"Reserved {quantity} of product {product_id}, {product.stock_quantity} left")
        return Reservation(product_id=product_id, quantity=quantity, unit_price=product.price)

    async def release(self, reservation: Reservation) -> None:
        if reservation.released:
            return
        await self.release_quantity(reservation.product_id, reservation.quantity)
        reservation.released = True

    async def release_quantity(self, product_id: int, quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError(f"Quantity for product {product_id} must be positive, got {quantity}")
        await self.catalog.release_stock(product_id, quantity)
        logger.debug(f"Released {quantity} of product {product_id}")
