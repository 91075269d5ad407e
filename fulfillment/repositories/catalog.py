from typing import Dict, Iterable, Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fulfillment.models.catalog import Product


class CatalogRepository:
    """Narrow access to the product catalog.

    Stock is only ever changed through ``reserve_stock`` and ``release_stock``;
    both are single UPDATE statements so the check and the decrement cannot
    be split by another writer.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_product(self, product_id: int) -> Optional[Product]:
        result = await self.session.execute(
            select(Product)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def lock_products(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        """Lock the given product rows in ascending id order.

        Returns the products that exist, keyed by id. Unknown ids are left out.
        """
        result = await self.session.execute(
            select(Product)
            .where(Product.id.in_(set(product_ids)))
            .order_by(Product.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {product.id: product for product in result.scalars()}

    async def reserve_stock(self, product_id: int, quantity: int) -> bool:
        result = await self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .where(Product.stock_quantity >= quantity)
            .values(stock_quantity=Product.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def release_stock(self, product_id: int, quantity: int) -> None:
        await self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock_quantity=Product.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )
