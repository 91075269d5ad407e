import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import event

from fulfillment.core.database import unit_of_work
from fulfillment.core.exceptions import InsufficientStock, ProductNotFound, ValidationError
from fulfillment.repositories.catalog import CatalogRepository
from fulfillment.services.inventory import InventoryLedger


async def reserve(session_maker, product_id: int, quantity: int):
    async with session_maker() as session:
        ledger = InventoryLedger(CatalogRepository(session))
        async with unit_of_work(session):
            return await ledger.reserve(product_id, quantity)


@pytest.mark.asyncio
async def test_reserve_decrements_stock(test_async_session_maker, make_product, stock_of):
    product_id = await make_product(price="12.50", stock=10)

    reservation = await reserve(test_async_session_maker, product_id, 4)

    assert reservation.product_id == product_id
    assert reservation.quantity == 4
    assert reservation.unit_price == Decimal("12.50")
    assert await stock_of(product_id) == 6


@pytest.mark.asyncio
async def test_reserve_whole_stock(test_async_session_maker, make_product, stock_of):
    product_id = await make_product(stock=3)

    await reserve(test_async_session_maker, product_id, 3)

    assert await stock_of(product_id) == 0


@pytest.mark.asyncio
async def test_reserve_more_than_available_fails_without_mutation(test_async_session_maker, make_product, stock_of):
    product_id = await make_product(stock=2)

    with pytest.raises(InsufficientStock) as exc_info:
        await reserve(test_async_session_maker, product_id, 3)

    assert exc_info.value.requested == 3
    assert exc_info.value.available == 2
    assert await stock_of(product_id) == 2


@pytest.mark.asyncio
async def test_reserve_unknown_product(test_async_session_maker):
    with pytest.raises(ProductNotFound) as exc_info:
        await reserve(test_async_session_maker, 999, 1)

    assert exc_info.value.product_id == 999


@pytest.mark.asyncio
async def test_reserve_rejects_non_positive_quantity(test_async_session_maker, make_product, stock_of):
    product_id = await make_product(stock=5)

    with pytest.raises(ValidationError):
        await reserve(test_async_session_maker, product_id, 0)

    assert await stock_of(product_id) == 5


@pytest.mark.asyncio
async def test_release_is_applied_once_per_reservation(test_async_session_maker, make_product, stock_of):
    product_id = await make_product(stock=10)

    async with test_async_session_maker() as session:
        ledger = InventoryLedger(CatalogRepository(session))
        async with unit_of_work(session):
            reservation = await ledger.reserve(product_id, 4)
            await ledger.release(reservation)
            await ledger.release(reservation)

    assert reservation.released is True
    assert await stock_of(product_id) == 10


@pytest.mark.asyncio
async def test_rolled_back_reservation_restores_stock(test_async_session_maker, make_product, stock_of):
    product_id = await make_product(stock=10)

    with pytest.raises(RuntimeError):
        async with test_async_session_maker() as session:
            ledger = InventoryLedger(CatalogRepository(session))
            async with unit_of_work(session):
                await ledger.reserve(product_id, 7)
                raise RuntimeError("later step failed")

    assert await stock_of(product_id) == 10


@pytest.mark.asyncio
async def test_concurrent_reservations_never_oversell(test_async_session_maker, make_product, stock_of):
    product_id = await make_product(stock=10)

    results = await asyncio.gather(
        *(reserve(test_async_session_maker, product_id, 3) for _ in range(5)),
        return_exceptions=True
    )

    succeeded = [r for r in results if not isinstance(r, Exception)]
    failed = [r for r in results if isinstance(r, Exception)]

    assert len(succeeded) == 3
    assert all(isinstance(e, InsufficientStock) for e in failed)
    assert await stock_of(product_id) == 1


@pytest.mark.asyncio
async def test_lock_products_skips_unknown_ids(test_async_session_maker, make_product):
    product_1 = await make_product(name="First")
    product_2 = await make_product(name="Second")

    async with test_async_session_maker() as session:
        async with unit_of_work(session):
            products = await CatalogRepository(session).lock_products([product_2, 999, product_1, product_2])

    assert list(products) == [product_1, product_2]
    assert products[product_2].name == "Second"


@pytest.mark.asyncio
async def test_lock_products_selects_rows_in_id_order(test_engine, test_async_session_maker, make_product):
    product_id = await make_product()
    statements = []

    def capture(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(test_engine.sync_engine, "before_cursor_execute", capture)
    try:
        async with test_async_session_maker() as session:
            async with unit_of_work(session):
                await CatalogRepository(session).lock_products([product_id])
    finally:
        event.remove(test_engine.sync_engine, "before_cursor_execute", capture)

    [select_statement] = [s for s in statements if s.lstrip().upper().startswith("SELECT")]
    assert "ORDER BY products.id" in select_statement
