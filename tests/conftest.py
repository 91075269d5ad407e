import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from decimal import Decimal

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession

from fulfillment.main import app
from fulfillment.core.database import build_engine, get_db
from fulfillment.core.broker import broker
from fulfillment.models import Base, Customer, OutboxMessage, Product
from fulfillment.services.order import OrderService


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'fulfillment.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_async_session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def order_service(test_async_session_maker):
    async with test_async_session_maker() as session:
        yield OrderService(session)


@pytest_asyncio.fixture
async def client(test_async_session_maker):
    async def override_get_db():
        async with test_async_session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def make_customer(test_async_session_maker):
    counter = 0

    async def _make_customer(name: str = "Test Customer", address: str = "1 Test Street") -> int:
        nonlocal counter
        counter += 1
        async with test_async_session_maker() as session:
            customer = Customer(name=name, email=f"customer{counter}@example.com", address=address)
            session.add(customer)
            await session.commit()
            return customer.id

    return _make_customer


@pytest_asyncio.fixture
async def make_product(test_async_session_maker):
    async def _make_product(name: str = "Test Product", price: str = "10.00", stock: int = 100) -> int:
        async with test_async_session_maker() as session:
            product = Product(name=name, price=Decimal(price), stock_quantity=stock)
            session.add(product)
            await session.commit()
            return product.id

    return _make_product


@pytest_asyncio.fixture
async def stock_of(test_async_session_maker):
    async def _stock_of(product_id: int) -> int:
        async with test_async_session_maker() as session:
            result = await session.execute(
                select(Product.stock_quantity).where(Product.id == product_id)
            )
            return result.scalar_one()

    return _stock_of


@pytest_asyncio.fixture
async def outbox_messages(test_async_session_maker):
    async def _outbox_messages() -> list[OutboxMessage]:
        async with test_async_session_maker() as session:
            result = await session.execute(
                select(OutboxMessage).order_by(OutboxMessage.id)
            )
            return list(result.scalars().all())

    return _outbox_messages


@pytest_asyncio.fixture
async def mock_broker(monkeypatch):
    published_messages = []

    async def mock_publish(routing_key: str, message: bytes):
        published_messages.append({
            "routing_key": routing_key,
            "message": message
        })

    monkeypatch.setattr(broker, "publish", mock_publish)

    yield published_messages
