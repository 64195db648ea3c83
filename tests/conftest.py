import os
import tempfile
from decimal import Decimal
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete, event, func, select
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.core.deps import get_session_factory
from app.core.roles import UserRole
from app.core.security import create_access_token
from app.db.base import Base
from app.db.enums import CategoryEnum
from app.db.sessions import get_async_session
from app.main import app
from app.models import InventoryLog, OrderDetail, Product, User
from app.schemas.order import CartLine
from app.services.order_service import OrderService


# DATABASE SETUP (SQLite file, one connection per session)
TEST_DB_PATH = os.path.join(tempfile.mkdtemp(), "test_orders.db")
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"timeout": 30},
    poolclass=NullPool,
)


@event.listens_for(engine.sync_engine, "connect")
def _configure_sqlite(dbapi_connection, connection_record):
    # SQLAlchemy emits BEGIN itself (see below)
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@event.listens_for(engine.sync_engine, "begin")
def _begin_immediate(conn):
    # Take the write lock when the transaction starts, so concurrent
    # units of work queue up the way row locks make them on PostgreSQL.
    conn.exec_driver_sql("BEGIN IMMEDIATE")


TestingAsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    autoflush=False,
)


# PYTEST CORE FIXTURES
@pytest.fixture(scope="session")
def test_app():
    app.debug = True
    return app


@pytest.fixture(scope="function", autouse=True)
async def setup_db():
    """Create and drop tables per test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory() -> async_sessionmaker[AsyncSession]:
    """
    IMPORTANT:
    - every helper opens its own short-lived session
    - never keep a session open across a service call, it holds the write lock
    """
    return TestingAsyncSessionLocal


@pytest.fixture
def order_service(session_factory) -> OrderService:
    return OrderService(session_factory)


# DATA HELPERS
@pytest.fixture
def make_product(session_factory):
    async def _make(name: str = "Wireless Mouse", stock: int = 10, price: str = "25.00") -> int:
        async with session_factory() as session:
            product = Product(
                name=name,
                price=Decimal(price),
                stock_quantity=stock,
                category=CategoryEnum.ELECTRONICS,
            )
            session.add(product)
            await session.commit()
            return product.id

    return _make


@pytest.fixture
def make_user(session_factory):
    async def _make(
        email: str | None = "buyer@example.com",
        username: str | None = None,
        role: UserRole = UserRole.CUSTOMER,
    ) -> User:
        async with session_factory() as session:
            user = User(email=email, username=username, role=role, is_active=True)
            session.add(user)
            await session.commit()
            return user

    return _make


@pytest.fixture
def stock_of(session_factory):
    async def _stock(product_id: int) -> int:
        async with session_factory() as session:
            return await session.scalar(
                select(Product.stock_quantity).where(Product.id == product_id)
            )

    return _stock


@pytest.fixture
def ledger_for(session_factory):
    async def _ledger(product_id: int) -> list[InventoryLog]:
        async with session_factory() as session:
            result = await session.execute(
                select(InventoryLog)
                .where(InventoryLog.product_id == product_id)
                .order_by(InventoryLog.id)
            )
            return list(result.scalars().all())

    return _ledger


@pytest.fixture
def count_rows(session_factory):
    async def _count(model) -> int:
        async with session_factory() as session:
            return await session.scalar(select(func.count()).select_from(model))

    return _count


@pytest.fixture
def details_of(session_factory):
    async def _details(order_id: int) -> list[OrderDetail]:
        async with session_factory() as session:
            result = await session.execute(
                select(OrderDetail)
                .where(OrderDetail.order_id == order_id)
                .order_by(OrderDetail.id)
            )
            return list(result.scalars().all())

    return _details


@pytest.fixture
def delete_product():
    """Remove a product that orders and ledger rows still point at."""
    async def _delete(product_id: int) -> None:
        # Separate engine without the foreign key pragma
        unchecked = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)

        @event.listens_for(unchecked.sync_engine, "connect")
        def _foreign_keys_off(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=OFF")
            cursor.close()

        try:
            async with unchecked.begin() as conn:
                await conn.execute(delete(Product).where(Product.id == product_id))
        finally:
            await unchecked.dispose()

    return _delete


@pytest.fixture
def place(order_service):
    """Place an order whose declared total matches its lines."""
    async def _place(lines: list[tuple[int, int]], price: str = "10.00", user_id=None):
        cart = [
            CartLine(product_id=pid, price=Decimal(price), quantity=qty)
            for pid, qty in lines
        ]
        total = sum((line.line_total for line in cart), Decimal("0"))
        return await order_service.place_order(
            user_id=user_id,
            customer_name="Jane Doe",
            phone_number="+15550001111",
            shipping_address="1 Market Street",
            cart_lines=cart,
            total_amount=total,
        )

    return _place


# USERS & TOKENS
@pytest.fixture
async def test_admin(make_user):
    return await make_user(email="admin@test.com", role=UserRole.ADMIN)


@pytest.fixture
async def admin_token(test_admin):
    return {"Authorization": f"Bearer {create_access_token(test_admin)}"}


@pytest.fixture
async def test_customer(make_user):
    return await make_user(email="test@example.com", role=UserRole.CUSTOMER)


@pytest.fixture
async def customer_token(test_customer):
    return {"Authorization": f"Bearer {create_access_token(test_customer)}"}


# DEPENDENCY OVERRIDES
@pytest.fixture(autouse=True)
def override_dependencies(test_app, session_factory):

    async def _get_test_session():
        async with session_factory() as session:
            yield session

    test_app.dependency_overrides[get_session_factory] = lambda: session_factory
    test_app.dependency_overrides[get_async_session] = _get_test_session

    yield

    test_app.dependency_overrides.clear()


# HTTP CLIENT
@pytest.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://localhost",
    ) as ac:
        yield ac
