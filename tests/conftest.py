"""Shared fixtures: a throwaway sqlite store and repositories bound to it."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.core.database import AsyncDBPool
from storefront.main_config import DatabaseConfig
from storefront.models import Base, Order, OrderItem, Product, User
from storefront.repository import (
    FullRepository,
    ModelHandle,
    OrderRepository,
    ProductRepository,
    RepositoryFactory,
    UserRepository,
)


@pytest.fixture
async def session_maker(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Initialize the pool against a fresh sqlite file with every table created."""
    config = DatabaseConfig(dsn=f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}")
    await AsyncDBPool.init(config)
    await AsyncDBPool.create_all(Base.metadata)
    try:
        yield AsyncDBPool.get_session_maker()
    finally:
        await AsyncDBPool.dispose()


@pytest.fixture
def product_handle(session_maker: async_sessionmaker[AsyncSession]) -> ModelHandle[Product]:
    return ModelHandle(Product, session_maker)


@pytest.fixture
def products(product_handle: ModelHandle[Product]) -> FullRepository:
    """Full-capability product repository."""
    return RepositoryFactory.create_full(product_handle)


@pytest.fixture
def orders(session_maker: async_sessionmaker[AsyncSession]) -> OrderRepository:
    return OrderRepository(ModelHandle(Order, session_maker))


@pytest.fixture
def order_items(session_maker: async_sessionmaker[AsyncSession]) -> FullRepository:
    return RepositoryFactory.create_full(ModelHandle(OrderItem, session_maker))


@pytest.fixture
def users(session_maker: async_sessionmaker[AsyncSession]) -> UserRepository:
    return UserRepository(ModelHandle(User, session_maker))


@pytest.fixture
def catalogue(product_handle: ModelHandle[Product]) -> ProductRepository:
    return ProductRepository(product_handle)


def make_product(name: str = "Widget", **overrides) -> dict:
    """Minimal valid product document."""
    return {"name": name, "price": 9.99, "stock_quantity": 5, **overrides}


def make_order(order_number: str = "ORD-1", **overrides) -> dict:
    """Minimal valid order document."""
    return {
        "user_id": "u" * 32,
        "order_number": order_number,
        "payment_method": "cod",
        "subtotal": 20.0,
        "total_amount": 20.0,
        **overrides,
    }


def make_item(sku: str = "SKU-1", **overrides) -> dict:
    """Minimal valid order item document (without order_id)."""
    return {
        "product_id": "p" * 32,
        "quantity": 2,
        "unit_price": 5.0,
        "total_price": 10.0,
        "product_name": "Widget",
        "product_sku": sku,
        **overrides,
    }
