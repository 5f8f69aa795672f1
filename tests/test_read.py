"""Tests for the read capability against a sqlite store."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from storefront.core.exceptions import RepositoryError
from storefront.models import Product
from storefront.repository import FullRepository, ModelHandle, OrderRepository, QueryOptions, RepositoryFactory

from .conftest import make_item, make_order, make_product


@pytest.fixture
async def seeded(products: FullRepository) -> list[dict]:
    """Five products priced 10..50 with alternating status."""
    return await products.create_many(
        [
            make_product(f"Product {i}", price=10.0 * i, status="active" if i % 2 else "draft")
            for i in range(1, 6)
        ]
    )


# =============================================================================
# find_by_id / find_one
# =============================================================================


async def test_find_by_id_round_trip(products: FullRepository) -> None:
    created = await products.create(make_product("Widget"))

    found = await products.find_by_id(created["id"])

    assert found == created
    assert found["name"] == "Widget"


async def test_find_by_id_is_idempotent(products: FullRepository) -> None:
    created = await products.create(make_product("Widget"))

    first = await products.find_by_id(created["id"])
    second = await products.find_by_id(created["id"])

    assert first == second == created


async def test_find_by_id_missing_returns_none(products: FullRepository) -> None:
    assert await products.find_by_id("nonexistent-id") is None


@pytest.mark.parametrize("bad_id", ["", 123, None])
async def test_find_by_id_rejects_malformed_identity(products: FullRepository, bad_id) -> None:
    with pytest.raises(RepositoryError) as exc_info:
        await products.find_by_id(bad_id)

    assert exc_info.value.operation == "find_by_id"


async def test_find_one_respects_sort(products: FullRepository, seeded: list[dict]) -> None:
    cheapest_active = await products.find_one({"status": "active"}, QueryOptions(sort={"price": 1}))
    priciest = await products.find_one(None, QueryOptions(sort="-price"))

    assert cheapest_active["name"] == "Product 1"
    assert priciest["name"] == "Product 5"


async def test_find_one_no_match(products: FullRepository, seeded: list[dict]) -> None:
    assert await products.find_one({"name": "missing"}) is None


# =============================================================================
# find_many
# =============================================================================


async def test_find_many_filter_sort_skip_limit(products: FullRepository, seeded: list[dict]) -> None:
    documents = await products.find_many(
        {"price": {"$gte": 20}},
        QueryOptions(sort={"price": -1}, skip=1, limit=2),
    )

    assert [d["price"] for d in documents] == [40.0, 30.0]


async def test_find_many_empty_result_is_a_list(products: FullRepository) -> None:
    assert await products.find_many({"status": "inactive"}) == []


async def test_find_many_select_projection(products: FullRepository, seeded: list[dict]) -> None:
    documents = await products.find_many({"status": "draft"}, QueryOptions(select="name price", sort="price"))

    assert [set(d) for d in documents] == [{"id", "name", "price"}] * 2
    assert [d["price"] for d in documents] == [20.0, 40.0]


async def test_find_many_or_filter(products: FullRepository, seeded: list[dict]) -> None:
    documents = await products.find_many({"$or": [{"price": 10.0}, {"price": {"$gt": 45}}]}, QueryOptions(sort="price"))

    assert [d["name"] for d in documents] == ["Product 1", "Product 5"]


async def test_find_many_unknown_field_is_operational_error(products: FullRepository) -> None:
    with pytest.raises(RepositoryError) as exc_info:
        await products.find_many({"colour": "red"})

    assert exc_info.value.operation == "find_many"
    assert "Unknown field 'colour'" in exc_info.value.message


async def test_populate_nests_relationship(orders: OrderRepository, order_items: FullRepository) -> None:
    order = await orders.create(make_order("ORD-P"))
    await order_items.create_many([make_item("A", order_id=order["id"]), make_item("B", order_id=order["id"])])

    plain = await orders.find_by_id(order["id"])
    populated = await orders.find_by_id(
        order["id"], QueryOptions(populate={"path": "items", "select": "product_sku"})
    )

    assert "items" not in plain
    assert sorted(item["product_sku"] for item in populated["items"]) == ["A", "B"]
    assert all(set(item) == {"id", "product_sku"} for item in populated["items"])


# =============================================================================
# Pagination, count, exists
# =============================================================================


async def test_find_with_pagination(products: FullRepository) -> None:
    await products.create_many([make_product(f"P{i:02d}") for i in range(25)])

    page = await products.find_with_pagination({}, {"page": 2, "limit": 10}, QueryOptions(sort="name"))

    assert [d["name"] for d in page.data] == [f"P{i:02d}" for i in range(10, 20)]
    assert page.pagination.model_dump() == {
        "total": 25,
        "page": 2,
        "limit": 10,
        "pages": 3,
        "has_next": True,
        "has_prev": True,
    }


async def test_find_with_pagination_defaults(products: FullRepository, seeded: list[dict]) -> None:
    page = await products.find_with_pagination(None, {"page": 0, "limit": -1})

    assert (page.pagination.page, page.pagination.limit) == (1, 10)
    assert page.pagination.total == 5
    assert page.pagination.has_next is False
    assert len(page.data) == 5


async def test_find_with_pagination_empty(products: FullRepository) -> None:
    page = await products.find_with_pagination({"status": "active"})

    assert page.data == []
    assert page.to_dict()["pagination"] == {
        "total": 0,
        "page": 1,
        "limit": 10,
        "pages": 0,
        "hasNext": False,
        "hasPrev": False,
    }


async def test_count_and_exists(products: FullRepository, seeded: list[dict]) -> None:
    assert await products.count() == 5
    assert await products.count({"status": "active"}) == 3
    assert await products.exists({"price": {"$lt": 15}}) is True
    assert await products.exists({"price": {"$gt": 1000}}) is False


async def test_unreachable_store_is_wrapped(tmp_path) -> None:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'nowhere.db'}")
    repository = RepositoryFactory.create_read_only(
        ModelHandle(Product, async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
    )
    try:
        with pytest.raises(RepositoryError) as exc_info:
            await repository.count()
    finally:
        await engine.dispose()

    assert exc_info.value.message.startswith("Repository count operation failed: ")
