"""Tests for the write and delete capabilities, including lifecycle hooks."""

import pytest

from storefront.core.exceptions import RepositoryError, RepositoryValidationError
from storefront.models import Product
from storefront.repository import FullRepository, ModelHandle, RepositoryFactory, RepositoryHooks

from .conftest import make_product

# =============================================================================
# create / create_many
# =============================================================================


async def test_create_assigns_identity_and_timestamps(products: FullRepository) -> None:
    created = await products.create(make_product("Widget"))

    assert len(created["id"]) == 32
    assert created["name"] == "Widget"
    assert created["status"] == "draft"
    assert created["created_at"] is not None
    assert created["updated_at"] is not None


async def test_create_rejects_invalid_document(products: FullRepository) -> None:
    with pytest.raises(RepositoryValidationError) as exc_info:
        await products.create({"name": "", "price": -1})

    assert set(exc_info.value.errors) == {"name", "price"}
    assert exc_info.value.operation == "create"
    assert await products.count() == 0


async def test_create_many_keeps_input_order(products: FullRepository) -> None:
    created = await products.create_many([make_product(name) for name in ("b", "a", "c")])

    assert [d["name"] for d in created] == ["b", "a", "c"]
    assert len({d["id"] for d in created}) == 3
    assert await products.count() == 3


async def test_create_many_validates_every_document(products: FullRepository) -> None:
    with pytest.raises(RepositoryValidationError) as exc_info:
        await products.create_many([make_product("ok"), make_product("bad", price=-1)])

    assert exc_info.value.detail["index"] == 1
    assert await products.count() == 0


# =============================================================================
# update
# =============================================================================


async def test_update_by_id_changes_only_patched_fields(products: FullRepository) -> None:
    created = await products.create(make_product("Widget", description="Blue", stock_quantity=3))

    updated = await products.update_by_id(created["id"], {"price": 12.5, "$inc": {"stock_quantity": 2}})
    found = await products.find_by_id(created["id"])

    assert updated["price"] == 12.5
    assert updated["stock_quantity"] == 5
    assert found == updated
    assert (found["name"], found["description"], found["created_at"]) == (
        "Widget",
        "Blue",
        created["created_at"],
    )


async def test_update_by_id_missing_returns_none(products: FullRepository) -> None:
    assert await products.update_by_id("nonexistent-id", {"price": 1}) is None


async def test_update_validation_names_offending_field(products: FullRepository) -> None:
    created = await products.create(make_product("Widget", price=8.0))

    with pytest.raises(RepositoryValidationError) as exc_info:
        await products.update_by_id(created["id"], {"price": -5})

    assert "price" in exc_info.value.errors
    assert (await products.find_by_id(created["id"]))["price"] == 8.0


async def test_update_cannot_change_identity(products: FullRepository) -> None:
    created = await products.create(make_product())

    with pytest.raises(RepositoryError) as exc_info:
        await products.update_by_id(created["id"], {"id": "f" * 32})

    assert exc_info.value.operation == "update_by_id"
    assert await products.exists({"id": created["id"]})


async def test_update_one_first_match(products: FullRepository) -> None:
    await products.create_many([make_product("a", price=1.0), make_product("b", price=2.0)])

    updated = await products.update_one({"price": {"$gt": 1.5}}, {"$set": {"status": "active"}})

    assert updated["name"] == "b"
    assert updated["status"] == "active"
    assert await products.update_one({"name": "zzz"}, {"status": "active"}) is None


async def test_update_many_reports_modified_count(products: FullRepository) -> None:
    await products.create_many([make_product(f"p{i}", price=float(i)) for i in range(5)])

    result = await products.update_many({"price": {"$gte": 2}}, {"status": "inactive", "$inc": {"stock_quantity": 1}})

    assert result.modified_count == 3
    assert await products.count({"status": "inactive", "stock_quantity": 6}) == 3


async def test_update_many_no_match(products: FullRepository) -> None:
    result = await products.update_many({"name": "missing"}, {"status": "active"})

    assert result.modified_count == 0


# =============================================================================
# delete
# =============================================================================


async def test_delete_by_id_returns_snapshot(products: FullRepository) -> None:
    created = await products.create(make_product("Widget"))

    deleted = await products.delete_by_id(created["id"])

    assert deleted == created
    assert await products.find_by_id(created["id"]) is None
    assert await products.delete_by_id(created["id"]) is None


async def test_delete_by_id_missing_returns_none(products: FullRepository) -> None:
    assert await products.delete_by_id("nonexistent-id") is None


async def test_delete_one_and_many(products: FullRepository) -> None:
    await products.create_many([make_product(f"p{i}", status="draft" if i < 3 else "active") for i in range(5)])

    first = await products.delete_one({"status": "active"})
    result = await products.delete_many({"status": "draft"})

    assert first["status"] == "active"
    assert result.deleted_count == 3
    assert await products.count() == 1
    assert (await products.delete_many({"status": "draft"})).deleted_count == 0


# =============================================================================
# Hooks
# =============================================================================


async def test_hooks_run_in_order(product_handle: ModelHandle[Product]) -> None:
    calls: list[str] = []

    def before_create(data: dict) -> dict:
        calls.append("before_create")
        return {**data, "description": "from hook"}

    async def after_create(entity: dict) -> dict:
        calls.append("after_create")
        return {**entity, "decorated": True}

    def before_update(patch: dict) -> dict:
        calls.append("before_update")
        return {**patch, "status": "active"}

    async def after_update(entity: dict) -> dict:
        calls.append("after_update")
        return entity

    def before_delete(entity: dict) -> None:
        calls.append(f"before_delete:{entity['name']}")

    repository = RepositoryFactory.create_full(
        product_handle,
        RepositoryHooks(
            before_create=before_create,
            after_create=after_create,
            before_update=before_update,
            after_update=after_update,
            before_delete=before_delete,
        ),
    )

    created = await repository.create(make_product("Hooked"))
    updated = await repository.update_by_id(created["id"], {"price": 3.0})
    await repository.delete_by_id("nonexistent-id")
    await repository.delete_by_id(created["id"])

    assert created["description"] == "from hook"
    assert created["decorated"] is True
    assert updated["status"] == "active"
    assert calls == [
        "before_create",
        "after_create",
        "before_update",
        "after_update",
        "before_delete:Hooked",
    ]


async def test_hook_failure_is_wrapped(product_handle: ModelHandle[Product]) -> None:
    def before_create(data: dict) -> dict:
        raise RuntimeError("hook exploded")

    repository = RepositoryFactory.create_full(product_handle, RepositoryHooks(before_create=before_create))

    with pytest.raises(RepositoryError) as exc_info:
        await repository.create(make_product())

    assert exc_info.value.message == "Repository create operation failed: hook exploded"
    assert isinstance(exc_info.value.__cause__, RuntimeError)


async def test_before_delete_can_veto(product_handle: ModelHandle[Product]) -> None:
    def before_delete(entity: dict) -> None:
        raise PermissionError("protected")

    repository = RepositoryFactory.create_full(product_handle, RepositoryHooks(before_delete=before_delete))
    created = await repository.create(make_product())

    with pytest.raises(RepositoryError):
        await repository.delete_by_id(created["id"])

    assert await repository.find_by_id(created["id"]) is not None


async def test_delete_one_skips_before_delete(product_handle: ModelHandle[Product]) -> None:
    seen: list[str] = []

    def before_delete(entity: dict) -> None:
        seen.append(entity["name"])
        raise PermissionError("protected")

    repository = RepositoryFactory.create_full(product_handle, RepositoryHooks(before_delete=before_delete))
    await repository.create(make_product("x"))

    deleted = await repository.delete_one({"name": "x"})

    assert deleted["name"] == "x"
    assert seen == []
    assert await repository.count() == 0


# =============================================================================
# Coercion
# =============================================================================


async def test_create_stores_schema_coerced_values(products: FullRepository) -> None:
    created = await products.create(make_product("x", is_featured="true", price="12.50", stock_quantity="3"))

    found = await products.find_by_id(created["id"])

    assert found["is_featured"] is True
    assert found["price"] == 12.5
    assert found["stock_quantity"] == 3
    assert isinstance(found["stock_quantity"], int)


async def test_create_many_and_update_store_coerced_values(products: FullRepository) -> None:
    [created] = await products.create_many([make_product("x", is_active="false")])

    updated = await products.update_by_id(created["id"], {"is_featured": "yes"})

    assert created["is_active"] is False
    assert updated["is_featured"] is True
