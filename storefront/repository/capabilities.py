"""Repository capabilities, one mixin per capability.

Each mixin depends only on ``RepositoryAdapter``; concrete repositories are
assembled from exactly the mixins they expose, so a read-only consumer never
carries a mutating method.
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from contextlib import AbstractAsyncContextManager
from typing import Any, TypeVar

from sqlalchemy import Executable, Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.exceptions import RepositoryValidationError

from .adapter import Document, ModelType, RepositoryAdapter
from .bulk import BulkWriteResult, DeleteMany, DeleteOne, InsertOne, UpdateMany, UpdateOne, parse_operations
from .options import (
    DeleteResult,
    PaginatedResult,
    PaginationMeta,
    PaginationOptions,
    QueryOptions,
    UpdateResult,
    WriteOptions,
    coerce_pagination,
)
from .query import (
    apply_update,
    build_order_by,
    build_update_values,
    build_where,
    normalize_populate,
    populate_loaders,
    project,
)
from .transaction import Transaction, run_in_transaction, transaction_scope

__all__ = [
    "BulkCapability",
    "DeleteCapability",
    "ReadCapability",
    "TransactionCapability",
    "WriteCapability",
]

Filter = Mapping[str, Any]
ResultType = TypeVar("ResultType")


class ReadCapability(RepositoryAdapter[ModelType]):
    """find_by_id, find_one, find_many, find_with_pagination, count, exists."""

    def _select(self, filter_: Filter | None, options: QueryOptions) -> Select:
        stmt = select(self.model).where(build_where(self.model, filter_))

        populate = normalize_populate(options.populate)
        if populate:
            stmt = stmt.options(*populate_loaders(self.model, populate)).execution_options(
                populate_existing=True
            )

        order_by = build_order_by(self.model, options.sort)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if options.skip:
            stmt = stmt.offset(options.skip)
        if options.limit:
            stmt = stmt.limit(options.limit)
        return stmt

    def _render(self, instance: Any, options: QueryOptions) -> Document:
        populate = normalize_populate(options.populate)
        document = instance.to_dict(relations=[entry.path for entry in populate])
        for entry in populate:
            nested = document.get(entry.path)
            if entry.select and nested is not None:
                if isinstance(nested, list):
                    document[entry.path] = [project(item, entry.select) for item in nested]
                else:
                    document[entry.path] = project(nested, entry.select)
        return project(document, options.select, keep=[entry.path for entry in populate])

    async def find_by_id(self, id_: str, options: QueryOptions | None = None) -> Document | None:
        """Get a document by identity.

        Returns:
            The document, or None when no document has this id
        """
        options = options or QueryOptions()
        async with self._operation("find_by_id", id=id_):
            self._check_id(id_, "find_by_id")
            stmt = self._select({"id": id_}, options)
            async with self._session_scope(options) as session:
                instance = (await session.execute(stmt)).scalar_one_or_none()
                return self._render(instance, options) if instance is not None else None

    async def find_one(self, filter_: Filter | None = None, options: QueryOptions | None = None) -> Document | None:
        """Get the first document matching ``filter_``, or None."""
        options = options or QueryOptions()
        async with self._operation("find_one"):
            stmt = self._select(filter_, options.merge(limit=1))
            async with self._session_scope(options) as session:
                instance = (await session.execute(stmt)).scalars().first()
                return self._render(instance, options) if instance is not None else None

    async def find_many(self, filter_: Filter | None = None, options: QueryOptions | None = None) -> list[Document]:
        """Get every document matching ``filter_`` (possibly none).

        Applies, in order: select, populate, sort, skip, limit, session.
        """
        options = options or QueryOptions()
        async with self._operation("find_many"):
            stmt = self._select(filter_, options)
            async with self._session_scope(options) as session:
                instances = (await session.execute(stmt)).scalars().all()
                return [self._render(instance, options) for instance in instances]

    async def find_with_pagination(
        self,
        filter_: Filter | None = None,
        pagination: PaginationOptions | dict[str, Any] | None = None,
        options: QueryOptions | None = None,
    ) -> PaginatedResult:
        """Get one page of documents plus total/pages/hasNext/hasPrev.

        Unbound calls fetch the page and the total concurrently; calls bound
        to a transaction run them one after the other on its session.
        """
        options = options or QueryOptions()
        async with self._operation("find_with_pagination"):
            page = coerce_pagination(pagination)
            page_options = options.merge(skip=page.skip, limit=page.limit)

            if self._bound_session(options) is None:
                data, total = await asyncio.gather(
                    self.find_many(filter_, page_options),
                    self.count(filter_),
                )
            else:
                data = await self.find_many(filter_, page_options)
                total = await self.count(filter_, options)

            return PaginatedResult(
                data=data,
                pagination=PaginationMeta.build(total=total, page=page.page, limit=page.limit),
            )

    async def count(self, filter_: Filter | None = None, options: QueryOptions | None = None) -> int:
        """Count documents matching ``filter_``."""
        async with self._operation("count"):
            stmt = select(func.count()).select_from(self.model).where(build_where(self.model, filter_))
            async with self._session_scope(options) as session:
                return (await session.execute(stmt)).scalar_one()

    async def exists(self, filter_: Filter | None = None, options: QueryOptions | None = None) -> bool:
        """Check whether any document matches ``filter_``."""
        async with self._operation("exists"):
            stmt = select(self.model.id).where(build_where(self.model, filter_)).limit(1)
            async with self._session_scope(options) as session:
                return (await session.execute(stmt)).scalar_one_or_none() is not None


class WriteCapability(RepositoryAdapter[ModelType]):
    """create, create_many, update_by_id, update_one, update_many."""

    async def _apply_patch(
        self, session: AsyncSession, instance: Any, patch: Mapping[str, Any], operation: str
    ) -> Document:
        touched = apply_update(instance, patch)
        try:
            validated = self._validate(instance.to_dict(), operation, id=instance.id)
        except RepositoryValidationError:
            # drop the unflushed changes so a caller's transaction stays clean
            session.expire(instance)
            raise
        for field in touched:
            setattr(instance, field, validated[field])
        await session.flush()
        await session.refresh(instance)
        return instance.to_dict()

    async def create(self, data: Mapping[str, Any], options: WriteOptions | None = None) -> Document:
        """Create a document.

        Runs before_create, validates, persists, runs after_create.

        Returns:
            The stored document with its generated id and timestamps
        """
        async with self._operation("create"):
            processed = await self._run_hook("before_create", dict(data))
            processed = self._validate(processed, "create")
            async with self._session_scope(options, write=True) as session:
                instance = self.model(**processed)
                session.add(instance)
                await session.flush()
                await session.refresh(instance)
                document = instance.to_dict()
            return await self._run_hook("after_create", document)

    async def create_many(
        self, data: Sequence[Mapping[str, Any]], options: WriteOptions | None = None
    ) -> list[Document]:
        """Create several documents in one flush, returned in input order."""
        async with self._operation("create_many", size=len(data)):
            documents = [self._validate(item, "create_many", index=index) for index, item in enumerate(data)]
            async with self._session_scope(options, write=True) as session:
                instances = [self.model(**document) for document in documents]
                session.add_all(instances)
                await session.flush()
                for instance in instances:
                    await session.refresh(instance)
                return [instance.to_dict() for instance in instances]

    async def update_by_id(
        self, id_: str, data: Mapping[str, Any], options: WriteOptions | None = None
    ) -> Document | None:
        """Patch the document with this id.

        Returns:
            The post-update document, or None if no document has this id
        """
        async with self._operation("update_by_id", id=id_):
            self._check_id(id_, "update_by_id")
            patch = await self._run_hook("before_update", dict(data))
            async with self._session_scope(options, write=True) as session:
                instance = await self._first_match(session, {"id": id_})
                if instance is None:
                    return None
                document = await self._apply_patch(session, instance, patch, "update_by_id")
            return await self._run_hook("after_update", document)

    async def update_one(
        self, filter_: Filter, patch: Mapping[str, Any], options: WriteOptions | None = None
    ) -> Document | None:
        """Patch the first document matching ``filter_``; None when nothing matches."""
        async with self._operation("update_one"):
            patch = await self._run_hook("before_update", dict(patch))
            async with self._session_scope(options, write=True) as session:
                instance = await self._first_match(session, filter_)
                if instance is None:
                    return None
                document = await self._apply_patch(session, instance, patch, "update_one")
            return await self._run_hook("after_update", document)

    async def update_many(
        self, filter_: Filter, patch: Mapping[str, Any], options: WriteOptions | None = None
    ) -> UpdateResult:
        """Patch every document matching ``filter_`` with one statement.

        Schema validation is not run for multi-document updates.
        """
        async with self._operation("update_many"):
            values = build_update_values(self.model, patch)
            if not values:
                return UpdateResult(modified_count=0)
            stmt = update(self.model).where(build_where(self.model, filter_)).values(**values)
            async with self._session_scope(options, write=True) as session:
                return UpdateResult(modified_count=await self._execute_bulk(session, stmt))


class DeleteCapability(RepositoryAdapter[ModelType]):
    """delete_by_id, delete_one, delete_many."""

    async def _delete_instance(self, session: AsyncSession, instance: Any) -> Document:
        snapshot = instance.to_dict()
        await self._run_hook("before_delete", snapshot)
        await session.delete(instance)
        return snapshot

    async def delete_by_id(self, id_: str, options: WriteOptions | None = None) -> Document | None:
        """Delete the document with this id.

        The document is always read first so before_delete sees it and the
        caller gets the pre-delete snapshot back.

        Returns:
            The deleted document, or None if no document has this id
        """
        async with self._operation("delete_by_id", id=id_):
            self._check_id(id_, "delete_by_id")
            async with self._session_scope(options, write=True) as session:
                instance = await self._first_match(session, {"id": id_})
                if instance is None:
                    return None
                return await self._delete_instance(session, instance)

    async def delete_one(self, filter_: Filter, options: WriteOptions | None = None) -> Document | None:
        """Delete the first document matching ``filter_`` and return it.

        A filtered delete goes straight to the store; before_delete is not run.
        """
        async with self._operation("delete_one"):
            async with self._session_scope(options, write=True) as session:
                instance = await self._first_match(session, filter_)
                if instance is None:
                    return None
                snapshot = instance.to_dict()
                await session.delete(instance)
                return snapshot

    async def delete_many(self, filter_: Filter, options: WriteOptions | None = None) -> DeleteResult:
        """Delete every document matching ``filter_``."""
        async with self._operation("delete_many"):
            stmt = delete(self.model).where(build_where(self.model, filter_))
            async with self._session_scope(options, write=True) as session:
                return DeleteResult(deleted_count=await self._execute_bulk(session, stmt))


class BulkCapability(RepositoryAdapter[ModelType]):
    """bulk_write, aggregate."""

    async def bulk_write(self, operations: Sequence[Any], options: WriteOptions | None = None) -> BulkWriteResult:
        """Execute insert/update/delete descriptors in order on one session.

        Not transactional on its own: pass a transaction token in ``options``
        to make the batch atomic with other operations. Inserted documents
        are schema-validated.
        """
        async with self._operation("bulk_write", size=len(operations)):
            parsed = parse_operations(operations)
            result = BulkWriteResult()
            async with self._session_scope(options, write=True) as session:
                for index, operation in enumerate(parsed):
                    if isinstance(operation, InsertOne):
                        document = self._validate(operation.document, "bulk_write", index=index)
                        instance = self.model(**document)
                        session.add(instance)
                        await session.flush()
                        result.inserted_count += 1
                        result.inserted_ids.append(instance.id)
                    elif isinstance(operation, UpdateOne):
                        instance = await self._first_match(session, operation.filter)
                        if instance is not None:
                            result.matched_count += 1
                            if apply_update(instance, operation.update):
                                await session.flush()
                                result.modified_count += 1
                    elif isinstance(operation, UpdateMany):
                        values = build_update_values(self.model, operation.update)
                        if not values:
                            continue
                        stmt = update(self.model).where(build_where(self.model, operation.filter)).values(**values)
                        rowcount = await self._execute_bulk(session, stmt)
                        result.matched_count += rowcount
                        result.modified_count += rowcount
                    elif isinstance(operation, DeleteOne):
                        instance = await self._first_match(session, operation.filter)
                        if instance is not None:
                            await session.delete(instance)
                            await session.flush()
                            result.deleted_count += 1
                    elif isinstance(operation, DeleteMany):
                        stmt = delete(self.model).where(build_where(self.model, operation.filter))
                        result.deleted_count += await self._execute_bulk(session, stmt)
            return result

    async def aggregate(
        self,
        pipeline: Executable | Callable[[type[ModelType]], Executable],
        options: QueryOptions | WriteOptions | None = None,
    ) -> list[dict[str, Any]]:
        """Run an opaque query plan and return its rows as dicts.

        ``pipeline`` is any SQLAlchemy executable, or a callable that builds
        one from the mapped model. Its semantics are not inspected here.
        """
        async with self._operation("aggregate"):
            statement = pipeline(self.model) if callable(pipeline) else pipeline
            async with self._session_scope(options) as session:
                result = await session.execute(statement)
                return [dict(row._mapping) for row in result]


class TransactionCapability(RepositoryAdapter[ModelType]):
    """with_transaction and its context-manager form."""

    async def with_transaction(self, work: Callable[[Transaction], Awaitable[ResultType]]) -> ResultType:
        """Run ``work(txn)`` atomically.

        Pass ``txn`` as ``session`` in every operation's options to include it;
        repositories for other models may join the same token. Any error
        aborts the transaction and is re-raised unchanged.
        """
        return await run_in_transaction(self._handle.session_maker, work)

    def transaction(self) -> AbstractAsyncContextManager[Transaction]:
        """``async with repo.transaction() as txn:`` form of ``with_transaction``."""
        return transaction_scope(self._handle.session_maker)
