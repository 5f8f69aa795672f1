"""Capability contracts.

Each protocol is independently useful; consumers should type against the
narrowest one they need so a read-only consumer cannot mutate.
"""

from collections.abc import Awaitable, Callable, Mapping, Sequence
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol, TypeVar, runtime_checkable

from .bulk import BulkWriteResult
from .options import DeleteResult, PaginatedResult, PaginationOptions, QueryOptions, UpdateResult, WriteOptions
from .transaction import Transaction

__all__ = [
    "BulkRepository",
    "DeleteRepository",
    "FullRepository",
    "ReadRepository",
    "TransactionalRepository",
    "WritableRepositoryProtocol",
    "WriteRepository",
]

Document = dict[str, Any]
Filter = Mapping[str, Any]
ResultType = TypeVar("ResultType")


@runtime_checkable
class ReadRepository(Protocol):
    async def find_by_id(self, id_: str, options: QueryOptions | None = None) -> Document | None: ...

    async def find_one(self, filter_: Filter | None = None, options: QueryOptions | None = None) -> Document | None: ...

    async def find_many(self, filter_: Filter | None = None, options: QueryOptions | None = None) -> list[Document]: ...

    async def find_with_pagination(
        self,
        filter_: Filter | None = None,
        pagination: PaginationOptions | dict[str, Any] | None = None,
        options: QueryOptions | None = None,
    ) -> PaginatedResult: ...

    async def count(self, filter_: Filter | None = None, options: QueryOptions | None = None) -> int: ...

    async def exists(self, filter_: Filter | None = None, options: QueryOptions | None = None) -> bool: ...


@runtime_checkable
class WriteRepository(Protocol):
    async def create(self, data: Mapping[str, Any], options: WriteOptions | None = None) -> Document: ...

    async def create_many(
        self, data: Sequence[Mapping[str, Any]], options: WriteOptions | None = None
    ) -> list[Document]: ...

    async def update_by_id(
        self, id_: str, data: Mapping[str, Any], options: WriteOptions | None = None
    ) -> Document | None: ...

    async def update_one(
        self, filter_: Filter, patch: Mapping[str, Any], options: WriteOptions | None = None
    ) -> Document | None: ...

    async def update_many(
        self, filter_: Filter, patch: Mapping[str, Any], options: WriteOptions | None = None
    ) -> UpdateResult: ...


@runtime_checkable
class DeleteRepository(Protocol):
    async def delete_by_id(self, id_: str, options: WriteOptions | None = None) -> Document | None: ...

    async def delete_one(self, filter_: Filter, options: WriteOptions | None = None) -> Document | None: ...

    async def delete_many(self, filter_: Filter, options: WriteOptions | None = None) -> DeleteResult: ...


@runtime_checkable
class BulkRepository(Protocol):
    async def bulk_write(self, operations: Sequence[Any], options: WriteOptions | None = None) -> BulkWriteResult: ...

    async def aggregate(self, pipeline: Any, options: QueryOptions | WriteOptions | None = None) -> list[dict[str, Any]]: ...


@runtime_checkable
class TransactionalRepository(Protocol):
    async def with_transaction(self, work: Callable[[Transaction], Awaitable[ResultType]]) -> ResultType: ...

    def transaction(self) -> AbstractAsyncContextManager[Transaction]: ...


@runtime_checkable
class WritableRepositoryProtocol(ReadRepository, WriteRepository, Protocol):
    """Read + write."""


@runtime_checkable
class FullRepository(ReadRepository, WriteRepository, DeleteRepository, BulkRepository, TransactionalRepository, Protocol):
    """Every capability."""
