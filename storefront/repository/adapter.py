"""Adapter base shared by every repository capability.

A repository is bound to exactly one ``ModelHandle`` and an optional set of
``RepositoryHooks``; both are immutable and are the only state an instance
holds, so one instance can serve any number of concurrent callers.
"""

import inspect
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import structlog
from pydantic import BaseModel, ValidationError
from sqlalchemy import Executable, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.core.exceptions import RepositoryError, RepositoryValidationError
from storefront.models.base import Base

from .options import QueryOptions, WriteOptions
from .query import build_where
from .transaction import Transaction

__all__ = ["ModelHandle", "RepositoryAdapter", "RepositoryHooks"]

logger = structlog.get_logger(__name__)

ModelType = TypeVar("ModelType", bound=Base)

Document = dict[str, Any]
Hook = Callable[[Any], Any | Awaitable[Any]]


@dataclass(frozen=True)
class ModelHandle(Generic[ModelType]):
    """Binds a repository to one collection.

    Attributes:
        model: SQLAlchemy mapped class
        session_maker: Factory for sessions on the store the model lives in
        schema: Pydantic model documents are validated against before writes;
            defaults to the mapped class's ``__schema__``
    """

    model: type[ModelType]
    session_maker: async_sessionmaker[AsyncSession]
    schema: type[BaseModel] | None = field(default=None)

    def __post_init__(self) -> None:
        if self.schema is None:
            object.__setattr__(self, "schema", getattr(self.model, "__schema__", None))

    @property
    def name(self) -> str:
        return self.model.__name__


@dataclass(frozen=True)
class RepositoryHooks:
    """Optional lifecycle hooks; each may be sync or async.

    before_create(data) -> data, after_create(entity) -> entity,
    before_update(patch) -> patch, after_update(entity) -> entity,
    before_delete(entity) -> None
    """

    before_create: Hook | None = None
    after_create: Hook | None = None
    before_update: Hook | None = None
    after_update: Hook | None = None
    before_delete: Hook | None = None


class RepositoryAdapter(Generic[ModelType]):
    """Holds the model handle and hooks, and the plumbing every capability uses."""

    def __init__(self, handle: ModelHandle[ModelType], hooks: RepositoryHooks | None = None) -> None:
        self._handle = handle
        self._hooks = hooks or RepositoryHooks()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(model={self._handle.name})>"

    @property
    def handle(self) -> ModelHandle[ModelType]:
        return self._handle

    @property
    def model(self) -> type[ModelType]:
        return self._handle.model

    @property
    def hooks(self) -> RepositoryHooks:
        return self._hooks

    async def _run_hook(self, name: str, value: Any) -> Any:
        """Run hook ``name`` if registered; returns its result or ``value`` unchanged."""
        hook = getattr(self._hooks, name)
        if hook is None:
            return value
        result = hook(value)
        if inspect.isawaitable(result):
            result = await result
        return result

    @staticmethod
    def _bound_session(options: QueryOptions | WriteOptions | None) -> AsyncSession | None:
        token = options.session if options is not None else None
        if token is None:
            return None
        if isinstance(token, Transaction):
            return token.session
        if isinstance(token, AsyncSession):
            return token
        raise TypeError(f"Unsupported session token {type(token).__name__}")

    @asynccontextmanager
    async def _session_scope(
        self, options: QueryOptions | WriteOptions | None, *, write: bool = False
    ) -> AsyncIterator[AsyncSession]:
        """Yield the session an operation runs on.

        Bound to a caller's transaction: the session is yielded as-is and
        writes are only flushed, the transaction owner decides the outcome.
        Unbound: a private session is opened, committed after a successful
        write and rolled back on any error.
        """
        bound = self._bound_session(options)
        if bound is not None:
            yield bound
            if write:
                await bound.flush()
            return

        async with self._handle.session_maker() as session:
            try:
                yield session
                if write:
                    await session.commit()
            except BaseException:
                await session.rollback()
                raise

    @asynccontextmanager
    async def _operation(self, operation: str, **context: Any) -> AsyncIterator[None]:
        """Wrap unexpected failures of ``operation`` as ``RepositoryError``.

        Errors this layer already classified pass through untouched.
        """
        logger.debug("repository_operation", operation=operation, model=self._handle.name, **context)
        try:
            yield
        except RepositoryError:
            raise
        except Exception as exc:
            logger.error(
                "repository_operation_failed",
                operation=operation,
                model=self._handle.name,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise RepositoryError.wrap(operation, exc) from exc

    def _validate(self, document: Mapping[str, Any], operation: str, **detail: Any) -> Document:
        """Check ``document`` against the handle's schema, if it has one.

        Returns:
            ``document`` with the schema's coerced values for the keys it
            carries; keys the schema does not know are passed through
        """
        document = dict(document)
        schema = self._handle.schema
        if schema is None:
            return document
        try:
            validated = schema.model_validate(document)
        except ValidationError as exc:
            raise RepositoryValidationError.from_pydantic(
                exc, operation=operation, model=self._handle.name, detail=detail or None
            ) from exc
        return {**document, **validated.model_dump(include=set(document))}

    @staticmethod
    def _check_id(id_: Any, operation: str) -> str:
        if not isinstance(id_, str) or not id_:
            raise RepositoryError(
                f"Repository {operation} operation failed: invalid identifier {id_!r}",
                operation=operation,
                detail={"id": repr(id_)},
            )
        return id_

    async def _first_match(self, session: AsyncSession, filter_: Mapping[str, Any] | None) -> ModelType | None:
        stmt = select(self.model).where(build_where(self.model, filter_)).limit(1)
        return (await session.execute(stmt)).scalars().first()

    @staticmethod
    async def _execute_bulk(session: AsyncSession, statement: Executable) -> int:
        """Run a multi-row UPDATE/DELETE and return the affected row count.

        Rows already loaded in the session are expired afterwards so later
        reads on the same transaction see the new state.
        """
        result = await session.execute(statement.execution_options(synchronize_session=False))
        session.expire_all()
        return result.rowcount or 0
