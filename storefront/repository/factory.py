"""Factory: the one construction path for repositories."""

from typing import TypeVar

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.core.database import AsyncDBPool
from storefront.models.base import Base

from .adapter import ModelHandle, RepositoryHooks
from .generic import ReadOnlyRepository, Repository, WritableRepository
from .interfaces import FullRepository, ReadRepository, WritableRepositoryProtocol

__all__ = ["RepositoryFactory"]

ModelType = TypeVar("ModelType", bound=Base)


class RepositoryFactory:
    """Build repositories scoped to a capability set.

    Usage:
        handle = RepositoryFactory.for_model(Product)
        catalogue = RepositoryFactory.create_read_only(handle)
        products = RepositoryFactory.create_full(handle)
    """

    @staticmethod
    def for_model(
        model: type[ModelType],
        session_maker: async_sessionmaker[AsyncSession] | None = None,
        schema: type[BaseModel] | None = None,
    ) -> ModelHandle[ModelType]:
        """Build a model handle; the session maker defaults to the process pool's."""
        return ModelHandle(model, session_maker or AsyncDBPool.get_session_maker(), schema)

    @staticmethod
    def create_read_only(handle: ModelHandle, hooks: RepositoryHooks | None = None) -> ReadRepository:
        return ReadOnlyRepository(handle, hooks)

    @staticmethod
    def create_writable(handle: ModelHandle, hooks: RepositoryHooks | None = None) -> WritableRepositoryProtocol:
        return WritableRepository(handle, hooks)

    @staticmethod
    def create_full(handle: ModelHandle, hooks: RepositoryHooks | None = None) -> FullRepository:
        return Repository(handle, hooks)
