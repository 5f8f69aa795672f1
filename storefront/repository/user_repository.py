"""User repository: hooks plus named queries over the generic repository."""

from collections.abc import Mapping
from typing import Any

import structlog

from storefront.models.user import User

from .adapter import Document, ModelHandle, RepositoryHooks
from .factory import RepositoryFactory
from .interfaces import FullRepository

logger = structlog.get_logger(__name__)


def normalize_new_user(data: Mapping[str, Any]) -> dict[str, Any]:
    """Lower-case the e-mail and default the status of a new user."""
    email = data.get("email")
    return {
        **data,
        "email": email.lower() if isinstance(email, str) else email,
        "status": data.get("status") or "active",
    }


async def log_user_created(user: Document) -> Document:
    logger.info("user_created", user_id=user["id"], email=user["email"])
    return user


USER_HOOKS = RepositoryHooks(before_create=normalize_new_user, after_create=log_user_created)


class UserRepository:
    """Repository for User documents.

    Generic operations are delegated to the underlying full repository, so
    ``users.find_by_id(...)`` works alongside the named queries below.
    """

    def __init__(self, handle: ModelHandle[User]) -> None:
        self.repository: FullRepository = RepositoryFactory.create_full(handle, USER_HOOKS)

    def __getattr__(self, name: str) -> Any:
        return getattr(self.repository, name)

    async def find_active_users(self) -> list[Document]:
        return await self.repository.find_many({"status": "active"})

    async def find_by_email(self, email: str) -> Document | None:
        return await self.repository.find_one({"email": email.lower()})

    async def find_admins(self) -> list[Document]:
        return await self.repository.find_many({"role": "admin", "status": "active"})

    async def suspend_user(self, user_id: str) -> Document | None:
        return await self.repository.update_by_id(user_id, {"status": "suspended"})
