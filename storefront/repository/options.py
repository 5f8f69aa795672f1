"""Option and result shapes shared by every repository operation."""

import math
from dataclasses import dataclass, replace
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from storefront.main_config import repository_config

__all__ = [
    "DeleteResult",
    "PaginatedResult",
    "PaginationMeta",
    "PaginationOptions",
    "QueryOptions",
    "UpdateResult",
    "WriteOptions",
]


@dataclass(frozen=True)
class WriteOptions:
    """Options accepted by mutating operations.

    ``session`` is a ``Transaction`` (or a raw ``AsyncSession``) the operation
    joins instead of opening its own.
    """

    session: Any = None


@dataclass(frozen=True)
class QueryOptions:
    """Options accepted by read operations.

    Attributes:
        select: Projection, ``{"name": 1}`` / ``{"weight": 0}`` or ``"name -weight"``
        populate: Relationship(s) to load and nest in each document
        sort: ``{"price": -1}`` or ``"-price name"``
        limit: Maximum documents returned
        skip: Documents skipped before the first returned
        session: Transaction token the read joins
        lean: Accepted for compatibility; documents are always plain dicts
    """

    select: dict[str, Any] | str | None = None
    populate: Any = None
    sort: dict[str, Any] | str | None = None
    limit: int | None = None
    skip: int | None = None
    session: Any = None
    lean: bool = True

    def merge(self, **changes: Any) -> "QueryOptions":
        return replace(self, **changes)


class PaginationOptions(BaseModel):
    """Requested page; out-of-range values fall back to the defaults."""

    page: int = Field(default_factory=lambda: repository_config.default_page)
    limit: int = Field(default_factory=lambda: repository_config.default_page_size)

    @field_validator("page", mode="before")
    @classmethod
    def _normalize_page(cls, v: Any) -> int:
        if v is None or int(v) < 1:
            return repository_config.default_page
        return int(v)

    @field_validator("limit", mode="before")
    @classmethod
    def _normalize_limit(cls, v: Any) -> int:
        if v is None or int(v) < 1:
            return repository_config.default_page_size
        return int(v)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class PaginationMeta(BaseModel):
    """Derived counts accompanying one page of results."""

    model_config = ConfigDict(populate_by_name=True)

    total: int
    page: int
    limit: int
    pages: int
    has_next: bool = Field(alias="hasNext")
    has_prev: bool = Field(alias="hasPrev")

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PaginationMeta":
        pages = math.ceil(total / limit)
        return cls(
            total=total,
            page=page,
            limit=limit,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
        )


class PaginatedResult(BaseModel):
    """One page of documents plus its pagination metadata."""

    data: list[dict[str, Any]]
    pagination: PaginationMeta

    def to_dict(self) -> dict[str, Any]:
        """Wire shape: ``{data, pagination: {total, page, limit, pages, hasNext, hasPrev}}``."""
        return self.model_dump(by_alias=True)


class UpdateResult(BaseModel):
    modified_count: int = 0


class DeleteResult(BaseModel):
    deleted_count: int = 0


def coerce_pagination(pagination: PaginationOptions | dict[str, Any] | None) -> PaginationOptions:
    if isinstance(pagination, PaginationOptions):
        return pagination
    return PaginationOptions.model_validate(pagination or {})
