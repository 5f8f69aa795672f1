"""
Base declarative class and mixins for SQLAlchemy models.

Every mapped class is one document collection. ``Base.to_dict`` is the single
place a mapped row becomes the plain document repositories hand back.
"""

import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any, ClassVar

from pydantic import BaseModel
from sqlalchemy import Column, DateTime, String, inspect
from sqlalchemy.orm import DeclarativeBase


def utc_now():
    """Returns current UTC time with timezone awareness.

    Replaces deprecated datetime.utcnow()
    """
    return datetime.now(UTC)


def new_object_id() -> str:
    """Generate a document identity (32 hex chars)."""
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models.

    Subclasses may set ``__schema__`` to the pydantic model their documents
    are validated against before they are written.
    """

    __schema__: ClassVar[type[BaseModel] | None] = None

    def to_dict(self, relations: Iterable[str] = ()) -> dict[str, Any]:
        """Render the row as a plain document.

        Only attributes that are already loaded are read, so deferred columns
        and relationships that were not eagerly loaded never trigger IO.

        Args:
            relations: Relationship names to render nested
        """
        state = inspect(self)
        unloaded = state.unloaded
        document = {
            attr.key: getattr(self, attr.key)
            for attr in state.mapper.column_attrs
            if attr.key not in unloaded
        }
        for name in relations:
            if name in unloaded:
                continue
            value = getattr(self, name)
            if value is None:
                document[name] = None
            elif isinstance(value, list | tuple | set):
                document[name] = [item.to_dict() for item in value]
            else:
                document[name] = value.to_dict()
        return document


class IdentityMixin:
    """Mixin that adds a generated string primary key."""

    id = Column(String(32), primary_key=True, default=new_object_id)


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns to models.

    Usage:
        class MyModel(Base, IdentityMixin, TimestampMixin):
            __tablename__ = 'my_model'
    """

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)


class CreatedAtMixin:
    """Mixin for append-only collections that only track creation time."""

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
