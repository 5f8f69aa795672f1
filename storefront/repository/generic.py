"""Concrete repositories, each assembled from capability mixins.

Obtain them through ``RepositoryFactory``; call sites should not construct
these classes directly.
"""

from .capabilities import (
    BulkCapability,
    DeleteCapability,
    ReadCapability,
    TransactionCapability,
    WriteCapability,
)

__all__ = ["ReadOnlyRepository", "Repository", "WritableRepository"]


class ReadOnlyRepository(ReadCapability):
    """Read capability only."""


class WritableRepository(ReadCapability, WriteCapability):
    """Read and write capabilities; no delete, bulk or transactions."""


class Repository(
    ReadCapability,
    WriteCapability,
    DeleteCapability,
    BulkCapability,
    TransactionCapability,
):
    """Every capability, including cross-collection transactions."""
