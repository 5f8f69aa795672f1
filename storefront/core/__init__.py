"""
Core infrastructure components for the data-access layer.

This module contains database pool management, the repository error
hierarchy, shared enums and logging setup.
"""

from .database import AsyncDBPool
from .enums import SortDirection, TransactionState
from .exceptions import (
    ErrorResponse,
    RepositoryError,
    RepositoryIntegrityError,
    RepositoryValidationError,
    TransactionStateError,
)
from .logging_config import setup_logging

__all__ = [
    "AsyncDBPool",
    "ErrorResponse",
    "RepositoryError",
    "RepositoryIntegrityError",
    "RepositoryValidationError",
    "SortDirection",
    "TransactionState",
    "TransactionStateError",
    "setup_logging",
]
