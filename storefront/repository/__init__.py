"""Generic data-access layer.

Repositories are obtained from ``RepositoryFactory`` for a ``ModelHandle`` and
typed against the capability protocol the consumer needs.
"""

from .adapter import ModelHandle, RepositoryHooks
from .bulk import BulkWriteResult, DeleteMany, DeleteOne, InsertOne, UpdateMany, UpdateOne
from .factory import RepositoryFactory
from .interfaces import (
    BulkRepository,
    DeleteRepository,
    FullRepository,
    ReadRepository,
    TransactionalRepository,
    WritableRepositoryProtocol,
    WriteRepository,
)
from .options import (
    DeleteResult,
    PaginatedResult,
    PaginationMeta,
    PaginationOptions,
    QueryOptions,
    UpdateResult,
    WriteOptions,
)
from .order_repository import OrderRepository
from .product_repository import ProductRepository
from .transaction import Transaction
from .user_repository import UserRepository

__all__ = [
    "BulkRepository",
    "BulkWriteResult",
    "DeleteMany",
    "DeleteOne",
    "DeleteRepository",
    "DeleteResult",
    "FullRepository",
    "InsertOne",
    "ModelHandle",
    "OrderRepository",
    "PaginatedResult",
    "PaginationMeta",
    "PaginationOptions",
    "ProductRepository",
    "QueryOptions",
    "ReadRepository",
    "RepositoryFactory",
    "RepositoryHooks",
    "Transaction",
    "TransactionalRepository",
    "UpdateMany",
    "UpdateOne",
    "UpdateResult",
    "UserRepository",
    "WritableRepositoryProtocol",
    "WriteOptions",
    "WriteRepository",
]
