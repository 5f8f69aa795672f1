"""Order repository: order numbering, checkout transaction and order lookups."""

import random
import time
from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from storefront.models.order import Order

from .adapter import Document, ModelHandle, RepositoryHooks
from .bulk import InsertOne
from .factory import RepositoryFactory
from .interfaces import FullRepository
from .options import QueryOptions, WriteOptions
from .transaction import Transaction

logger = structlog.get_logger(__name__)


class OrderRepository:
    """Repository for Order documents.

    ``create_with_items`` is the cross-collection write: the order row and
    its item rows are committed together or not at all.
    """

    def __init__(self, handle: ModelHandle[Order], hooks: RepositoryHooks | None = None) -> None:
        self.repository: FullRepository = RepositoryFactory.create_full(handle, hooks)

    def __getattr__(self, name: str) -> Any:
        return getattr(self.repository, name)

    async def generate_order_number(self) -> str:
        """Return an ``ORD-{millis}-{nnn}`` number not used by any order yet."""
        while True:
            order_number = f"ORD-{int(time.time() * 1000)}-{random.randint(0, 999):03d}"
            if not await self.repository.exists({"order_number": order_number}):
                return order_number

    async def find_by_number(self, order_number: str) -> Document | None:
        return await self.repository.find_one({"order_number": order_number})

    async def find_with_items(self, order_id: str) -> Document | None:
        return await self.repository.find_by_id(order_id, QueryOptions(populate="items"))

    async def find_for_user(self, user_id: str) -> list[Document]:
        return await self.repository.find_many(
            {"user_id": user_id}, QueryOptions(populate="items", sort={"created_at": -1})
        )

    async def create_with_items(
        self,
        order: Mapping[str, Any],
        items: Sequence[Mapping[str, Any]],
        item_repository: FullRepository,
    ) -> Document:
        """Create an order and its items in one transaction.

        Args:
            order: Order fields; ``order_number`` is generated when missing
            items: Item fields without ``order_id``
            item_repository: Repository bound to the OrderItem model

        Returns:
            The order document with its stored ``items``
        """
        order_data = dict(order)
        if not order_data.get("order_number"):
            order_data["order_number"] = await self.generate_order_number()

        async def _checkout(txn: Transaction) -> Document:
            created = await self.repository.create(order_data, WriteOptions(session=txn))
            await item_repository.bulk_write(
                [InsertOne({**item, "order_id": created["id"]}) for item in items],
                WriteOptions(session=txn),
            )
            created["items"] = await item_repository.find_many(
                {"order_id": created["id"]}, QueryOptions(session=txn)
            )
            return created

        result = await self.repository.with_transaction(_checkout)
        logger.info("order_created", order_id=result["id"], order_number=result["order_number"], items=len(items))
        return result
