"""Product repository: catalogue queries over the generic repository."""

from typing import Any

from storefront.models.product import Product

from .adapter import Document, ModelHandle, RepositoryHooks
from .factory import RepositoryFactory
from .interfaces import FullRepository
from .options import QueryOptions


class ProductRepository:
    """Repository for Product documents.

    Provides catalogue-specific queries, including search and price
    filtering; every generic operation is delegated.
    """

    def __init__(self, handle: ModelHandle[Product], hooks: RepositoryHooks | None = None) -> None:
        self.repository: FullRepository = RepositoryFactory.create_full(handle, hooks)

    def __getattr__(self, name: str) -> Any:
        return getattr(self.repository, name)

    async def search(
        self,
        search_term: str | None = None,
        status: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Document]:
        """Search products by name, newest first.

        Args:
            search_term: Text to search for in name (case-insensitive)
            status: Filter by catalogue status
            limit: Maximum number of results to return
            offset: Number of records to skip

        Returns:
            Matching product documents
        """
        filter_: dict[str, Any] = {}
        if search_term:
            filter_["name"] = {"$like": f"%{search_term}%"}
        if status:
            filter_["status"] = status
        return await self.repository.find_many(
            filter_, QueryOptions(sort={"created_at": -1}, limit=limit, skip=offset)
        )

    async def find_by_status(self, status: str, limit: int | None = None, offset: int | None = None) -> list[Document]:
        return await self.repository.find_many({"status": status}, QueryOptions(limit=limit, skip=offset))

    async def find_by_price_range(
        self,
        min_price: float | None = None,
        max_price: float | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Document]:
        """Get products within a price range, cheapest first.

        Args:
            min_price: Minimum price (inclusive)
            max_price: Maximum price (inclusive)
            limit: Maximum number of results
            offset: Number of records to skip
        """
        price: dict[str, float] = {}
        if min_price is not None:
            price["$gte"] = min_price
        if max_price is not None:
            price["$lte"] = max_price
        filter_ = {"price": price} if price else {}
        return await self.repository.find_many(filter_, QueryOptions(sort={"price": 1}, limit=limit, skip=offset))

    async def find_featured(self) -> list[Document]:
        return await self.repository.find_many({"is_featured": True, "is_active": True})
