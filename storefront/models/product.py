"""
Product model and its document schema.
"""

from typing import Literal

from pydantic import BaseModel, Field
from sqlalchemy import Boolean, Column, Integer, Numeric, String, Text

from .base import Base, IdentityMixin, TimestampMixin


class ProductSchema(BaseModel):
    """Persistence-time validation rules for product documents."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: float = Field(ge=0)
    sale_price: float | None = Field(default=None, ge=0)
    stock_quantity: int = Field(default=0, ge=0)
    weight: float | None = Field(default=None, ge=0)
    status: Literal["draft", "active", "inactive", "out_of_stock"] = "draft"
    is_featured: bool = False
    is_active: bool = True


class Product(Base, IdentityMixin, TimestampMixin):
    """
    Product model representing a product in the catalogue.

    Attributes:
        id: Unique identifier for the product
        name: Name of the product
        description: Long description
        price: List price
        sale_price: Discounted price, if any
        stock_quantity: Units in stock
        weight: Shipping weight
        status: Catalogue status (draft, active, inactive, out_of_stock)
        is_featured: Shown on the landing page
        is_active: Visible to shoppers
    """

    __tablename__ = "products"
    __schema__ = ProductSchema

    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    sale_price = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    weight = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    status = Column(String(20), nullable=False, default="draft", index=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', price={self.price})>"
