"""
SQLAlchemy models and document schemas for the storefront collections.
"""

from .base import Base
from .order import Order, OrderItem, OrderItemSchema, OrderSchema
from .product import Product, ProductSchema
from .user import User, UserSchema

__all__: list[str] = [
    "Base",
    "Order",
    "OrderItem",
    "OrderItemSchema",
    "OrderSchema",
    "Product",
    "ProductSchema",
    "User",
    "UserSchema",
]
