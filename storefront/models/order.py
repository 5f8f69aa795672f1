"""
Order and order item models and their document schemas.
"""

from typing import Literal

from pydantic import BaseModel, Field
from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from .base import Base, CreatedAtMixin, IdentityMixin, TimestampMixin

OrderStatus = Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled", "refunded"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]
PaymentMethod = Literal["cod", "credit_card", "debit_card", "upi", "net_banking", "wallet"]


class OrderSchema(BaseModel):
    """Persistence-time validation rules for order documents."""

    user_id: str = Field(min_length=1)
    order_number: str = Field(min_length=1, max_length=50)
    status: OrderStatus = "pending"
    payment_status: PaymentStatus = "pending"
    payment_method: PaymentMethod
    subtotal: float = Field(ge=0)
    tax_amount: float = Field(default=0, ge=0)
    shipping_amount: float = Field(default=0, ge=0)
    discount_amount: float = Field(default=0, ge=0)
    total_amount: float = Field(ge=0)
    currency: str = Field(default="INR", max_length=3)
    notes: str | None = None


class OrderItemSchema(BaseModel):
    """Persistence-time validation rules for order item documents."""

    order_id: str = Field(min_length=1)
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)
    total_price: float = Field(ge=0)
    product_name: str = Field(min_length=1, max_length=255)
    product_sku: str = Field(min_length=1, max_length=100)


class Order(Base, IdentityMixin, TimestampMixin):
    """
    Order model representing a placed order.

    Attributes:
        id: Unique identifier for the order
        user_id: Identity of the ordering user
        order_number: Human-facing unique order reference
        status: Fulfilment status
        payment_status: Payment state
        payment_method: Payment channel
        subtotal: Sum of item totals
        tax_amount: Tax charged
        shipping_amount: Shipping charged
        discount_amount: Discount applied
        total_amount: Amount payable
        currency: ISO currency code
        notes: Free-text notes
        items: Order lines (populate with ``populate="items"``)
    """

    __tablename__ = "orders"
    __schema__ = OrderSchema

    user_id = Column(String(32), nullable=False, index=True)
    order_number = Column(String(50), nullable=False, unique=True, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    payment_status = Column(String(20), nullable=False, default="pending")
    payment_method = Column(String(20), nullable=False)
    subtotal = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    tax_amount = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    shipping_amount = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    notes = Column(Text, nullable=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.created_at",
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, order_number='{self.order_number}', status='{self.status}')>"


class OrderItem(Base, IdentityMixin, CreatedAtMixin):
    """
    Order line linking an order to the product bought.

    Product name and SKU are copied at purchase time so later catalogue
    edits do not rewrite order history.
    """

    __tablename__ = "order_items"
    __schema__ = OrderItemSchema

    order_id = Column(String(32), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(32), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    total_price = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    product_name = Column(String(255), nullable=False)
    product_sku = Column(String(100), nullable=False)

    order = relationship("Order", back_populates="items")

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, sku='{self.product_sku}')>"
