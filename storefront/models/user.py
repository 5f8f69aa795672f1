"""
User model and its document schema.
"""

from typing import Literal

from pydantic import BaseModel, Field
from sqlalchemy import Column, String

from .base import Base, IdentityMixin, TimestampMixin


class UserSchema(BaseModel):
    """Persistence-time validation rules for user documents."""

    email: str = Field(max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    name: str = Field(min_length=1, max_length=100)
    status: Literal["active", "inactive", "suspended"] = "active"
    role: Literal["user", "admin"] = "user"


class User(Base, IdentityMixin, TimestampMixin):
    """
    User model representing a storefront account.

    Attributes:
        id: Unique identifier for the user
        email: Login e-mail, stored lower-cased
        name: Display name
        status: Account status (active, inactive, suspended)
        role: Authorization role (user, admin)
    """

    __tablename__ = "users"
    __schema__ = UserSchema

    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default="active", index=True)
    role = Column(String(20), nullable=False, default="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', status='{self.status}')>"
