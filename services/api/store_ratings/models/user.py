"""User model.

Users authenticate with email + password and carry one of three roles.
Store owners are linked to the stores they manage via stores.owner_id.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from store_ratings.stores.postgres import Base

if TYPE_CHECKING:
    from store_ratings.models.rating import Rating
    from store_ratings.models.store import Store


class UserRole(str, PyEnum):
    """Access role of a user."""

    ADMIN = "admin"
    USER = "user"
    STORE_OWNER = "store_owner"


class User(Base):
    """Registered user."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(60))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255))  # passlib hash
    address: Mapped[str | None] = mapped_column(String(400))

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        default=UserRole.USER,
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Deleting a user nulls owner_id on their stores (no delete cascade here).
    owned_stores: Mapped[list[Store]] = relationship(back_populates="owner")
    ratings: Mapped[list[Rating]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role.value})>"
