"""Store model.

Represents a rated store. Average rating and rating count are not stored
columns: they are derived from the ratings relationship at read time
(see services/listing.py).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Enum, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from store_ratings.stores.postgres import Base

if TYPE_CHECKING:
    from store_ratings.models.rating import Rating
    from store_ratings.models.user import User


class StoreCategory(str, PyEnum):
    """Fixed set of store categories."""

    FOOD = "food"
    ELECTRONICS = "electronics"
    GROCERIES = "groceries"
    CLOTHING = "clothing"
    HEALTH = "health"
    BEAUTY = "beauty"
    SPORTS = "sports"
    BOOKS = "books"
    HOME = "home"
    AUTOMOTIVE = "automotive"
    OTHER = "other"


class Store(Base):
    """Store listed in the directory."""

    __tablename__ = "stores"

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(255), index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    address: Mapped[str] = mapped_column(String(400))
    category: Mapped[StoreCategory] = mapped_column(
        Enum(StoreCategory, name="store_category", values_callable=lambda e: [m.value for m in e]),
        default=StoreCategory.OTHER,
        server_default=StoreCategory.OTHER.value,
    )

    owner_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
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

    owner: Mapped[User | None] = relationship(back_populates="owned_stores")
    ratings: Mapped[list[Rating]] = relationship(
        back_populates="store",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Store {self.name} ({self.category.value})>"
