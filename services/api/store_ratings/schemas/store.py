"""Schemas for the store endpoints (/api/stores)."""

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, EmailStr, Field, field_validator

from store_ratings.models import StoreCategory
from store_ratings.schemas.common import PaginationMeta, UserSummary, normalize_email


class StoreOut(BaseModel):
    """Persisted store columns."""

    id: int
    name: str
    email: str
    address: str
    category: StoreCategory
    owner_id: int | None = Field(alias="ownerId", default=None)
    created_at: datetime | None = Field(alias="createdAt", default=None)
    updated_at: datetime | None = Field(alias="updatedAt", default=None)

    model_config = {"populate_by_name": True, "from_attributes": True}


class StoreListItem(StoreOut):
    """A store row in a listing, annotated with derived rating stats."""

    owner: UserSummary | None = None
    average_rating: float = Field(alias="averageRating", ge=0, le=5)
    total_ratings: int = Field(alias="totalRatings", ge=0)


class StoreRatingOut(BaseModel):
    """A rating as shown on a store's detail page."""

    id: int
    rating: int = Field(ge=1, le=5)
    review_text: str | None = Field(alias="reviewText", default=None)
    user_id: int = Field(alias="userId")
    user: UserSummary | None = None
    created_at: datetime | None = Field(alias="createdAt", default=None)

    model_config = {"populate_by_name": True, "from_attributes": True}


class StoreDetail(StoreListItem):
    """Single store with its ratings."""

    ratings: list[StoreRatingOut] = Field(default_factory=list)


class StorePagination(PaginationMeta):
    total_field: ClassVar[str] = "total_stores"

    total_stores: int = Field(alias="totalStores", ge=0)


class StoreListResponse(BaseModel):
    """Response payload for GET /api/stores and GET /api/stores/my/stores."""

    stores: list[StoreListItem]
    pagination: StorePagination


class StoreCreate(BaseModel):
    """Request body for POST /api/stores."""

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    address: str = Field(min_length=1, max_length=400)
    category: StoreCategory = StoreCategory.OTHER
    owner_id: int | None = Field(alias="ownerId", default=None)

    model_config = {"populate_by_name": True}

    @field_validator("email", mode="after")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return normalize_email(v)


class StoreUpdate(BaseModel):
    """Request body for PUT /api/stores/{id}.

    Omitted fields are left unchanged; an explicit "ownerId": null unassigns the owner.
    """

    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    address: str | None = Field(default=None, min_length=1, max_length=400)
    category: StoreCategory | None = None
    owner_id: int | None = Field(alias="ownerId", default=None)

    model_config = {"populate_by_name": True}

    @field_validator("email", mode="after")
    @classmethod
    def _normalize_email(cls, v: str | None) -> str | None:
        return normalize_email(v) if v is not None else None


class OwnerStoreStat(BaseModel):
    id: int
    name: str
    average_rating: float = Field(alias="averageRating")
    total_ratings: int = Field(alias="totalRatings")

    model_config = {"populate_by_name": True}


class OwnerStats(BaseModel):
    """Response payload for GET /api/stores/my/stats."""

    total_stores: int = Field(alias="totalStores")
    total_ratings: int = Field(alias="totalRatings")
    average_rating: float = Field(alias="averageRating")
    stores: list[OwnerStoreStat] = Field(default_factory=list)

    model_config = {"populate_by_name": True}
