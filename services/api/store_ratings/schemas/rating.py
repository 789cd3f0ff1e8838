"""Schemas for the rating endpoints (/api/ratings)."""

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, Field

from store_ratings.models.rating import MAX_RATING, MAX_REVIEW_LENGTH, MIN_RATING
from store_ratings.schemas.common import PaginationMeta, UserSummary


class RatedStoreSummary(BaseModel):
    """Minimal store projection embedded in rating payloads."""

    id: int
    name: str
    address: str

    model_config = {"from_attributes": True}


class RatingOut(BaseModel):
    id: int
    user_id: int = Field(alias="userId")
    store_id: int = Field(alias="storeId")
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    review_text: str | None = Field(alias="reviewText", default=None)
    created_at: datetime | None = Field(alias="createdAt", default=None)
    updated_at: datetime | None = Field(alias="updatedAt", default=None)
    user: UserSummary | None = None
    store: RatedStoreSummary | None = None

    model_config = {"populate_by_name": True, "from_attributes": True}


class RatingPagination(PaginationMeta):
    total_field: ClassVar[str] = "total_ratings"

    total_ratings: int = Field(alias="totalRatings", ge=0)


class RatingListResponse(BaseModel):
    ratings: list[RatingOut]
    pagination: RatingPagination


class RatingCreate(BaseModel):
    """Request body for POST /api/ratings."""

    store_id: int = Field(alias="storeId")
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    review_text: str | None = Field(alias="reviewText", default=None, max_length=MAX_REVIEW_LENGTH)

    model_config = {"populate_by_name": True}


class RatingUpdate(BaseModel):
    """Request body for PUT /api/ratings/{id}.

    reviewText is only changed when present in the body.
    """

    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    review_text: str | None = Field(alias="reviewText", default=None, max_length=MAX_REVIEW_LENGTH)

    model_config = {"populate_by_name": True}
