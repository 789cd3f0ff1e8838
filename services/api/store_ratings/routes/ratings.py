"""Rating endpoints.

Any authenticated user may read ratings and rate a store once; only the
author or an admin may change or delete a rating.
"""

from fastapi import APIRouter, Depends, Path, Query, status

from store_ratings.models import User
from store_ratings.schemas import MessageResponse, RatingCreate, RatingListResponse, RatingOut, RatingUpdate
from store_ratings.services import ratings as rating_service
from store_ratings.services.pagination import coerce_page_request
from store_ratings.settings import get_settings
from store_ratings.stores.postgres import get_session
from store_ratings.routes.deps import get_current_user

router = APIRouter()


@router.get("", response_model=RatingListResponse)
async def list_ratings(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    store_id: int | None = Query(default=None, alias="storeId", ge=1),
    user_id: int | None = Query(default=None, alias="userId", ge=1),
    rating: int | None = Query(default=None, ge=1, le=5),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_order: str | None = Query(default=None, alias="sortOrder"),
    _: User = Depends(get_current_user),
) -> RatingListResponse:
    page_request = coerce_page_request(page, limit, max_limit=get_settings().listing_max_limit)
    async with get_session() as session:
        return await rating_service.list_ratings(
            session,
            page_request,
            store_id=store_id,
            user_id=user_id,
            score=rating,
            sort_by=sort_by,
            sort_order=sort_order,
        )


@router.get("/my-ratings", response_model=RatingListResponse)
async def list_my_ratings(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    user: User = Depends(get_current_user),
) -> RatingListResponse:
    page_request = coerce_page_request(page, limit, max_limit=get_settings().listing_max_limit)
    async with get_session() as session:
        return await rating_service.list_user_ratings(session, user, page_request)


@router.get("/{rating_id}", response_model=RatingOut)
async def get_rating(
    rating_id: int = Path(ge=1),
    _: User = Depends(get_current_user),
) -> RatingOut:
    async with get_session() as session:
        return await rating_service.get_rating(session, rating_id)


@router.post("", response_model=RatingOut, status_code=status.HTTP_201_CREATED)
async def create_rating(
    request: RatingCreate,
    user: User = Depends(get_current_user),
) -> RatingOut:
    """Rate a store. Returns 409 if the caller already rated it."""
    async with get_session() as session:
        return await rating_service.create_rating(session, user, request)


@router.put("/{rating_id}", response_model=RatingOut)
async def update_rating(
    request: RatingUpdate,
    rating_id: int = Path(ge=1),
    user: User = Depends(get_current_user),
) -> RatingOut:
    async with get_session() as session:
        return await rating_service.update_rating(session, user, rating_id, request)


@router.delete("/{rating_id}", response_model=MessageResponse)
async def delete_rating(
    rating_id: int = Path(ge=1),
    user: User = Depends(get_current_user),
) -> MessageResponse:
    async with get_session() as session:
        await rating_service.delete_rating(session, user, rating_id)
    return MessageResponse(message="Rating deleted successfully")
