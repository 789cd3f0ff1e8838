"""Rating service.

A user rates a store at most once. Creating a second rating for the same
store is a conflict; the existing rating has to be updated instead.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from store_ratings.models import Rating, Store, User, UserRole
from store_ratings.schemas import RatingCreate, RatingListResponse, RatingOut, RatingPagination, RatingUpdate
from store_ratings.services.errors import ConflictError, NotFoundError, PermissionDeniedError
from store_ratings.services.pagination import PageRequest, build_pagination

logger = logging.getLogger("uvicorn.error")

RATING_SORT_COLUMNS = {
    "id": Rating.id,
    "rating": Rating.rating,
    "createdAt": Rating.created_at,
    "updatedAt": Rating.updated_at,
}
_RATING_SORT_LOOKUP = {name.lower(): name for name in RATING_SORT_COLUMNS} | {
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


async def _load_rating(session: AsyncSession, rating_id: int) -> Rating:
    result = await session.execute(
        select(Rating)
        .where(Rating.id == rating_id)
        .options(selectinload(Rating.user), selectinload(Rating.store))
        .execution_options(populate_existing=True)
    )
    rating = result.scalar_one_or_none()
    if rating is None:
        raise NotFoundError("Rating not found", {"ratingId": rating_id})
    return rating


async def _existing_rating_id(session: AsyncSession, user_id: int, store_id: int) -> int | None:
    result = await session.execute(
        select(Rating.id).where(Rating.user_id == user_id, Rating.store_id == store_id)
    )
    return result.scalar_one_or_none()


def _ensure_can_modify(user: User, rating: Rating, action: str) -> None:
    if rating.user_id != user.id and user.role != UserRole.ADMIN:
        raise PermissionDeniedError(f"You can only {action} your own ratings")


async def get_rating(session: AsyncSession, rating_id: int) -> RatingOut:
    return RatingOut.model_validate(await _load_rating(session, rating_id))


async def create_rating(session: AsyncSession, user: User, payload: RatingCreate) -> RatingOut:
    """Rate a store as the current user.

    Raises:
        NotFoundError: If the store does not exist.
        ConflictError: If the user already rated this store.
    """
    if await session.get(Store, payload.store_id) is None:
        raise NotFoundError("Store not found", {"storeId": payload.store_id})

    existing_id = await _existing_rating_id(session, user.id, payload.store_id)
    if existing_id is not None:
        raise ConflictError(
            "You have already rated this store. Use update to modify your rating.",
            {"ratingId": existing_id, "storeId": payload.store_id},
        )

    rating = Rating(
        user_id=user.id,
        store_id=payload.store_id,
        rating=payload.rating,
        review_text=payload.review_text,
    )
    session.add(rating)
    try:
        await session.flush()
    except IntegrityError as e:
        # A concurrent request inserted the same (user, store) pair first.
        raise ConflictError(
            "You have already rated this store. Use update to modify your rating.",
            {"storeId": payload.store_id},
        ) from e

    logger.info(
        "[ratings] created rating_id=%s user_id=%s store_id=%s rating=%s",
        rating.id,
        user.id,
        payload.store_id,
        payload.rating,
    )
    return RatingOut.model_validate(await _load_rating(session, rating.id))


async def update_rating(session: AsyncSession, user: User, rating_id: int, payload: RatingUpdate) -> RatingOut:
    """Change score (and review text when provided) of a rating.

    Raises:
        NotFoundError: If the rating does not exist.
        PermissionDeniedError: If the caller is neither the author nor an admin.
    """
    rating = await _load_rating(session, rating_id)
    _ensure_can_modify(user, rating, "update")

    rating.rating = payload.rating
    if "review_text" in payload.model_fields_set:
        rating.review_text = payload.review_text
    await session.flush()

    logger.info("[ratings] updated rating_id=%s by user_id=%s rating=%s", rating_id, user.id, payload.rating)
    return RatingOut.model_validate(await _load_rating(session, rating_id))


async def delete_rating(session: AsyncSession, user: User, rating_id: int) -> None:
    rating = await _load_rating(session, rating_id)
    _ensure_can_modify(user, rating, "delete")
    await session.delete(rating)
    await session.flush()
    logger.info("[ratings] deleted rating_id=%s by user_id=%s", rating_id, user.id)


async def list_ratings(
    session: AsyncSession,
    page: PageRequest,
    *,
    store_id: int | None = None,
    user_id: int | None = None,
    score: int | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
) -> RatingListResponse:
    """List ratings with optional store/user/score filters.

    Unknown sort fields fall back to createdAt, unknown directions to DESC.
    """
    where = []
    if store_id is not None:
        where.append(Rating.store_id == store_id)
    if user_id is not None:
        where.append(Rating.user_id == user_id)
    if score is not None:
        where.append(Rating.rating == score)

    field_name = _RATING_SORT_LOOKUP.get((sort_by or "").strip().lower(), "createdAt")
    column = RATING_SORT_COLUMNS[field_name]
    ascending = (sort_order or "").strip().upper() == "ASC"
    order = column.asc() if ascending else column.desc()
    tie_break = Rating.id.asc() if ascending else Rating.id.desc()

    count_result = await session.execute(select(func.count(Rating.id)).where(*where))
    total = count_result.scalar() or 0

    result = await session.execute(
        select(Rating)
        .where(*where)
        .options(selectinload(Rating.user), selectinload(Rating.store))
        .order_by(order, tie_break)
        .limit(page.limit)
        .offset(page.offset)
    )
    return RatingListResponse(
        ratings=[RatingOut.model_validate(r) for r in result.scalars().all()],
        pagination=RatingPagination.from_pagination(build_pagination(page, total)),
    )


async def list_user_ratings(session: AsyncSession, user: User, page: PageRequest) -> RatingListResponse:
    """The current user's ratings, newest first."""
    return await list_ratings(session, page, user_id=user.id)
