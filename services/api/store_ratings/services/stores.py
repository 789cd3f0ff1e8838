"""Store management service.

CRUD for stores plus the owner-facing views (owned stores, ratings on them,
summary stats). Listing itself lives in services/listing.py.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from store_ratings.models import Rating, Store, User
from store_ratings.schemas import (
    OwnerStats,
    OwnerStoreStat,
    RatingListResponse,
    RatingOut,
    RatingPagination,
    StoreCreate,
    StoreDetail,
    StoreOut,
    StoreRatingOut,
    StoreUpdate,
    UserSummary,
)
from store_ratings.services.errors import ConflictError, NotFoundError, ValidationFailedError
from store_ratings.services.listing import AggregatedStore, aggregate_ratings
from store_ratings.services.pagination import PageRequest, build_pagination

logger = logging.getLogger("uvicorn.error")


async def _get_store_or_404(session: AsyncSession, store_id: int, *options) -> Store:
    result = await session.execute(
        select(Store).where(Store.id == store_id).options(*options).execution_options(populate_existing=True)
    )
    store = result.scalar_one_or_none()
    if store is None:
        raise NotFoundError("Store not found", {"storeId": store_id})
    return store


async def _ensure_email_available(session: AsyncSession, email: str) -> None:
    result = await session.execute(select(Store.id).where(Store.email == email))
    if result.scalar_one_or_none() is not None:
        raise ConflictError("Store with this email already exists", {"email": email})


async def _ensure_owner_exists(session: AsyncSession, owner_id: int) -> None:
    if await session.get(User, owner_id) is None:
        raise ValidationFailedError("Owner not found", {"ownerId": owner_id})


async def get_store_detail(session: AsyncSession, store_id: int) -> StoreDetail:
    """Get a store with its owner, ratings (with raters) and rating stats.

    Raises:
        NotFoundError: If the store does not exist.
    """
    store = await _get_store_or_404(
        session,
        store_id,
        selectinload(Store.owner),
        selectinload(Store.ratings).selectinload(Rating.user),
    )
    row = AggregatedStore.from_store(store)
    ratings = sorted(store.ratings, key=lambda r: r.id, reverse=True)
    return StoreDetail(
        id=store.id,
        name=store.name,
        email=store.email,
        address=store.address,
        category=store.category,
        owner_id=store.owner_id,
        owner=UserSummary.model_validate(store.owner) if store.owner else None,
        created_at=store.created_at,
        updated_at=store.updated_at,
        average_rating=row.stats.average_rating,
        total_ratings=row.stats.total_ratings,
        ratings=[StoreRatingOut.model_validate(r) for r in ratings],
    )


async def create_store(session: AsyncSession, payload: StoreCreate) -> StoreOut:
    """Create a store.

    Raises:
        ConflictError: If another store already uses the email.
        ValidationFailedError: If ownerId does not reference an existing user.
    """
    await _ensure_email_available(session, payload.email)
    if payload.owner_id is not None:
        await _ensure_owner_exists(session, payload.owner_id)

    store = Store(
        name=payload.name.strip(),
        email=payload.email,
        address=payload.address.strip(),
        category=payload.category,
        owner_id=payload.owner_id,
    )
    session.add(store)
    await session.flush()
    await session.refresh(store)

    logger.info("[stores] created store_id=%s email=%s owner_id=%s", store.id, store.email, store.owner_id)
    return StoreOut.model_validate(store)


async def update_store(session: AsyncSession, store_id: int, payload: StoreUpdate) -> StoreOut:
    """Apply a partial update to a store.

    Only fields present in the request body are changed. An explicit
    ownerId=null unassigns the owner.
    """
    store = await _get_store_or_404(session, store_id)
    provided = payload.model_fields_set

    if payload.email is not None and payload.email != store.email:
        await _ensure_email_available(session, payload.email)
        store.email = payload.email
    if payload.name is not None:
        store.name = payload.name.strip()
    if payload.address is not None:
        store.address = payload.address.strip()
    if payload.category is not None:
        store.category = payload.category
    if "owner_id" in provided:
        if payload.owner_id is not None:
            await _ensure_owner_exists(session, payload.owner_id)
        store.owner_id = payload.owner_id

    await session.flush()
    await session.refresh(store)

    logger.info("[stores] updated store_id=%s fields=%s", store.id, sorted(provided))
    return StoreOut.model_validate(store)


async def delete_store(session: AsyncSession, store_id: int) -> None:
    """Delete a store and (by cascade) all of its ratings."""
    store = await _get_store_or_404(session, store_id, selectinload(Store.ratings))
    rating_count = len(store.ratings)
    await session.delete(store)
    await session.flush()
    logger.info("[stores] deleted store_id=%s cascaded_ratings=%s", store_id, rating_count)


async def _paginate_ratings(session: AsyncSession, where, page: PageRequest) -> RatingListResponse:
    count_result = await session.execute(select(func.count(Rating.id)).where(*where))
    total = count_result.scalar() or 0

    result = await session.execute(
        select(Rating)
        .where(*where)
        .options(selectinload(Rating.user), selectinload(Rating.store))
        .order_by(Rating.created_at.desc(), Rating.id.desc())
        .limit(page.limit)
        .offset(page.offset)
    )
    ratings = result.scalars().all()
    return RatingListResponse(
        ratings=[RatingOut.model_validate(r) for r in ratings],
        pagination=RatingPagination.from_pagination(build_pagination(page, total)),
    )


async def list_store_ratings(session: AsyncSession, store_id: int, page: PageRequest) -> RatingListResponse:
    """Paginated ratings of one store, newest first.

    Raises:
        NotFoundError: If the store does not exist.
    """
    await _get_store_or_404(session, store_id)
    return await _paginate_ratings(session, [Rating.store_id == store_id], page)


async def list_owner_ratings(session: AsyncSession, owner_id: int, page: PageRequest) -> RatingListResponse:
    """Paginated ratings across every store owned by owner_id, newest first."""
    owned = select(Store.id).where(Store.owner_id == owner_id)
    return await _paginate_ratings(session, [Rating.store_id.in_(owned)], page)


async def owner_stats(session: AsyncSession, owner_id: int) -> OwnerStats:
    """Summary of an owner's stores: counts, overall average and per-store stats."""
    result = await session.execute(
        select(Store)
        .where(Store.owner_id == owner_id)
        .options(selectinload(Store.ratings).load_only(Rating.rating))
        .order_by(Store.name.asc(), Store.id.asc())
    )
    stores = result.scalars().all()

    all_scores: list[int] = []
    per_store: list[OwnerStoreStat] = []
    for store in stores:
        scores = [r.rating for r in store.ratings]
        all_scores.extend(scores)
        stats = aggregate_ratings(scores)
        per_store.append(
            OwnerStoreStat(
                id=store.id,
                name=store.name,
                average_rating=stats.average_rating,
                total_ratings=stats.total_ratings,
            )
        )

    overall = aggregate_ratings(all_scores)
    return OwnerStats(
        total_stores=len(stores),
        total_ratings=overall.total_ratings,
        average_rating=overall.average_rating,
        stores=per_store,
    )
