"""Store endpoints.

GET    /api/stores              - directory listing (search, sort, paginate)
GET    /api/stores/my/stores    - listing restricted to the caller's stores
GET    /api/stores/my/ratings   - ratings on the caller's stores
GET    /api/stores/my/stats     - summary stats for the caller's stores
GET    /api/stores/{id}         - store detail with ratings
GET    /api/stores/{id}/ratings - paginated ratings of a store
POST   /api/stores              - create (admin)
PUT    /api/stores/{id}         - update (admin)
DELETE /api/stores/{id}         - delete (admin)

Routers are thin: call services for business logic.
"""

from fastapi import APIRouter, Depends, Path, Query, status

from store_ratings.models import User, UserRole
from store_ratings.schemas import (
    MessageResponse,
    OwnerStats,
    RatingListResponse,
    StoreCreate,
    StoreDetail,
    StoreListResponse,
    StoreOut,
    StoreUpdate,
)
from store_ratings.services import stores as store_service
from store_ratings.services.listing import StoreFilter, list_stores, parse_sort, to_list_response
from store_ratings.services.pagination import coerce_page_request
from store_ratings.settings import get_settings
from store_ratings.stores.postgres import get_session
from store_ratings.routes.deps import get_current_user, require_admin, require_store_owner

router = APIRouter()


async def _listing(
    *,
    search: str | None,
    owner_id: int | None,
    page: str | None,
    limit: str | None,
    sort_by: str | None,
    sort_order: str | None,
) -> StoreListResponse:
    settings = get_settings()
    page_request = coerce_page_request(
        page,
        limit,
        default_limit=settings.listing_default_limit,
        max_limit=settings.listing_max_limit,
    )
    async with get_session() as session:
        result = await list_stores(
            session,
            StoreFilter(search=search, owner_id=owner_id),
            parse_sort(sort_by, sort_order),
            page_request,
        )
        return to_list_response(result)


@router.get("", response_model=StoreListResponse)
async def get_stores(
    page: str | None = Query(default=None, description="1-based page number"),
    limit: str | None = Query(default=None, description="Page size"),
    search: str | None = Query(default=None, description="Substring of name, email or address"),
    sort_by: str | None = Query(
        default=None,
        alias="sortBy",
        description="Store column, averageRating or totalRatings",
        examples=["name", "averageRating"],
    ),
    sort_order: str | None = Query(default=None, alias="sortOrder", examples=["ASC", "DESC"]),
    _: User = Depends(get_current_user),
) -> StoreListResponse:
    """List stores with average rating and rating count."""
    return await _listing(
        search=search,
        owner_id=None,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/my/stores", response_model=StoreListResponse)
async def get_my_stores(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    search: str | None = Query(default=None),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_order: str | None = Query(default=None, alias="sortOrder"),
    owner_id: int | None = Query(
        default=None,
        alias="ownerId",
        description="Admins only: inspect another owner's stores",
    ),
    user: User = Depends(require_store_owner),
) -> StoreListResponse:
    """List the caller's own stores, same aggregation and sorting as the directory."""
    effective_owner = user.id
    if owner_id is not None and user.role == UserRole.ADMIN:
        effective_owner = owner_id
    return await _listing(
        search=search,
        owner_id=effective_owner,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/my/ratings", response_model=RatingListResponse)
async def get_my_store_ratings(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    user: User = Depends(require_store_owner),
) -> RatingListResponse:
    """Ratings submitted for any of the caller's stores, newest first."""
    page_request = coerce_page_request(page, limit, max_limit=get_settings().listing_max_limit)
    async with get_session() as session:
        return await store_service.list_owner_ratings(session, user.id, page_request)


@router.get("/my/stats", response_model=OwnerStats)
async def get_my_store_stats(user: User = Depends(require_store_owner)) -> OwnerStats:
    async with get_session() as session:
        return await store_service.owner_stats(session, user.id)


@router.get("/{store_id}", response_model=StoreDetail)
async def get_store(
    store_id: int = Path(ge=1),
    _: User = Depends(get_current_user),
) -> StoreDetail:
    async with get_session() as session:
        return await store_service.get_store_detail(session, store_id)


@router.get("/{store_id}/ratings", response_model=RatingListResponse)
async def get_store_ratings(
    store_id: int = Path(ge=1),
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    _: User = Depends(get_current_user),
) -> RatingListResponse:
    page_request = coerce_page_request(page, limit, max_limit=get_settings().listing_max_limit)
    async with get_session() as session:
        return await store_service.list_store_ratings(session, store_id, page_request)


@router.post("", response_model=StoreOut, status_code=status.HTTP_201_CREATED)
async def create_store(
    request: StoreCreate,
    _: User = Depends(require_admin),
) -> StoreOut:
    async with get_session() as session:
        return await store_service.create_store(session, request)


@router.put("/{store_id}", response_model=StoreOut)
async def update_store(
    request: StoreUpdate,
    store_id: int = Path(ge=1),
    _: User = Depends(require_admin),
) -> StoreOut:
    async with get_session() as session:
        return await store_service.update_store(session, store_id, request)


@router.delete("/{store_id}", response_model=MessageResponse)
async def delete_store(
    store_id: int = Path(ge=1),
    _: User = Depends(require_admin),
) -> MessageResponse:
    async with get_session() as session:
        await store_service.delete_store(session, store_id)
    return MessageResponse(message="Store deleted successfully")
