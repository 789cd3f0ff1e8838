"""User management endpoints (admin) and the self-service profile."""

from fastapi import APIRouter, Depends, Path, Query, status

from store_ratings.models import User, UserRole
from store_ratings.schemas import (
    DashboardStats,
    MessageResponse,
    ProfileUpdate,
    UserCreate,
    UserListResponse,
    UserOut,
    UserUpdate,
)
from store_ratings.services import users as user_service
from store_ratings.services.dashboard import get_dashboard_stats
from store_ratings.services.pagination import coerce_page_request
from store_ratings.settings import get_settings
from store_ratings.stores.postgres import get_session
from store_ratings.routes.deps import get_current_user, require_admin

router = APIRouter()


@router.get("/dashboard/stats", response_model=DashboardStats)
async def dashboard_stats(_: User = Depends(require_admin)) -> DashboardStats:
    async with get_session() as session:
        return await get_dashboard_stats(session)


@router.get("", response_model=UserListResponse)
async def list_users(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    search: str | None = Query(default=None),
    role: UserRole | None = Query(default=None),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_order: str | None = Query(default=None, alias="sortOrder"),
    _: User = Depends(require_admin),
) -> UserListResponse:
    page_request = coerce_page_request(page, limit, max_limit=get_settings().listing_max_limit)
    async with get_session() as session:
        return await user_service.list_users(
            session,
            page_request,
            search=search,
            role=role,
            sort_by=sort_by,
            sort_order=sort_order,
        )


@router.put("/profile", response_model=UserOut)
async def update_profile(
    request: ProfileUpdate,
    user: User = Depends(get_current_user),
) -> UserOut:
    async with get_session() as session:
        return await user_service.update_profile(session, user.id, request)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: int = Path(ge=1),
    _: User = Depends(require_admin),
) -> UserOut:
    async with get_session() as session:
        return await user_service.get_user(session, user_id)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: UserCreate,
    _: User = Depends(require_admin),
) -> UserOut:
    async with get_session() as session:
        return await user_service.create_user(session, request)


@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    request: UserUpdate,
    user_id: int = Path(ge=1),
    _: User = Depends(require_admin),
) -> UserOut:
    async with get_session() as session:
        return await user_service.update_user(session, user_id, request)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int = Path(ge=1),
    _: User = Depends(require_admin),
) -> MessageResponse:
    async with get_session() as session:
        await user_service.delete_user(session, user_id)
    return MessageResponse(message="User deleted successfully")
