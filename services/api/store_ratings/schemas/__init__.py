"""Pydantic schemas for API request/response validation."""

from store_ratings.schemas.common import (
    ErrorDetail,
    ErrorResponse,
    MessageResponse,
    PaginationMeta,
    UserSummary,
)
from store_ratings.schemas.rating import (
    RatedStoreSummary,
    RatingCreate,
    RatingListResponse,
    RatingOut,
    RatingPagination,
    RatingUpdate,
)
from store_ratings.schemas.store import (
    OwnerStats,
    OwnerStoreStat,
    StoreCreate,
    StoreDetail,
    StoreListItem,
    StoreListResponse,
    StoreOut,
    StorePagination,
    StoreRatingOut,
    StoreUpdate,
)
from store_ratings.schemas.user import (
    ChangePasswordRequest,
    DashboardStats,
    LoginRequest,
    ProfileUpdate,
    RecentActivity,
    RegisterRequest,
    RoleCount,
    TokenResponse,
    UserCreate,
    UserListResponse,
    UserOut,
    UserPagination,
    UserUpdate,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "MessageResponse",
    "PaginationMeta",
    "UserSummary",
    "RatedStoreSummary",
    "RatingCreate",
    "RatingListResponse",
    "RatingOut",
    "RatingPagination",
    "RatingUpdate",
    "OwnerStats",
    "OwnerStoreStat",
    "StoreCreate",
    "StoreDetail",
    "StoreListItem",
    "StoreListResponse",
    "StoreOut",
    "StorePagination",
    "StoreRatingOut",
    "StoreUpdate",
    "ChangePasswordRequest",
    "DashboardStats",
    "LoginRequest",
    "ProfileUpdate",
    "RecentActivity",
    "RegisterRequest",
    "RoleCount",
    "TokenResponse",
    "UserCreate",
    "UserListResponse",
    "UserOut",
    "UserPagination",
    "UserUpdate",
]
