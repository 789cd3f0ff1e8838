"""Schemas for user management, auth and the admin dashboard."""

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, EmailStr, Field, field_validator

from store_ratings.models import UserRole
from store_ratings.schemas.common import PaginationMeta, check_password_policy, normalize_email


class UserOut(BaseModel):
    """Public user payload. The password hash is never part of it."""

    id: int
    name: str
    email: str
    address: str | None = None
    role: UserRole
    created_at: datetime | None = Field(alias="createdAt", default=None)
    updated_at: datetime | None = Field(alias="updatedAt", default=None)

    model_config = {"populate_by_name": True, "from_attributes": True}


class UserPagination(PaginationMeta):
    total_field: ClassVar[str] = "total_users"

    total_users: int = Field(alias="totalUsers", ge=0)


class UserListResponse(BaseModel):
    users: list[UserOut]
    pagination: UserPagination


class UserCreate(BaseModel):
    """Request body for POST /api/users (admin)."""

    name: str = Field(min_length=20, max_length=60)
    email: EmailStr
    password: str
    address: str = Field(default="", max_length=400)
    role: UserRole

    @field_validator("email", mode="after")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def _password_policy(cls, v: str) -> str:
        return check_password_policy(v)


class UserUpdate(BaseModel):
    """Request body for PUT /api/users/{id} (admin). Omitted fields are unchanged."""

    name: str | None = Field(default=None, min_length=20, max_length=60)
    email: EmailStr | None = None
    address: str | None = Field(default=None, max_length=400)
    role: UserRole | None = None

    @field_validator("email", mode="after")
    @classmethod
    def _normalize_email(cls, v: str | None) -> str | None:
        return normalize_email(v) if v is not None else None


class ProfileUpdate(BaseModel):
    """Request body for PUT /api/users/profile (self)."""

    name: str | None = Field(default=None, min_length=2, max_length=60)
    address: str | None = Field(default=None, max_length=400)


# ============================================================
# Auth
# ============================================================


class RegisterRequest(BaseModel):
    name: str = Field(min_length=2, max_length=60)
    email: EmailStr
    password: str
    address: str = Field(default="", max_length=400)
    role: UserRole = UserRole.USER

    @field_validator("email", mode="after")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def _password_policy(cls, v: str) -> str:
        return check_password_policy(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="after")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return normalize_email(v)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(alias="currentPassword", min_length=1)
    new_password: str = Field(alias="newPassword")

    model_config = {"populate_by_name": True}

    @field_validator("new_password")
    @classmethod
    def _password_policy(cls, v: str) -> str:
        return check_password_policy(v)


class TokenResponse(BaseModel):
    """Response payload for register and login."""

    token: str
    token_type: str = Field(alias="tokenType", default="bearer")
    user: UserOut

    model_config = {"populate_by_name": True}


# ============================================================
# Admin dashboard
# ============================================================


class RoleCount(BaseModel):
    role: UserRole
    count: int = Field(ge=0)


class RecentActivity(BaseModel):
    new_users: int = Field(alias="newUsers", ge=0)
    new_ratings: int = Field(alias="newRatings", ge=0)

    model_config = {"populate_by_name": True}


class DashboardStats(BaseModel):
    """Response payload for GET /api/users/dashboard/stats."""

    total_users: int = Field(alias="totalUsers", ge=0)
    total_stores: int = Field(alias="totalStores", ge=0)
    total_ratings: int = Field(alias="totalRatings", ge=0)
    user_stats: list[RoleCount] = Field(alias="userStats", default_factory=list)
    recent_activity: RecentActivity = Field(alias="recentActivity")

    model_config = {"populate_by_name": True}
