"""Common schemas used across the API."""

import re
from typing import Any, ClassVar

from pydantic import BaseModel, Field

from store_ratings.services.pagination import Pagination

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 16
_UPPERCASE_RE = re.compile(r"[A-Z]")
_SPECIAL_RE = re.compile(r"""[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>/?]""")


def check_password_policy(value: str) -> str:
    """Validate the password policy: 8-16 chars, an uppercase letter and a special character."""
    if not PASSWORD_MIN_LENGTH <= len(value) <= PASSWORD_MAX_LENGTH:
        raise ValueError(
            f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters"
        )
    if not _UPPERCASE_RE.search(value) or not _SPECIAL_RE.search(value):
        raise ValueError("Password must contain at least one uppercase letter and one special character")
    return value


def normalize_email(value: str) -> str:
    return value.strip().lower()


class ErrorDetail(BaseModel):
    """Structured error detail."""

    code: str
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard error response format.

    Format: { "error": { "code": str, "message": str, "detail": object } }
    """

    error: ErrorDetail


class MessageResponse(BaseModel):
    """Plain acknowledgement for deletes and logout."""

    message: str


class PaginationMeta(BaseModel):
    """Pagination block shared by list responses."""

    current_page: int = Field(alias="currentPage", ge=1)
    total_pages: int = Field(alias="totalPages", ge=0)
    limit: int = Field(ge=1)
    has_next: bool = Field(alias="hasNext")
    has_prev: bool = Field(alias="hasPrev")

    # Name of the subclass field holding the filtered total (e.g. total_stores).
    total_field: ClassVar[str]

    model_config = {"populate_by_name": True}

    @classmethod
    def from_pagination(cls, pagination: Pagination) -> "PaginationMeta":
        return cls(
            current_page=pagination.current_page,
            total_pages=pagination.total_pages,
            limit=pagination.limit,
            has_next=pagination.has_next,
            has_prev=pagination.has_prev,
            **{cls.total_field: pagination.total},
        )


class UserSummary(BaseModel):
    """Minimal user projection embedded in store and rating payloads."""

    id: int
    name: str
    email: str

    model_config = {"from_attributes": True}
