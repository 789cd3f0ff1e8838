"""Page/limit coercion and pagination metadata shared by every list endpoint."""

import math
from dataclasses import dataclass
from typing import Any

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

# OFFSET + LIMIT must fit a signed 64-bit SQL integer.
MAX_ROW_INDEX = 2**63 - 1


@dataclass(frozen=True)
class PageRequest:
    """A validated page window (1-based page, positive limit)."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _positive_int(value: Any, default: int) -> int:
    """Coerce query input to a positive int, falling back to default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def coerce_page_request(
    page: Any = None,
    limit: Any = None,
    *,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int | None = None,
) -> PageRequest:
    """Build a PageRequest from loosely-typed query parameters.

    Non-numeric or non-positive values fall back to page 1 / default_limit.
    When max_limit is given, limit is capped at it. page is capped so the
    window offset stays representable in SQL; such a page is past the end
    of any real result set anyway.
    """
    page_number = _positive_int(page, DEFAULT_PAGE)
    page_size = _positive_int(limit, default_limit)
    if max_limit is not None:
        page_size = min(page_size, max_limit)
    page_size = min(page_size, MAX_ROW_INDEX)
    page_number = min(page_number, (MAX_ROW_INDEX - page_size) // page_size + 1)
    return PageRequest(page=page_number, limit=page_size)


@dataclass(frozen=True)
class Pagination:
    """Pagination metadata for a page of results."""

    current_page: int
    total_pages: int
    total: int
    limit: int

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.current_page > 1


def build_pagination(request: PageRequest, total: int) -> Pagination:
    """Compute pagination metadata from the filtered (pre-pagination) total."""
    total_pages = math.ceil(total / request.limit) if total > 0 else 0
    return Pagination(
        current_page=request.page,
        total_pages=total_pages,
        total=total,
        limit=request.limit,
    )
