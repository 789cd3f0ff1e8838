"""Store listing service: filtering, rating aggregation, sorting, pagination.

averageRating and totalRatings are derived from ratings at read time, so the
listing runs one of two strategies:

1. PUSHDOWN - the sort key is a persisted column. Filter, sort, limit and
   offset run in SQL; only the returned page is aggregated.
2. MATERIALIZE - the sort key is derived. The whole filtered set is loaded,
   every row is aggregated, the collection is sorted in memory and then the
   page window is sliced out.

Pagination must never be applied before a derived sort key is known, or page
boundaries stop being globally ordered.

Both the public directory and the "my stores" view go through list_stores().
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Iterable

from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from store_ratings.models import Rating, Store
from store_ratings.schemas import StoreListItem, StoreListResponse, StorePagination, UserSummary
from store_ratings.services.pagination import PageRequest, Pagination, build_pagination

logger = logging.getLogger("uvicorn.error")


class SortStrategy(str, Enum):
    """Where sorting and pagination happen for a listing request."""

    PUSHDOWN = "pushdown"
    MATERIALIZE = "materialize"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


PERSISTED_SORT_COLUMNS = {
    "id": Store.id,
    "name": Store.name,
    "email": Store.email,
    "address": Store.address,
    "category": Store.category,
    "ownerId": Store.owner_id,
    "createdAt": Store.created_at,
    "updatedAt": Store.updated_at,
}
COMPUTED_SORT_FIELDS = ("averageRating", "totalRatings")

DEFAULT_SORT_FIELD = "createdAt"
DEFAULT_SORT_DIRECTION = SortDirection.DESC

# "average_rating", "AVERAGERATING" and "averageRating" all resolve to averageRating.
_SORT_FIELD_LOOKUP = {
    name.replace("_", "").lower(): name
    for name in (*PERSISTED_SORT_COLUMNS, *COMPUTED_SORT_FIELDS)
}

_CENT = Decimal("0.01")


# ============================================================
# Sort / filter parameters
# ============================================================


def choose_strategy(sort_field: str) -> SortStrategy:
    """Decide whether pagination can be pushed down to the database.

    Args:
        sort_field: Canonical sort field name.

    Returns:
        MATERIALIZE for derived fields, PUSHDOWN for persisted columns.
    """
    if sort_field in COMPUTED_SORT_FIELDS:
        return SortStrategy.MATERIALIZE
    return SortStrategy.PUSHDOWN


@dataclass(frozen=True)
class StoreSort:
    """Resolved sort field and direction."""

    field: str = DEFAULT_SORT_FIELD
    direction: SortDirection = DEFAULT_SORT_DIRECTION

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC

    @property
    def strategy(self) -> SortStrategy:
        return choose_strategy(self.field)


def parse_sort(sort_by: str | None, sort_order: str | None) -> StoreSort:
    """Resolve raw sortBy/sortOrder query values.

    Unknown fields fall back to createdAt and unknown directions to DESC;
    an invalid sort never fails the request.
    """
    field_name = DEFAULT_SORT_FIELD
    if sort_by:
        field_name = _SORT_FIELD_LOOKUP.get(sort_by.strip().replace("_", "").lower(), DEFAULT_SORT_FIELD)

    direction = DEFAULT_SORT_DIRECTION
    if sort_order:
        try:
            direction = SortDirection(sort_order.strip().upper())
        except ValueError:
            direction = DEFAULT_SORT_DIRECTION

    return StoreSort(field=field_name, direction=direction)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally (escape char: backslash)."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class StoreFilter:
    """Listing filter.

    search: case-insensitive substring over name, email and address (OR).
    owner_id: restrict to stores owned by this user ("my stores").
    """

    search: str | None = None
    owner_id: int | None = None

    def clauses(self) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []
        term = (self.search or "").strip()
        if term:
            pattern = f"%{escape_like(term)}%"
            conditions.append(
                or_(
                    Store.name.ilike(pattern, escape="\\"),
                    Store.email.ilike(pattern, escape="\\"),
                    Store.address.ilike(pattern, escape="\\"),
                )
            )
        if self.owner_id is not None:
            conditions.append(Store.owner_id == self.owner_id)
        return conditions


# ============================================================
# Aggregation
# ============================================================


@dataclass(frozen=True)
class RatingAggregate:
    """Derived rating stats for one store."""

    average_rating: float = 0.0
    total_ratings: int = 0


def aggregate_ratings(scores: Iterable[int]) -> RatingAggregate:
    """Compute mean (2 decimals, half-up) and count of rating scores.

    A store without ratings averages exactly 0.
    """
    values = list(scores)
    if not values:
        return RatingAggregate(average_rating=0.0, total_ratings=0)
    mean = Decimal(sum(values)) / Decimal(len(values))
    return RatingAggregate(
        average_rating=float(mean.quantize(_CENT, rounding=ROUND_HALF_UP)),
        total_ratings=len(values),
    )


@dataclass
class AggregatedStore:
    """A store paired with its derived rating stats."""

    store: Store
    stats: RatingAggregate = field(default_factory=RatingAggregate)

    @classmethod
    def from_store(cls, store: Store) -> "AggregatedStore":
        return cls(store=store, stats=aggregate_ratings(r.rating for r in store.ratings))

    def sort_value(self, sort_field: str) -> Any:
        if sort_field == "averageRating":
            return self.stats.average_rating
        if sort_field == "totalRatings":
            return self.stats.total_ratings
        return getattr(self.store, PERSISTED_SORT_COLUMNS[sort_field].key)


def sort_materialized(rows: Iterable[AggregatedStore], sort: StoreSort) -> list[AggregatedStore]:
    """Sort aggregated rows by a derived field, ties broken by id ascending."""
    ordered = sorted(rows, key=lambda row: row.store.id)
    # list.sort is stable, also with reverse=True.
    ordered.sort(key=lambda row: row.sort_value(sort.field), reverse=sort.descending)
    return ordered


# ============================================================
# Queries
# ============================================================


def _stores_query(store_filter: StoreFilter):
    return (
        select(Store)
        .where(*store_filter.clauses())
        .options(
            selectinload(Store.ratings).load_only(Rating.rating),
            selectinload(Store.owner),
        )
    )


async def count_stores(session: AsyncSession, store_filter: StoreFilter) -> int:
    """Count stores matching the filter (ignores pagination)."""
    result = await session.execute(
        select(func.count(Store.id)).where(*store_filter.clauses())
    )
    return result.scalar() or 0


@dataclass
class StorePage:
    """One page of aggregated stores plus metadata."""

    items: list[AggregatedStore]
    pagination: Pagination
    strategy: SortStrategy


async def list_stores(
    session: AsyncSession,
    store_filter: StoreFilter,
    sort: StoreSort,
    page: PageRequest,
) -> StorePage:
    """Get a filtered, sorted page of stores annotated with rating stats.

    Args:
        session: Database session.
        store_filter: Search / owner filter.
        sort: Resolved sort field and direction.
        page: Page window.

    Returns:
        StorePage whose pagination total counts every store matching the filter.
    """
    strategy = sort.strategy

    if strategy is SortStrategy.PUSHDOWN:
        total = await count_stores(session, store_filter)
        column = PERSISTED_SORT_COLUMNS[sort.field]
        order = column.desc() if sort.descending else column.asc()
        items: list[AggregatedStore] = []
        if page.offset < total:
            result = await session.execute(
                _stores_query(store_filter)
                .order_by(order, Store.id.asc())
                .limit(page.limit)
                .offset(page.offset)
            )
            items = [AggregatedStore.from_store(store) for store in result.scalars().all()]
    else:
        result = await session.execute(_stores_query(store_filter))
        materialized = [AggregatedStore.from_store(store) for store in result.scalars().all()]
        total = len(materialized)
        ordered = sort_materialized(materialized, sort)
        items = ordered[page.offset : page.offset + page.limit]

    logger.debug(
        "[listing] strategy=%s sort=%s %s page=%s limit=%s total=%s returned=%s",
        strategy.value,
        sort.field,
        sort.direction.value,
        page.page,
        page.limit,
        total,
        len(items),
    )

    return StorePage(items=items, pagination=build_pagination(page, total), strategy=strategy)


# ============================================================
# Response shaping
# ============================================================


def to_list_item(row: AggregatedStore) -> StoreListItem:
    """Convert an aggregated store to its listing payload (ratings stripped)."""
    store = row.store
    return StoreListItem(
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
    )


def to_list_response(page: StorePage) -> StoreListResponse:
    return StoreListResponse(
        stores=[to_list_item(row) for row in page.items],
        pagination=StorePagination.from_pagination(page.pagination),
    )
