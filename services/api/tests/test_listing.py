"""Tests for the store listing engine (aggregation, sort strategies, pagination)."""

import math
from types import SimpleNamespace

import pytest

from store_ratings.services.listing import (
    AggregatedStore,
    RatingAggregate,
    SortDirection,
    SortStrategy,
    StoreFilter,
    StoreSort,
    aggregate_ratings,
    choose_strategy,
    escape_like,
    list_stores,
    parse_sort,
    sort_materialized,
)
from store_ratings.services.pagination import PageRequest, coerce_page_request
from store_ratings.stores.postgres import get_session


# ============================================================
# Pure helpers
# ============================================================


def test_choose_strategy_splits_persisted_and_computed_fields():
    assert choose_strategy("averageRating") is SortStrategy.MATERIALIZE
    assert choose_strategy("totalRatings") is SortStrategy.MATERIALIZE
    for field_name in ("id", "name", "email", "address", "category", "ownerId", "createdAt", "updatedAt"):
        assert choose_strategy(field_name) is SortStrategy.PUSHDOWN


def test_parse_sort_resolves_aliases_and_falls_back():
    assert parse_sort("average_rating", "asc") == StoreSort("averageRating", SortDirection.ASC)
    assert parse_sort("totalRatings", "DESC") == StoreSort("totalRatings", SortDirection.DESC)
    assert parse_sort("created_at", None) == StoreSort("createdAt", SortDirection.DESC)
    assert parse_sort("owner_id", "ASC").field == "ownerId"

    # Unknown field / direction never fail.
    assert parse_sort("password", "sideways") == StoreSort("createdAt", SortDirection.DESC)
    assert parse_sort(None, None) == StoreSort("createdAt", SortDirection.DESC)
    assert parse_sort("name; DROP TABLE stores", "ASC").field == "createdAt"


def test_parse_sort_strategy_follows_field():
    assert parse_sort("average_rating", "ASC").strategy is SortStrategy.MATERIALIZE
    assert parse_sort("name", "ASC").strategy is SortStrategy.PUSHDOWN


def test_aggregate_ratings_zero_ratings_is_exactly_zero():
    stats = aggregate_ratings([])
    assert stats == RatingAggregate(average_rating=0.0, total_ratings=0)
    assert stats.average_rating == 0
    assert not math.isnan(stats.average_rating)


@pytest.mark.parametrize(
    "scores, expected",
    [
        ([5, 4, 3], 4.0),
        ([1, 2], 1.5),
        ([5, 4, 4], 4.33),
        ([5, 5, 4], 4.67),
        ([4, 4, 4, 4, 4, 4, 4, 5], 4.13),  # 4.125 rounds half-up
        ([3], 3.0),
    ],
)
def test_aggregate_ratings_mean_two_decimals(scores, expected):
    stats = aggregate_ratings(scores)
    assert stats.average_rating == expected
    assert stats.total_ratings == len(scores)


def test_escape_like_escapes_wildcards():
    assert escape_like("50%_off") == "50\\%\\_off"
    assert escape_like("a\\b") == "a\\\\b"
    assert escape_like("plain") == "plain"


def _row(store_id: int, average: float, total: int) -> AggregatedStore:
    store = SimpleNamespace(id=store_id)
    return AggregatedStore(store=store, stats=RatingAggregate(average_rating=average, total_ratings=total))


def test_sort_materialized_descending_ties_break_by_id():
    rows = [_row(3, 4.0, 1), _row(1, 4.0, 2), _row(2, 5.0, 1), _row(4, 0.0, 0)]
    ordered = sort_materialized(rows, StoreSort("averageRating", SortDirection.DESC))
    assert [r.store.id for r in ordered] == [2, 1, 3, 4]


def test_sort_materialized_ascending_by_total():
    rows = [_row(1, 3.0, 3), _row(2, 5.0, 1), _row(3, 0.0, 0)]
    ordered = sort_materialized(rows, StoreSort("totalRatings", SortDirection.ASC))
    assert [r.store.id for r in ordered] == [3, 2, 1]


# ============================================================
# Database-backed listing
# ============================================================

RATED_SCORES = [[5], [5, 4], [4], [4, 3], [3], [3, 2], [2], [2, 1], [1]]


@pytest.fixture
async def twelve_stores(make_store):
    """9 rated stores with distinct averages + 3 unrated stores."""
    ids = []
    for i, scores in enumerate(RATED_SCORES):
        ids.append(await make_store(f"Rated Store {i:02d}", scores))
    for i in range(3):
        ids.append(await make_store(f"Unrated Store {i:02d}"))
    return ids


async def _collect_pages(store_filter: StoreFilter, sort: StoreSort, limit: int):
    pages = []
    async with get_session() as session:
        first = await list_stores(session, store_filter, sort, PageRequest(page=1, limit=limit))
        pages.append(first)
        for page_number in range(2, first.pagination.total_pages + 1):
            pages.append(await list_stores(session, store_filter, sort, PageRequest(page=page_number, limit=limit)))
    return pages


@pytest.mark.asyncio
async def test_average_rating_desc_example(twelve_stores):
    """12 stores, 3 unrated, limit=5, averageRating DESC -> 3 pages, unrated last."""
    sort = StoreSort("averageRating", SortDirection.DESC)
    pages = await _collect_pages(StoreFilter(), sort, limit=5)

    assert len(pages) == 3
    assert all(p.strategy is SortStrategy.MATERIALIZE for p in pages)
    assert all(p.pagination.total_pages == 3 for p in pages)
    assert all(p.pagination.total == 12 for p in pages)
    assert [len(p.items) for p in pages] == [5, 5, 2]

    first_page = [row.stats.average_rating for row in pages[0].items]
    assert first_page == [5.0, 4.5, 4.0, 3.5, 3.0]

    everything = [row for p in pages for row in p.items]
    averages = [row.stats.average_rating for row in everything]
    assert averages == sorted(averages, reverse=True)
    assert averages[-3:] == [0.0, 0.0, 0.0]
    assert all(row.stats.total_ratings == 0 for row in everything[-3:])


@pytest.mark.asyncio
async def test_pushdown_name_asc_is_globally_ordered(twelve_stores):
    sort = StoreSort("name", SortDirection.ASC)
    pages = await _collect_pages(StoreFilter(), sort, limit=5)

    assert all(p.strategy is SortStrategy.PUSHDOWN for p in pages)
    names = [row.store.name for p in pages for row in p.items]
    assert names == sorted(names)
    assert len(names) == 12
    # Page boundary: page 2 position 1 sorts after page 1 last position.
    assert pages[1].items[0].store.name >= pages[0].items[-1].store.name


@pytest.mark.asyncio
async def test_pushdown_page_aggregates_match_ratings(twelve_stores):
    async with get_session() as session:
        page = await list_stores(
            session,
            StoreFilter(search="Rated Store 03"),
            StoreSort("name", SortDirection.ASC),
            PageRequest(page=1, limit=10),
        )
    assert len(page.items) == 1
    assert page.items[0].stats == RatingAggregate(average_rating=3.5, total_ratings=2)


@pytest.mark.asyncio
async def test_total_ratings_asc_materialized(twelve_stores):
    pages = await _collect_pages(StoreFilter(), StoreSort("totalRatings", SortDirection.ASC), limit=4)
    totals = [row.stats.total_ratings for p in pages for row in p.items]
    assert totals == sorted(totals)
    assert totals[:3] == [0, 0, 0]


@pytest.mark.asyncio
async def test_total_count_is_filtered_count_on_every_page(twelve_stores):
    store_filter = StoreFilter(search="unrated")
    for sort in (StoreSort("name", SortDirection.ASC), StoreSort("averageRating", SortDirection.DESC)):
        async with get_session() as session:
            for page_number in (1, 2, 3):
                page = await list_stores(session, store_filter, sort, PageRequest(page=page_number, limit=2))
                assert page.pagination.total == 3
                assert page.pagination.total_pages == math.ceil(3 / 2)


@pytest.mark.asyncio
async def test_search_is_case_insensitive_over_name_email_address(make_store):
    await make_store("Blue Bottle", email="hello@bluebottle.example.com", address="9 Harbor Road")
    await make_store("Red Door", email="contact@reddoor.example.com", address="10 Blue Lane")
    await make_store("Green Leaf", email="BLUE@greenleaf.example.com", address="11 Oak Avenue")
    await make_store("Yellow Sun", email="sun@yellow.example.com", address="12 Pine Road")

    async with get_session() as session:
        page = await list_stores(
            session,
            StoreFilter(search="bLuE"),
            StoreSort("name", SortDirection.ASC),
            PageRequest(page=1, limit=10),
        )
    assert [row.store.name for row in page.items] == ["Blue Bottle", "Green Leaf", "Red Door"]
    assert page.pagination.total == 3


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(make_store):
    await make_store("100% Organic")
    await make_store("1000 Organics")

    async with get_session() as session:
        page = await list_stores(
            session,
            StoreFilter(search="100%"),
            StoreSort("name", SortDirection.ASC),
            PageRequest(page=1, limit=10),
        )
    assert [row.store.name for row in page.items] == ["100% Organic"]


@pytest.mark.asyncio
async def test_no_match_yields_empty_page_and_zero_pages(twelve_stores):
    for sort in (StoreSort("name", SortDirection.ASC), StoreSort("averageRating", SortDirection.DESC)):
        async with get_session() as session:
            page = await list_stores(session, StoreFilter(search="nothing-matches"), sort, PageRequest(1, 5))
        assert page.items == []
        assert page.pagination.total == 0
        assert page.pagination.total_pages == 0
        assert page.pagination.has_next is False
        assert page.pagination.has_prev is False


@pytest.mark.asyncio
async def test_page_past_the_end_is_empty_with_full_metadata(twelve_stores):
    async with get_session() as session:
        page = await list_stores(
            session,
            StoreFilter(),
            StoreSort("averageRating", SortDirection.DESC),
            PageRequest(page=9, limit=5),
        )
    assert page.items == []
    assert page.pagination.total == 12
    assert page.pagination.total_pages == 3
    assert page.pagination.has_prev is True
    assert page.pagination.has_next is False


@pytest.mark.asyncio
@pytest.mark.parametrize("sort_by", ["name", "averageRating"])
async def test_huge_page_number_is_empty_not_an_error(twelve_stores, sort_by):
    async with get_session() as session:
        page = await list_stores(
            session,
            StoreFilter(),
            parse_sort(sort_by, "ASC"),
            coerce_page_request(10**20, 10),
        )
    assert page.items == []
    assert page.pagination.total == 12
    assert page.pagination.total_pages == 2
    assert page.pagination.has_next is False
    assert page.pagination.has_prev is True


@pytest.mark.asyncio
async def test_huge_page_number_over_http(client, make_user, auth_headers, make_store):
    user = await make_user()
    await make_store("Lonely Store")

    response = await client.get(
        "/api/stores",
        params={"page": str(10**20), "sortBy": "name"},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["stores"] == []
    assert data["pagination"]["totalStores"] == 1
    assert data["pagination"]["totalPages"] == 1


@pytest.mark.asyncio
async def test_owner_filter_restricts_to_owned_stores(make_user, make_store):
    from store_ratings.models import UserRole

    owner = await make_user(UserRole.STORE_OWNER)
    other = await make_user(UserRole.STORE_OWNER)
    await make_store("Mine A", [5], owner_id=owner.id)
    await make_store("Mine B", [2, 4], owner_id=owner.id)
    await make_store("Theirs", [1], owner_id=other.id)
    await make_store("Nobody's")

    async with get_session() as session:
        page = await list_stores(
            session,
            StoreFilter(owner_id=owner.id),
            StoreSort("averageRating", SortDirection.DESC),
            PageRequest(page=1, limit=10),
        )
    assert [row.store.name for row in page.items] == ["Mine A", "Mine B"]
    assert [row.stats.average_rating for row in page.items] == [5.0, 3.0]
    assert page.pagination.total == 2


@pytest.mark.asyncio
async def test_listing_is_idempotent(twelve_stores):
    sort = StoreSort("averageRating", SortDirection.DESC)
    async with get_session() as session:
        first = await list_stores(session, StoreFilter(), sort, PageRequest(2, 5))
    async with get_session() as session:
        second = await list_stores(session, StoreFilter(), sort, PageRequest(2, 5))

    assert [(r.store.id, r.stats) for r in first.items] == [(r.store.id, r.stats) for r in second.items]
    assert first.pagination == second.pagination
