"""Tests for page/limit coercion and pagination metadata."""

import pytest

from store_ratings.services.pagination import MAX_ROW_INDEX, PageRequest, build_pagination, coerce_page_request


@pytest.mark.parametrize(
    "page, limit, expected",
    [
        (None, None, PageRequest(1, 10)),
        ("2", "5", PageRequest(2, 5)),
        (3, 20, PageRequest(3, 20)),
        ("abc", "xyz", PageRequest(1, 10)),
        ("0", "0", PageRequest(1, 10)),
        ("-4", "-1", PageRequest(1, 10)),
        (" 2 ", "7", PageRequest(2, 7)),
        ("1.5", "5", PageRequest(1, 5)),
    ],
)
def test_coerce_page_request(page, limit, expected):
    assert coerce_page_request(page, limit) == expected


def test_coerce_page_request_caps_limit():
    assert coerce_page_request("1", "500", max_limit=100).limit == 100
    assert coerce_page_request("1", "50", max_limit=100).limit == 50


def test_coerce_page_request_custom_default():
    assert coerce_page_request(None, None, default_limit=25).limit == 25


def test_offset():
    assert PageRequest(1, 10).offset == 0
    assert PageRequest(3, 5).offset == 10


def test_build_pagination_rounds_up():
    meta = build_pagination(PageRequest(1, 5), 12)
    assert meta.total_pages == 3
    assert meta.total == 12
    assert meta.has_next is True
    assert meta.has_prev is False


def test_build_pagination_last_page():
    meta = build_pagination(PageRequest(3, 5), 12)
    assert meta.has_next is False
    assert meta.has_prev is True


def test_build_pagination_exact_multiple():
    assert build_pagination(PageRequest(1, 4), 12).total_pages == 3


def test_build_pagination_empty():
    meta = build_pagination(PageRequest(1, 10), 0)
    assert meta.total_pages == 0
    assert meta.has_next is False
    assert meta.has_prev is False


def test_coerce_page_request_keeps_huge_page_within_sql_range():
    request = coerce_page_request(str(10**20), "10")
    assert request.limit == 10
    assert request.page > 1
    assert request.offset + request.limit <= MAX_ROW_INDEX

    unbounded_limit = coerce_page_request(10**20, 10**20)
    assert unbounded_limit.offset + unbounded_limit.limit <= MAX_ROW_INDEX
