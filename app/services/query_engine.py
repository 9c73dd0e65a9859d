"""
Query engine behind the product listing: normalize raw page/sort parameters into a
page plan, then fetch exactly one count and one bounded, ordered slice.
"""

import math

from app.repositories.base import ProductRepository
from app.schemas.product import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_FIELD,
    PAGE_SIZE_MAX,
    PAGE_SIZE_MIN,
    SORT_FIELDS,
    PageRequest,
    PageResult,
    ProductRead,
    SortField,
    SortOrder,
)


def _normalize_page(page_raw: int | None) -> int:
    if page_raw is None or page_raw < 1:
        return DEFAULT_PAGE
    return page_raw


def _normalize_page_size(page_size_raw: int | None) -> int:
    """Out-of-range sizes fall back to the default instead of being clamped."""
    if page_size_raw is None or not PAGE_SIZE_MIN <= page_size_raw <= PAGE_SIZE_MAX:
        return DEFAULT_PAGE_SIZE
    return page_size_raw


def _normalize_sort_field(sort_field_raw: str | None) -> SortField:
    if not sort_field_raw:
        return DEFAULT_SORT_FIELD
    lowered = sort_field_raw.lower()
    for field in SORT_FIELDS:
        if lowered == field:
            return field
    return DEFAULT_SORT_FIELD


def _normalize_order(order_raw: str | None) -> SortOrder:
    """Only 'desc' (any case) sorts descending; anything else, garbage included, is ascending."""
    if order_raw is not None and order_raw.lower() == "desc":
        return "desc"
    return "asc"


def plan(
    page_raw: int | None,
    page_size_raw: int | None,
    sort_field_raw: str | None,
    order_raw: str | None,
) -> PageRequest:
    """Build a page plan from untrusted query parameters. Never rejects input."""
    return PageRequest(
        page=_normalize_page(page_raw),
        page_size=_normalize_page_size(page_size_raw),
        sort_field=_normalize_sort_field(sort_field_raw),
        order=_normalize_order(order_raw),
    )


def execute(repository: ProductRepository, request: PageRequest) -> PageResult:
    """
    Run a page plan against the repository.

    Issues one count() and one find_ordered() call. A page past the end is
    clamped to the last page (or 1 when the store is empty).
    """
    total_count = repository.count()
    total_pages = math.ceil(total_count / request.page_size)
    page_index = min(request.page, max(total_pages, 1))
    offset = (page_index - 1) * request.page_size
    rows = repository.find_ordered(
        request.sort_field,
        request.order,
        offset,
        request.page_size,
    )
    return PageResult(
        total_count=total_count,
        total_pages=total_pages,
        page_index=page_index,
        page_size=request.page_size,
        items=[ProductRead.model_validate(row) for row in rows],
    )
