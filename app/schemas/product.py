"""Pydantic schemas for products and paginated product listings."""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Fields a listing may be ordered by, and the two directions.
SortField = Literal["id", "name", "price"]
SortOrder = Literal["asc", "desc"]

SORT_FIELDS: tuple[SortField, ...] = ("id", "name", "price")

PAGE_SIZE_MIN = 1
PAGE_SIZE_MAX = 100
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
DEFAULT_SORT_FIELD: SortField = "id"
DEFAULT_SORT_ORDER: SortOrder = "asc"

# Matches the products.name column width.
NAME_MAX_LEN = 255


class ProductCreate(BaseModel):
    """Body for creating a product; the id is assigned by the store."""

    name: str = Field(
        ..., max_length=NAME_MAX_LEN, description="Product name (non-empty, at most 255 chars)"
    )
    price: Decimal = Field(..., max_digits=18, decimal_places=2, description="Price (>= 0)")


class ProductUpdate(BaseModel):
    """Full replacement of a product; id must equal the id in the path."""

    id: int
    name: str = Field(
        ..., max_length=NAME_MAX_LEN, description="Product name (non-empty, at most 255 chars)"
    )
    price: Decimal = Field(..., max_digits=18, decimal_places=2, description="Price (>= 0)")


class ProductRead(BaseModel):
    """Product as returned to clients."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: Decimal


class PageRequest(BaseModel):
    """Normalized, bounds-checked listing parameters (a page plan)."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=DEFAULT_PAGE, ge=1)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=PAGE_SIZE_MIN, le=PAGE_SIZE_MAX)
    sort_field: SortField = DEFAULT_SORT_FIELD
    order: SortOrder = DEFAULT_SORT_ORDER


class PageResult(BaseModel):
    """One page of products plus the totals needed to navigate the rest."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_count: int
    total_pages: int
    page_index: int
    page_size: int
    items: list[ProductRead] = Field(default_factory=list)
