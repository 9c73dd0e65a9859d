"""Products endpoints: paginated listing and CRUD, gated by role."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from app.api.v1.auth import require_roles
from app.core.database import get_db
from app.repositories import SqlProductRepository
from app.schemas.auth import Claims
from app.schemas.product import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_FIELD,
    DEFAULT_SORT_ORDER,
    PageResult,
    ProductCreate,
    ProductRead,
    ProductUpdate,
)
from app.services.errors import ConflictError, NotFoundError, ValidationError
from app.services.products import (
    PRODUCT_READ_ROLES,
    PRODUCT_WRITE_ROLES,
    IdMismatchError,
    ProductService,
)

router = APIRouter()

require_reader = require_roles(*PRODUCT_READ_ROLES)
require_writer = require_roles(*PRODUCT_WRITE_ROLES)


def get_product_service(db: Annotated[Session, Depends(get_db)]) -> ProductService:
    """Dependency: ProductService bound to the request's DB session."""
    return ProductService(SqlProductRepository(db))


@router.get("", response_model=PageResult)
def list_products(
    _claims: Annotated[Claims, Depends(require_reader)],
    products: Annotated[ProductService, Depends(get_product_service)],
    page: int = DEFAULT_PAGE,
    page_size: Annotated[int, Query(alias="pageSize")] = DEFAULT_PAGE_SIZE,
    sort_by: Annotated[
        str, Query(alias="sortBy", description="Sort field (id/name/price)")
    ] = DEFAULT_SORT_FIELD,
    order: str = DEFAULT_SORT_ORDER,
) -> PageResult:
    """
    Return one page of products.

    Out-of-range parameters are normalized, never rejected: page < 1 becomes 1,
    pageSize outside 1..100 becomes 10, an unknown sortBy sorts by id, and any
    order other than 'desc' is ascending. A page past the end returns the last page.
    """
    return products.list(page, page_size, sort_by, order)


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: int,
    _claims: Annotated[Claims, Depends(require_reader)],
    products: Annotated[ProductService, Depends(get_product_service)],
) -> ProductRead:
    try:
        return ProductRead.model_validate(products.get(product_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create_product(
    body: ProductCreate,
    _claims: Annotated[Claims, Depends(require_writer)],
    products: Annotated[ProductService, Depends(get_product_service)],
    request: Request,
    response: Response,
) -> ProductRead:
    """Create a product (Admin only). The Location header points at the new resource."""
    try:
        product = products.create(body.name, body.price)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.message) from e
    response.headers["Location"] = str(request.url_for("get_product", product_id=product.id))
    return ProductRead.model_validate(product)


@router.put("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def update_product(
    product_id: int,
    body: ProductUpdate,
    _claims: Annotated[Claims, Depends(require_writer)],
    products: Annotated[ProductService, Depends(get_product_service)],
) -> Response:
    """Replace a product's name and price (Admin only). Body id must equal the path id."""
    try:
        products.update(product_id, body)
    except IdMismatchError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.message) from e
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    _claims: Annotated[Claims, Depends(require_writer)],
    products: Annotated[ProductService, Depends(get_product_service)],
) -> Response:
    """Delete a product (Admin only)."""
    try:
        products.delete(product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
