"""Product service: CRUD and listing on top of a ProductRepository.

Update and delete follow a read-then-write pattern without locks. When the
store reports that the row changed under us, existence is re-checked: a row
that is gone becomes NotFound, a row that is still there becomes a retryable
Conflict. No version token is compared, so the last writer wins.
"""

import logging
from decimal import Decimal

from app.models import Product
from app.repositories.base import ProductRepository, UpdateOutcome
from app.schemas.auth import ROLE_ADMIN, ROLE_USER
from app.schemas.product import NAME_MAX_LEN, PageResult, ProductUpdate
from app.services import query_engine
from app.services.errors import ConflictError, NotFoundError, ServiceError, ValidationError

# Roles allowed per operation; enforced by the authorization guard before any call here.
PRODUCT_READ_ROLES: frozenset[str] = frozenset({ROLE_USER, ROLE_ADMIN})
PRODUCT_WRITE_ROLES: frozenset[str] = frozenset({ROLE_ADMIN})

module_logger = logging.getLogger(__name__)


class IdMismatchError(ServiceError):
    """The id in the body does not match the id in the path."""


def _validate_fields(name: str | None, price: Decimal | None) -> None:
    if name is None or not name.strip():
        raise ValidationError("Name is required.")
    if len(name) > NAME_MAX_LEN:
        raise ValidationError(f"Name must be at most {NAME_MAX_LEN} characters.")
    if price is None:
        raise ValidationError("Price is required.")
    if price < 0:
        raise ValidationError("Price must be greater than or equal to 0.")


class ProductService:
    def __init__(
        self,
        repository: ProductRepository,
        logger: logging.Logger | None = None,
    ) -> None:
        self.repository = repository
        self.logger = logger or module_logger

    def list(
        self,
        page: int | None = None,
        page_size: int | None = None,
        sort_by: str | None = None,
        order: str | None = None,
    ) -> PageResult:
        request = query_engine.plan(page, page_size, sort_by, order)
        result = query_engine.execute(self.repository, request)
        self.logger.info(
            "Products listed: page=%s page_size=%s sort=%s order=%s total=%s",
            result.page_index,
            result.page_size,
            request.sort_field,
            request.order,
            result.total_count,
        )
        return result

    def get(self, product_id: int) -> Product:
        product = self.repository.find_by_id(product_id)
        if product is None:
            self.logger.error("Failed to get product: id=%s not found", product_id)
            raise NotFoundError(f"Product {product_id} not found.")
        self.logger.info("Product fetched: id=%s", product_id)
        return product

    def create(self, name: str, price: Decimal) -> Product:
        """Validate and insert a new product; the repository assigns the id."""
        try:
            _validate_fields(name, price)
        except ValidationError as e:
            self.logger.error("Failed to create product: %s", e.message)
            raise
        product = self.repository.insert(Product(name=name, price=price))
        self.logger.info("Product created: id=%s", product.id)
        return product

    def update(self, product_id: int, replacement: ProductUpdate) -> None:
        """
        Replace name and price of an existing product.

        The path id is authoritative: a body carrying another id is rejected
        before the repository is touched.
        """
        if replacement.id != product_id:
            self.logger.error(
                "Failed to update product: path id=%s does not match body id=%s",
                product_id,
                replacement.id,
            )
            raise IdMismatchError("Product id in the body does not match the path.")
        try:
            _validate_fields(replacement.name, replacement.price)
        except ValidationError as e:
            self.logger.error("Failed to update product: id=%s %s", product_id, e.message)
            raise

        if self.repository.find_by_id(product_id) is None:
            self.logger.error("Failed to update product: id=%s not found", product_id)
            raise NotFoundError(f"Product {product_id} not found.")

        outcome = self.repository.update(
            Product(id=product_id, name=replacement.name, price=replacement.price)
        )
        if outcome is UpdateOutcome.UPDATED:
            self.logger.info("Product updated: id=%s", product_id)
            return
        if outcome is UpdateOutcome.CONFLICT and self.repository.find_by_id(product_id) is not None:
            self.logger.warning("Product update conflicted: id=%s", product_id)
            raise ConflictError(f"Product {product_id} was modified concurrently; retry.")
        self.logger.error("Failed to update product: id=%s removed concurrently", product_id)
        raise NotFoundError(f"Product {product_id} not found.")

    def delete(self, product_id: int) -> None:
        if self.repository.find_by_id(product_id) is None:
            self.logger.error("Failed to delete product: id=%s not found", product_id)
            raise NotFoundError(f"Product {product_id} not found.")
        if not self.repository.delete(product_id):
            self.logger.error("Failed to delete product: id=%s removed concurrently", product_id)
            raise NotFoundError(f"Product {product_id} not found.")
        self.logger.info("Product deleted: id=%s", product_id)
