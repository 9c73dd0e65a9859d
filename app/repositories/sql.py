"""SQLAlchemy-backed repositories; one instance per request-scoped Session."""

import logging
from collections.abc import Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.models import Product, User
from app.repositories.base import DuplicateUsernameError, UpdateOutcome
from app.schemas.product import SortField, SortOrder

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    "id": Product.id,
    "name": Product.name,
    "price": Product.price,
}


class SqlProductRepository:
    """
    Products table access.

    A row deleted between read and write shows up as StaleDataError on flush
    (update) or as a zero row count (delete).
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def count(self) -> int:
        return self._db.query(func.count(Product.id)).scalar() or 0

    def find_by_id(self, product_id: int) -> Product | None:
        return self._db.get(Product, product_id)

    def find_ordered(
        self,
        field: SortField,
        order: SortOrder,
        offset: int,
        limit: int,
    ) -> Sequence[Product]:
        column = _SORT_COLUMNS[field]
        ordering = [column.desc() if order == "desc" else column.asc()]
        if field != "id":
            # Ties keep insertion order.
            ordering.append(Product.id.asc())
        return (
            self._db.query(Product)
            .order_by(*ordering)
            .offset(offset)
            .limit(limit)
            .all()
        )

    def insert(self, product: Product) -> Product:
        self._db.add(product)
        self._db.commit()
        self._db.refresh(product)
        return product

    def update(self, product: Product) -> UpdateOutcome:
        current = self._db.get(Product, product.id)
        if current is None:
            return UpdateOutcome.MISSING
        current.name = product.name
        current.price = product.price
        try:
            self._db.commit()
        except StaleDataError:
            self._db.rollback()
            logger.warning("Product update hit a concurrent change: id=%s", product.id)
            return UpdateOutcome.CONFLICT
        return UpdateOutcome.UPDATED

    def delete(self, product_id: int) -> bool:
        """Single DELETE by primary key; False when no row matched."""
        deleted = (
            self._db.query(Product)
            .filter(Product.id == product_id)
            .delete(synchronize_session="fetch")
        )
        self._db.commit()
        return deleted > 0


class SqlUserRepository:
    """Users table access; the unique index on username backs the uniqueness invariant."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_id(self, user_id: int) -> User | None:
        return self._db.get(User, user_id)

    def find_by_username(self, username: str) -> User | None:
        return self._db.query(User).filter(User.username == username).first()

    def insert(self, user: User) -> User:
        self._db.add(user)
        try:
            self._db.commit()
        except IntegrityError as e:
            self._db.rollback()
            raise DuplicateUsernameError(user.username) from e
        self._db.refresh(user)
        return user
