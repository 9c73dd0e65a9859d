"""In-memory repositories with the same contracts as the SQL ones. Test/dev only."""

import itertools
import threading
from collections.abc import Sequence

from app.models import Product, User
from app.repositories.base import DuplicateUsernameError, UpdateOutcome
from app.schemas.product import SortField, SortOrder


class InMemoryProductRepository:
    """
    Products kept in insertion order, keyed by id.

    Stored rows are private copies so callers cannot mutate the store
    without going through update().
    """

    def __init__(self, products: Sequence[Product] = ()) -> None:
        self._rows: dict[int, Product] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        for product in products:
            self.insert(product)

    def count(self) -> int:
        return len(self._rows)

    def find_by_id(self, product_id: int) -> Product | None:
        row = self._rows.get(product_id)
        return _copy_product(row) if row is not None else None

    def find_ordered(
        self,
        field: SortField,
        order: SortOrder,
        offset: int,
        limit: int,
    ) -> Sequence[Product]:
        # sorted() is stable for reverse=True too, so ties keep insertion order.
        rows = sorted(
            self._rows.values(),
            key=lambda p: getattr(p, field),
            reverse=order == "desc",
        )
        return [_copy_product(p) for p in rows[offset : offset + limit]]

    def insert(self, product: Product) -> Product:
        with self._lock:
            if product.id is None:
                product.id = next(self._ids)
                while product.id in self._rows:
                    product.id = next(self._ids)
            self._rows[product.id] = _copy_product(product)
        return product

    def update(self, product: Product) -> UpdateOutcome:
        with self._lock:
            if product.id not in self._rows:
                return UpdateOutcome.MISSING
            self._rows[product.id] = _copy_product(product)
        return UpdateOutcome.UPDATED

    def delete(self, product_id: int) -> bool:
        with self._lock:
            return self._rows.pop(product_id, None) is not None


class InMemoryUserRepository:
    """Users keyed by id, with an exact-match username index."""

    def __init__(self) -> None:
        self._by_id: dict[int, User] = {}
        self._by_username: dict[str, User] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def find_by_id(self, user_id: int) -> User | None:
        return self._by_id.get(user_id)

    def find_by_username(self, username: str) -> User | None:
        return self._by_username.get(username)

    def insert(self, user: User) -> User:
        with self._lock:
            if user.username in self._by_username:
                raise DuplicateUsernameError(user.username)
            user.id = next(self._ids)
            self._by_id[user.id] = user
            self._by_username[user.username] = user
        return user

    def remove(self, user_id: int) -> None:
        """Drop a user; lets tests model an account deleted after its token was issued."""
        with self._lock:
            user = self._by_id.pop(user_id, None)
            if user is not None:
                self._by_username.pop(user.username, None)

    def __len__(self) -> int:
        return len(self._by_id)


def _copy_product(product: Product) -> Product:
    return Product(id=product.id, name=product.name, price=product.price)
