"""Repository contracts consumed by the services. The store is the single source of truth."""

import enum
from collections.abc import Sequence
from typing import Protocol

from app.models import Product, User
from app.schemas.product import SortField, SortOrder


class UpdateOutcome(enum.Enum):
    """Result of a write against a row that may have changed since it was read."""

    UPDATED = "updated"
    MISSING = "missing"
    CONFLICT = "conflict"


class DuplicateUsernameError(Exception):
    """Raised by UserRepository.insert when the username is already stored."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Username already stored: {username!r}")


class ProductRepository(Protocol):
    def count(self) -> int: ...

    def find_by_id(self, product_id: int) -> Product | None: ...

    def find_ordered(
        self,
        field: SortField,
        order: SortOrder,
        offset: int,
        limit: int,
    ) -> Sequence[Product]: ...

    def insert(self, product: Product) -> Product: ...

    def update(self, product: Product) -> UpdateOutcome: ...

    def delete(self, product_id: int) -> bool: ...


class UserRepository(Protocol):
    def find_by_id(self, user_id: int) -> User | None: ...

    def find_by_username(self, username: str) -> User | None: ...

    def insert(self, user: User) -> User: ...
