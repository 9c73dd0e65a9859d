"""Persistence ports and their SQLAlchemy and in-memory implementations."""

from app.repositories.base import (
    DuplicateUsernameError,
    ProductRepository,
    UpdateOutcome,
    UserRepository,
)
from app.repositories.memory import InMemoryProductRepository, InMemoryUserRepository
from app.repositories.sql import SqlProductRepository, SqlUserRepository

__all__ = [
    "DuplicateUsernameError",
    "InMemoryProductRepository",
    "InMemoryUserRepository",
    "ProductRepository",
    "SqlProductRepository",
    "SqlUserRepository",
    "UpdateOutcome",
    "UserRepository",
]
