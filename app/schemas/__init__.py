"""Pydantic request/response schemas."""

from app.schemas.auth import (
    Claims,
    LoginRequest,
    RegisterRequest,
    Role,
    TokenResponse,
    UserView,
)
from app.schemas.health import HealthResponse
from app.schemas.product import (
    PageRequest,
    PageResult,
    ProductCreate,
    ProductRead,
    ProductUpdate,
)

__all__ = [
    "Claims",
    "HealthResponse",
    "LoginRequest",
    "PageRequest",
    "PageResult",
    "ProductCreate",
    "ProductRead",
    "ProductUpdate",
    "RegisterRequest",
    "Role",
    "TokenResponse",
    "UserView",
]
