"""Request/response schemas for user registration, login and token claims."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Closed set of roles; every user carries exactly one.
Role = Literal["User", "Admin"]

ROLE_USER: Role = "User"
ROLE_ADMIN: Role = "Admin"
ROLE_VALUES: frozenset[str] = frozenset({ROLE_USER, ROLE_ADMIN})

USERNAME_MAX_LEN = 50


class RegisterRequest(BaseModel):
    """Credentials and optional role for a new account."""

    username: str = Field(..., description="Unique username (exact, case-sensitive match)")
    password: str = Field(..., description="Plain-text password; stored only as a bcrypt digest")
    role: str | None = Field(default=None, description="User or Admin; defaults to User")


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., description="Username")
    password: str = Field(..., description="Password")


class TokenResponse(BaseModel):
    """JWT access token returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Token lifetime in seconds")


class UserView(BaseModel):
    """Outward projection of a user: never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    username: str
    role: str


class Claims(BaseModel):
    """Verified identity and role carried by an access token."""

    model_config = ConfigDict(frozen=True)

    subject_id: int
    username: str
    role: str
    issued_at: datetime
    expires_at: datetime
