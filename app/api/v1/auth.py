"""User registration, JWT login, current user, and the role-checking dependencies."""

from collections.abc import Callable
from datetime import timedelta
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.security import PasswordHasher, TokenIssuer
from app.repositories import SqlUserRepository
from app.schemas.auth import (
    Claims,
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserView,
)
from app.services.auth import (
    AuthService,
    InvalidCredentialsError,
    UsernameTakenError,
    UserNotFoundError,
)
from app.services.authorization import (
    AuthorizationGuard,
    ForbiddenError,
    UnauthenticatedError,
)
from app.services.errors import ValidationError

router = APIRouter()
security = HTTPBearer(auto_error=False)


@lru_cache
def get_token_issuer() -> TokenIssuer:
    """Token issuer built once from settings."""
    settings = get_settings()
    return TokenIssuer(
        settings.JWT_SECRET.get_secret_value(),
        lifetime=timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
        algorithm=settings.JWT_ALGORITHM,
        issuer=settings.JWT_ISSUER,
        audience=settings.JWT_AUDIENCE,
    )


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=get_settings().BCRYPT_ROUNDS)


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    tokens: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> AuthService:
    """Dependency: AuthService bound to the request's DB session."""
    return AuthService(SqlUserRepository(db), hasher, tokens)


def get_authorization_guard(
    tokens: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> AuthorizationGuard:
    return AuthorizationGuard(tokens)


def require_roles(*roles: str) -> Callable[..., Claims]:
    """
    Dependency factory: require a valid Bearer JWT and, when roles are given,
    one of those roles. Raises 401 for missing/invalid/expired tokens and 403
    for a role outside the set. With no roles, any authenticated user passes.
    """
    required = frozenset(roles)

    def _require(
        request: Request,
        credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
        guard: Annotated[AuthorizationGuard, Depends(get_authorization_guard)],
    ) -> Claims:
        token = credentials.credentials if credentials is not None else None
        try:
            claims = guard.authorize(token, required)
        except UnauthenticatedError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=e.message,
                headers={"WWW-Authenticate": "Bearer"},
            ) from e
        except ForbiddenError as e:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=e.message,
            ) from e
        request.state.user_id = claims.subject_id
        return claims

    return _require


@router.post("/register", response_model=UserView, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> UserView:
    """Create an account. Role defaults to User; the password is stored only as a bcrypt hash."""
    try:
        return auth.register(body.username, body.password, body.role)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.message) from e
    except UsernameTakenError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message) from e


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> TokenResponse:
    """
    Authenticate with username and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    try:
        return auth.login(body.username, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
        ) from e


@router.get("/me", response_model=UserView)
def get_current_user(
    claims: Annotated[Claims, Depends(require_roles())],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> UserView:
    """Return username and role of the token's owner."""
    try:
        return auth.current_user(claims)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
