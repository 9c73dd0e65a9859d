"""Auth service: registration, login and current-user lookup."""

import logging

from app.core.security import Clock, PasswordHasher, SystemClock, TokenIssuer
from app.models import User
from app.repositories.base import DuplicateUsernameError, UserRepository
from app.schemas.auth import (
    ROLE_USER,
    ROLE_VALUES,
    USERNAME_MAX_LEN,
    Claims,
    TokenResponse,
    UserView,
)
from app.services.errors import NotFoundError, ServiceError, ValidationError

PASSWORD_MIN_LEN = 1
PASSWORD_MAX_LEN = 128

# Shared by the unknown-user and wrong-password paths.
INVALID_CREDENTIALS_MESSAGE = "Invalid username or password."

module_logger = logging.getLogger(__name__)


class UsernameTakenError(ServiceError):
    """A user with exactly this username already exists."""


class InvalidCredentialsError(ServiceError):
    """Login failed; does not say which part was wrong."""


class UserNotFoundError(NotFoundError):
    """The user id in a valid token no longer resolves to a user."""


def _validate_registration(username: str, password: str, role: str) -> None:
    if not username or not username.strip():
        raise ValidationError("Username is required.")
    if len(username) > USERNAME_MAX_LEN:
        raise ValidationError(f"Username must be at most {USERNAME_MAX_LEN} characters.")
    if not PASSWORD_MIN_LEN <= len(password or "") <= PASSWORD_MAX_LEN:
        raise ValidationError(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters."
        )
    if role not in ROLE_VALUES:
        raise ValidationError(f"Role must be one of {sorted(ROLE_VALUES)}.")


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.users = users
        self.hasher = hasher
        self.tokens = tokens
        self.clock = clock or SystemClock()
        self.logger = logger or module_logger

    def register(self, username: str, password: str, role: str | None = None) -> UserView:
        """
        Create a user with a bcrypt-hashed password. Role defaults to 'User'.

        Username uniqueness is an exact, case-sensitive match; the unique index
        in the store catches a concurrent registration of the same name.
        """
        role = role or ROLE_USER
        try:
            _validate_registration(username, password, role)
        except ValidationError as e:
            self.logger.error("Registration rejected: %s", e.message)
            raise

        if self.users.find_by_username(username) is not None:
            self.logger.error("Registration rejected: username=%s already exists", username)
            raise UsernameTakenError("Username already exists.")

        user = User(username=username, password_hash=self.hasher.hash(password), role=role)
        try:
            user = self.users.insert(user)
        except DuplicateUsernameError as e:
            self.logger.error("Registration rejected: username=%s already exists", username)
            raise UsernameTakenError("Username already exists.") from e

        self.logger.info("User registered: id=%s username=%s role=%s", user.id, username, role)
        return UserView.model_validate(user)

    def login(self, username: str, password: str) -> TokenResponse:
        """Verify credentials and issue an access token bound to the user's id, name and role."""
        user = self.users.find_by_username(username)
        if user is None:
            # Same bcrypt cost as a real check.
            self.hasher.verify_dummy(password)
            self.logger.warning("Login failed: invalid credentials")
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)
        if not self.hasher.verify(password, user.password_hash):
            self.logger.warning("Login failed: invalid credentials")
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        token = self.tokens.issue(user.id, user.username, user.role, self.clock.now())
        self.logger.info("User logged in: id=%s", user.id)
        return TokenResponse(
            access_token=token,
            token_type="bearer",
            expires_in=int(self.tokens.lifetime.total_seconds()),
        )

    def current_user(self, claims: Claims) -> UserView:
        user = self.users.find_by_id(claims.subject_id)
        if user is None:
            self.logger.error("Current user lookup failed: id=%s not found", claims.subject_id)
            raise UserNotFoundError("User not found.")
        return UserView.model_validate(user)
