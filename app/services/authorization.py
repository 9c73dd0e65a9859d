"""Authorization guard: turn a bearer token into claims and enforce a required-role set."""

import logging
from collections.abc import Collection

from app.core.security import Clock, SystemClock, TokenError, TokenIssuer
from app.schemas.auth import Claims
from app.services.errors import ServiceError

module_logger = logging.getLogger(__name__)


class UnauthenticatedError(ServiceError):
    """No token, or a token that failed verification for any reason."""


class ForbiddenError(ServiceError):
    """A valid token whose role is not allowed for the operation."""


class AuthorizationGuard:
    def __init__(
        self,
        tokens: TokenIssuer,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.tokens = tokens
        self.clock = clock or SystemClock()
        self.logger = logger or module_logger

    def authorize(
        self,
        token: str | None,
        required_roles: Collection[str] | None = None,
    ) -> Claims:
        """
        Verify the token and check its role against required_roles.

        Every token failure (malformed, bad signature, expired) is logged with
        its kind but raised as the same UnauthenticatedError. An empty or None
        role set skips the role check; the claims are still extracted.
        """
        if not token:
            self.logger.warning("Access denied: reason=missing_token")
            raise UnauthenticatedError("Not authenticated")
        try:
            claims = self.tokens.verify(token, self.clock.now())
        except TokenError as e:
            self.logger.warning("Access denied: reason=%s", e.kind.value)
            raise UnauthenticatedError("Invalid or expired token") from e

        if required_roles and claims.role not in required_roles:
            self.logger.warning(
                "Access forbidden: user_id=%s role=%s required=%s",
                claims.subject_id,
                claims.role,
                sorted(required_roles),
            )
            raise ForbiddenError("Insufficient role for this operation")

        self.logger.info("Access granted: user_id=%s role=%s", claims.subject_id, claims.role)
        return claims
