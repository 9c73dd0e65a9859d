"""Password hashing and JWT issuance/verification for authentication."""

import enum
import math
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

import bcrypt
import jwt
from pydantic import ValidationError

from app.schemas.auth import Claims

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72

# Claims every access token must carry.
REQUIRED_CLAIMS = ["sub", "username", "role", "iat", "exp"]


class Clock(Protocol):
    """Source of the current time; injected so expiry can be tested deterministically. Naive values are read as UTC."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class PasswordHasher:
    """
    Salted one-way password hashing with bcrypt.

    Digests are self-describing ($2b$<cost>$<salt><hash>), so verification
    needs no parameters besides the digest itself.
    """

    def __init__(self, rounds: int = BCRYPT_ROUNDS) -> None:
        self.rounds = rounds
        # Computed once per hasher; verify_dummy never calls hashpw.
        self._dummy_hash = self.hash("not-a-real-password")

    def hash(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. Do not store plain passwords."""
        pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain_password: str, hashed: str) -> bool:
        """Verify a plain password against a stored hash. Malformed hashes never match."""
        if not hashed:
            return False
        pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
        try:
            return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    def verify_dummy(self, plain_password: str) -> bool:
        """Run one full verification against a throwaway digest. Always False."""
        self.verify(plain_password, self._dummy_hash)
        return False


def _as_utc(moment: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


class TokenErrorKind(enum.Enum):
    MALFORMED = "malformed"
    SIGNATURE_INVALID = "signature_invalid"
    EXPIRED = "expired"


class TokenError(Exception):
    """Raised when an access token cannot be accepted; kind tells why."""

    def __init__(self, kind: TokenErrorKind, message: str) -> None:
        self.kind = kind
        self.message = message
        super().__init__(message)


class TokenIssuer:
    """Issues and verifies signed access tokens (JWT)."""

    def __init__(
        self,
        secret: str,
        *,
        lifetime: timedelta,
        algorithm: str = "HS256",
        issuer: str | None = None,
        audience: str | None = None,
    ) -> None:
        if not secret:
            raise ValueError("TokenIssuer requires a non-empty secret")
        self._secret = secret
        self.lifetime = lifetime
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience

    def issue(self, subject_id: int, username: str, role: str, now: datetime) -> str:
        """Create a JWT for the given identity, expiring at now + lifetime."""
        now = _as_utc(now)
        expire = now + self.lifetime
        payload: dict[str, Any] = {
            "sub": str(subject_id),
            "username": username,
            "role": role,
            "iat": int(now.timestamp()),
            # Rounded up so a token never dies before now + lifetime.
            "exp": math.ceil(expire.timestamp()),
        }
        if self.issuer:
            payload["iss"] = self.issuer
        if self.audience:
            payload["aud"] = self.audience
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str, now: datetime) -> Claims:
        """
        Decode and validate a JWT against the injected time.

        Raises TokenError with kind SIGNATURE_INVALID on a wrong key or tampered
        payload, EXPIRED when exp <= now, and MALFORMED for anything else.
        """
        if not token:
            raise TokenError(TokenErrorKind.MALFORMED, "Token is empty")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                audience=self.audience,
                # Time-based claims are checked below against the injected clock.
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": REQUIRED_CLAIMS,
                },
            )
        except jwt.InvalidSignatureError as e:
            raise TokenError(TokenErrorKind.SIGNATURE_INVALID, "Token signature mismatch") from e
        except jwt.PyJWTError as e:
            raise TokenError(TokenErrorKind.MALFORMED, f"Token rejected: {e}") from e

        try:
            claims = Claims(
                subject_id=int(payload["sub"]),
                username=payload["username"],
                role=payload["role"],
                issued_at=datetime.fromtimestamp(int(payload["iat"]), UTC),
                expires_at=datetime.fromtimestamp(int(payload["exp"]), UTC),
            )
        except (TypeError, ValueError, ValidationError) as e:
            raise TokenError(TokenErrorKind.MALFORMED, "Token claims are invalid") from e

        if claims.expires_at <= _as_utc(now):
            raise TokenError(TokenErrorKind.EXPIRED, "Token expired")
        return claims
