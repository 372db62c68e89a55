"""Password hashing (bcrypt) and bearer token signing/verification (PyJWT)."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from rolegate.core.errors import (
    PasswordHashError,
    TokenExpiredError,
    TokenMalformedError,
    TokenSignatureError,
)

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
DEFAULT_BCRYPT_ROUNDS = 12

# Min/max lengths for request validation.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

# bcrypt only consumes the first 72 bytes of input.
_BCRYPT_MAX_BYTES = 72


def _password_bytes(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """
    One-way password hashing with a per-hash random salt and tunable cost.

    The encoded hash embeds algorithm id, cost and salt, so verify() needs
    nothing but the stored string. A mismatch is reported as False; only
    genuine failures (RNG, malformed stored hash) raise PasswordHashError.
    """

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self.rounds = rounds
        self._dummy_hash: str | None = None

    def hash(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. Do not store plain passwords."""
        try:
            salt = bcrypt.gensalt(rounds=self.rounds)
            return bcrypt.hashpw(_password_bytes(plain_password), salt).decode("utf-8")
        except (ValueError, OSError) as e:
            raise PasswordHashError(details=str(e)) from e

    def verify(self, plain_password: str, hashed: str) -> bool:
        """Return True on match, False on mismatch. Comparison is constant-time."""
        if not hashed:
            raise PasswordHashError("stored password hash is empty")
        try:
            return bcrypt.checkpw(_password_bytes(plain_password), hashed.encode("utf-8"))
        except (ValueError, TypeError) as e:
            raise PasswordHashError("stored password hash is malformed") from e

    @property
    def dummy_hash(self) -> str:
        """Hash of a throwaway value, for equal-cost verification of unknown users."""
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("rolegate-dummy-password")
        return self._dummy_hash


@dataclass(frozen=True)
class Claims:
    """Verified payload of a bearer token."""

    subject_id: int
    role: str
    issued_at: datetime
    expires_at: datetime


class TokenCodec:
    """
    Signs and verifies compact JWS tokens carrying {sub, role, iat, exp}.

    The key is fixed at construction; an empty key is refused so the
    application cannot start without one.
    """

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = 86400,
        algorithm: str = "HS256",
        leeway_seconds: int = 0,
    ) -> None:
        if not secret or not secret.strip():
            raise ValueError("token signing key must be non-empty")
        self._secret = secret
        self.ttl_seconds = ttl_seconds
        self.algorithm = algorithm
        self.leeway_seconds = leeway_seconds

    def sign(self, subject_id: int, role: str, ttl_seconds: int | None = None) -> str:
        """Create a token expiring ttl_seconds after now (default: configured TTL)."""
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": str(subject_id),
            "role": role,
            "iat": now,
            "exp": now + timedelta(seconds=ttl),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> Claims:
        """
        Decode and validate a token; return its claims.

        Raises TokenExpiredError, TokenSignatureError or TokenMalformedError.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                leeway=self.leeway_seconds,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError() from e
        except jwt.InvalidSignatureError as e:
            raise TokenSignatureError() from e
        except jwt.PyJWTError as e:
            raise TokenMalformedError() from e

        role = payload.get("role")
        if not isinstance(role, str) or not role:
            raise TokenMalformedError("token has no role claim")
        try:
            subject_id = int(payload["sub"])
        except (TypeError, ValueError) as e:
            raise TokenMalformedError("token subject is not a user id") from e
        return Claims(
            subject_id=subject_id,
            role=role,
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )
