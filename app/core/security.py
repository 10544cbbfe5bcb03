"""Credential primitives — bcrypt password hashing and JWT bearer tokens.

Both collaborators are built from ``Settings`` at startup and handed to the
services that need them; neither reads configuration on its own.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import Settings
from app.core.exceptions import AuthException, HashingException, SigningException

logger = structlog.get_logger(__name__)


class PasswordHasher:
    """Salted, deliberately slow one-way hashing for user passwords."""

    def __init__(self, rounds: int = 12):
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "PasswordHasher":
        return cls(rounds=settings.BCRYPT_ROUNDS)

    def hash(self, password: str) -> str:
        try:
            return self.pwd_context.hash(password)
        except (ValueError, TypeError) as e:
            logger.error("Password hashing failed", error=type(e).__name__)
            raise HashingException("Could not create user, please try again.") from e

    def verify(self, password: str, hashed_password: str) -> bool:
        """Return whether ``password`` matches; malformed stored hashes raise."""
        try:
            return self.pwd_context.verify(password, hashed_password)
        except (ValueError, TypeError) as e:
            logger.error("Stored password hash is unreadable", error=type(e).__name__)
            raise HashingException(
                "Could not log you in, please check your credentials and try again."
            ) from e

    def dummy_verify(self) -> None:
        """Spend the same time as a real verify when there is no user to check."""
        self.pwd_context.dummy_verify()


@dataclass(frozen=True)
class TokenIdentity:
    """Identity carried by a verified bearer token."""

    user_id: str
    email: str


class TokenService:
    """Issues and verifies signed, time-limited HS256 JWTs."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expires_minutes: int = 60):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_delta = timedelta(minutes=expires_minutes)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret_key=settings.SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM,
            expires_minutes=settings.JWT_EXPIRATION_MINUTES,
        )

    def issue(self, user_id: str, email: str, now: Optional[datetime] = None) -> str:
        if not self.secret_key:
            raise SigningException()

        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "sub": user_id,
            "email": email,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.expires_delta).timestamp()),
            "jti": uuid.uuid4().hex,
        }
        try:
            return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        except JWTError as e:
            raise SigningException() from e

    def verify(self, token: str) -> TokenIdentity:
        """Check signature and expiry; any defect yields AuthException."""
        if not token or not self.secret_key:
            raise AuthException("Invalid or expired token.")

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            raise AuthException("Invalid or expired token.") from e

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email or "exp" not in payload:
            raise AuthException("Invalid or expired token.")

        return TokenIdentity(user_id=user_id, email=email)
