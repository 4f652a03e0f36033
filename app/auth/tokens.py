"""Signed, time-limited bearer tokens.

Pure encode/decode: no database access. A token that parses here is only
structurally valid; the gatekeeper still has to find its session row.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import secrets
from typing import Optional
import uuid

from jose import JWTError, jwt

DEFAULT_TOKEN_TTL = timedelta(days=7)


class TokenError(ValueError):
    pass


class MalformedTokenError(TokenError):
    """Token cannot be decoded, its signature does not verify, or claims are missing."""


class ExpiredTokenError(TokenError):
    """Token's embedded expiry has passed."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: uuid.UUID
    email: str
    issued_at: datetime
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = DEFAULT_TOKEN_TTL,
    ):
        if not secret:
            raise TokenError("Token signing secret is not configured")
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, user_id: uuid.UUID, email: str, now: Optional[datetime] = None) -> str:
        """Create a signed token for the user, valid for ``ttl`` from ``now``."""
        now = now or _utcnow()
        expires_at = now + self.ttl
        payload = {
            "sub": str(user_id),
            "email": email,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            # Distinguishes tokens issued to the same user within the same second
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def parse(self, token: str, now: Optional[datetime] = None) -> TokenClaims:
        """Verify the signature and embedded expiry and return the claims.

        Raises:
            MalformedTokenError: If the token is undecodable, tampered with, or incomplete.
            ExpiredTokenError: If the embedded expiry is at or before ``now``.
        """
        if not token:
            raise MalformedTokenError("Token is missing")
        try:
            # Expiry is checked below against the caller's clock
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise MalformedTokenError("Invalid token") from exc

        subject = payload.get("sub")
        email = payload.get("email")
        issued_at = payload.get("iat")
        expires_at = payload.get("exp")
        if not subject or not email or issued_at is None or expires_at is None:
            raise MalformedTokenError("Token is missing required claims")

        try:
            user_id = uuid.UUID(subject)
            issued = datetime.fromtimestamp(int(issued_at), tz=timezone.utc)
            expires = datetime.fromtimestamp(int(expires_at), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError) as exc:
            raise MalformedTokenError("Token claims are invalid") from exc

        now = now or _utcnow()
        if expires <= now:
            raise ExpiredTokenError("Token expired")

        return TokenClaims(user_id=user_id, email=email, issued_at=issued, expires_at=expires)
