"""Bearer-token authorization for protected routes.

A token moves through ``issued -> active -> revoked | expired``. Active tokens
are re-validated on every request; revoked and expired are terminal, and only a
new login produces a usable token again.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from app.auth.results import AuthErrorKind, AuthFailure, AuthorizationResult, Identity
from app.auth.session import SessionStore, as_utc, utcnow
from app.auth.tokens import ExpiredTokenError, MalformedTokenError, TokenCodec
from app.logging_config import get_logger, log_auth_event

BEARER_PREFIX = "Bearer "


def extract_bearer_token(header_value: Optional[str]) -> Optional[str]:
    """Return the raw token from an ``Authorization`` value, or None if absent or not Bearer."""
    if not header_value or not header_value.startswith(BEARER_PREFIX):
        return None
    token = header_value[len(BEARER_PREFIX):].strip()
    return token or None


class Gatekeeper:
    def __init__(self, codec: TokenCodec, sessions: SessionStore):
        self.codec = codec
        self.sessions = sessions

    async def authorize(
        self, header_value: Optional[str], now: Optional[datetime] = None
    ) -> AuthorizationResult:
        """Resolve the caller behind a bearer header.

        Both the token's own expiry and the session row's expiry must still be in
        the future; either one lapsing rejects the request and purges the row.
        """
        now = now or utcnow()

        token = extract_bearer_token(header_value)
        if token is None:
            return AuthFailure(AuthErrorKind.NO_TOKEN, "No token provided")

        try:
            claims = self.codec.parse(token, now=now)
        except ExpiredTokenError:
            await self.sessions.delete_by_token(token)
            log_auth_event("authorize", None, False, error_message="Token expired (claim)")
            return AuthFailure(AuthErrorKind.INVALID_TOKEN, "Token expired")
        except MalformedTokenError as exc:
            log_auth_event("authorize", None, False, error_message=str(exc))
            return AuthFailure(AuthErrorKind.INVALID_TOKEN, "Invalid token")

        session = await self.sessions.find_by_token(token)
        if session is None:
            log_auth_event(
                "authorize", claims.email, False, str(claims.user_id), error_message="Revoked"
            )
            return AuthFailure(AuthErrorKind.REVOKED_TOKEN, "Token not found or revoked")

        if as_utc(session.expires_at) <= now:
            await self.sessions.delete_by_id(session.id)
            log_auth_event(
                "authorize",
                claims.email,
                False,
                str(claims.user_id),
                error_message="Token expired (session)",
            )
            return AuthFailure(AuthErrorKind.EXPIRED_TOKEN, "Token expired")

        # Rollback expires every loaded row, so nothing ORM-backed is read past it
        session_id = session.id
        try:
            await self.sessions.touch_last_used(session_id, now=now)
        except SQLAlchemyError as exc:
            # Stale last-used is acceptable; the request is still authorized
            await self.sessions.db.rollback()
            get_logger().warning(f"Failed to update last_used_at for session {session_id}: {exc}")

        return Identity(user_id=claims.user_id, email=claims.email)
