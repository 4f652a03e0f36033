"""Credential verification and session issuance/termination."""

from datetime import datetime, timedelta
from typing import Optional

from app.auth.passwords import (
    dummy_verify_password,
    get_password_hash,
    is_password_hash,
    verify_legacy_password,
    verify_password,
)
from app.auth.results import (
    AuthErrorKind,
    AuthFailure,
    LoginResult,
    LoginSuccess,
    LogoutAllResult,
    LogoutAllSuccess,
    LogoutResult,
    LogoutSuccess,
)
from app.auth.session import SessionStore, utcnow
from app.auth.tokens import TokenCodec
from app.auth.users import CredentialStore
from app.logging_config import log_auth_event
from app.models.user import User

# Identical for unknown email and wrong password so accounts cannot be enumerated
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
UNKNOWN = "Unknown"


class Authenticator:
    def __init__(
        self,
        codec: TokenCodec,
        users: CredentialStore,
        sessions: SessionStore,
        session_ttl: timedelta = timedelta(days=7),
        sweep_expired: bool = True,
    ):
        self.codec = codec
        self.users = users
        self.sessions = sessions
        self.session_ttl = session_ttl
        self.sweep_expired = sweep_expired

    async def login(
        self,
        email: str,
        password: str,
        device_info: str = UNKNOWN,
        ip_address: str = UNKNOWN,
        now: Optional[datetime] = None,
    ) -> LoginResult:
        """Verify credentials and open a new session.

        Every successful login mints a brand-new token and session row; existing
        sessions for the user are left alone (multi-device).

        A user whose stored credential is still legacy plaintext gets it replaced by a
        bcrypt hash on this call. That write happens through
        ``upgrade_legacy_password`` after the comparison succeeds.
        """
        now = now or utcnow()
        extra = {"device_info": device_info, "ip_address": ip_address}

        user = await self.users.find_by_email(email)
        if user is None:
            dummy_verify_password()
            log_auth_event("login", email, False, error_message="Unknown email", extra_data=extra)
            return AuthFailure(AuthErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        legacy = not is_password_hash(user.password)
        if legacy:
            matched = verify_legacy_password(password, user.password)
        else:
            matched = verify_password(password, user.password)

        if not matched:
            log_auth_event(
                "login", email, False, str(user.id), error_message="Wrong password", extra_data=extra
            )
            return AuthFailure(AuthErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        if legacy:
            await self.upgrade_legacy_password(user, password)

        if self.sweep_expired:
            await self.sessions.delete_expired_before(now)

        token = self.codec.issue(user.id, user.email, now=now)
        session = await self.sessions.create(
            user_id=user.id,
            token=token,
            device_info=device_info or UNKNOWN,
            ip_address=ip_address or UNKNOWN,
            expires_at=now + self.session_ttl,
            now=now,
        )

        log_auth_event("login", email, True, str(user.id), extra_data=extra)
        return LoginSuccess(user=user, token=token, session=session)

    async def upgrade_legacy_password(self, user: User, password: str) -> None:
        """Replace a verified plaintext credential with its bcrypt hash (write operation)."""
        new_hash = get_password_hash(password)
        await self.users.update_password_hash(user.id, new_hash)
        user.password = new_hash
        log_auth_event("password_migration", user.email, True, str(user.id))

    async def logout(self, token: str) -> LogoutResult:
        """End the single session bound to ``token``."""
        deleted = await self.sessions.delete_by_token(token)
        if deleted == 0:
            log_auth_event("logout", None, False, error_message="Session not found")
            return AuthFailure(AuthErrorKind.NOT_FOUND, "Token not found or already logged out")

        log_auth_event("logout", None, True)
        return LogoutSuccess()

    async def logout_all(self, token: str) -> LogoutAllResult:
        """End every session of the user owning ``token``, including that one."""
        session = await self.sessions.find_by_token(token)
        if session is None:
            log_auth_event("logout_all", None, False, error_message="Session not found")
            return AuthFailure(AuthErrorKind.INVALID_TOKEN, "Invalid token")

        user_id = session.user_id
        revoked = await self.sessions.delete_all_for_user(user_id)
        log_auth_event("logout_all", None, True, str(user_id), extra_data={"revoked": revoked})
        return LogoutAllSuccess(revoked_count=revoked)
