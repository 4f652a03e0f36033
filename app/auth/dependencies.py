from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.authenticator import UNKNOWN, Authenticator
from app.auth.gatekeeper import Gatekeeper
from app.auth.results import AuthFailure, Identity
from app.auth.session import SessionStore
from app.auth.tokens import TokenCodec
from app.auth.users import CredentialStore
from app.config import Settings
from app.database import get_db


class AuthRejected(Exception):
    """Raised by route dependencies to short-circuit a request with an auth failure."""

    def __init__(self, failure: AuthFailure):
        super().__init__(failure.message)
        self.failure = failure


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_credential_store(db: AsyncSession = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_session_store(db: AsyncSession = Depends(get_db)) -> SessionStore:
    return SessionStore(db)


def get_authenticator(
    settings: Settings = Depends(get_settings),
    codec: TokenCodec = Depends(get_token_codec),
    users: CredentialStore = Depends(get_credential_store),
    sessions: SessionStore = Depends(get_session_store),
) -> Authenticator:
    return Authenticator(
        codec,
        users,
        sessions,
        session_ttl=settings.session_ttl,
        sweep_expired=settings.sweep_expired_sessions_on_login,
    )


def get_gatekeeper(
    codec: TokenCodec = Depends(get_token_codec),
    sessions: SessionStore = Depends(get_session_store),
) -> Gatekeeper:
    return Gatekeeper(codec, sessions)


async def require_identity(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    gatekeeper: Gatekeeper = Depends(get_gatekeeper),
) -> Identity:
    """Authorize the request or reject it before any handler logic runs."""
    result = await gatekeeper.authorize(authorization)
    if isinstance(result, AuthFailure):
        raise AuthRejected(result)
    request.state.identity = result
    return result


def request_device_info(request: Request) -> str:
    return request.headers.get("user-agent") or UNKNOWN


def request_ip_address(request: Request) -> str:
    """Originating address as reported by the proxy headers, else "Unknown"."""
    return request.headers.get("x-forwarded-for") or request.headers.get("x-real-ip") or UNKNOWN
