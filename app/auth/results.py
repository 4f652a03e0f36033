"""Tagged results returned by the authentication operations.

Every operation returns either its own success dataclass or an ``AuthFailure``.
Expected failures are values, not exceptions; the HTTP layer maps them 1:1 onto
status codes through ``AuthErrorKind.status_code``.
"""

from dataclasses import dataclass
import enum
from typing import Union
import uuid

from app.models.session import Session
from app.models.user import User


class AuthErrorKind(enum.Enum):
    INVALID_CREDENTIALS = ("invalid_credentials", 400)
    NO_TOKEN = ("no_token", 401)
    INVALID_TOKEN = ("invalid_token", 401)
    EXPIRED_TOKEN = ("expired_token", 401)
    REVOKED_TOKEN = ("revoked_token", 401)
    NOT_FOUND = ("not_found", 404)
    CONFLICT = ("conflict", 400)

    def __init__(self, code: str, status_code: int):
        self.code = code
        self.status_code = status_code

    @property
    def is_unauthenticated(self) -> bool:
        return self.status_code == 401


@dataclass(frozen=True)
class AuthFailure:
    kind: AuthErrorKind
    message: str

    @property
    def status_code(self) -> int:
        return self.kind.status_code


@dataclass(frozen=True)
class Identity:
    """The caller resolved by the gatekeeper, attached to the request downstream."""

    user_id: uuid.UUID
    email: str


@dataclass(frozen=True)
class LoginSuccess:
    user: User
    token: str
    session: Session


@dataclass(frozen=True)
class LogoutSuccess:
    message: str = "Logged out successfully"


@dataclass(frozen=True)
class LogoutAllSuccess:
    revoked_count: int

    @property
    def message(self) -> str:
        return f"Logged out from {self.revoked_count} device(s)"


@dataclass(frozen=True)
class RegistrationSuccess:
    user: User


LoginResult = Union[LoginSuccess, AuthFailure]
LogoutResult = Union[LogoutSuccess, AuthFailure]
LogoutAllResult = Union[LogoutAllSuccess, AuthFailure]
AuthorizationResult = Union[Identity, AuthFailure]
RegistrationResult = Union[RegistrationSuccess, AuthFailure]
