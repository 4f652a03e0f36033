"""User registration: the one write path into the credential store."""

from sqlalchemy.exc import IntegrityError

from app.auth.passwords import get_password_hash
from app.auth.results import AuthErrorKind, AuthFailure, RegistrationResult, RegistrationSuccess
from app.auth.users import CredentialStore
from app.logging_config import log_auth_event

DUPLICATE_EMAIL_MESSAGE = "User already exists"


async def register_user(
    users: CredentialStore, name: str, email: str, password: str
) -> RegistrationResult:
    """Create a user with a hashed password, refusing duplicate emails.

    Args:
        users: Credential store bound to the request's database session
        name: Display name
        email: Email address, stored exactly as given
        password: Plaintext password (hashed before storage)

    Returns:
        RegistrationSuccess with the new user, or a CONFLICT failure
    """
    if await users.find_by_email(email) is not None:
        log_auth_event("register", email, False, error_message="Email already registered")
        return AuthFailure(AuthErrorKind.CONFLICT, DUPLICATE_EMAIL_MESSAGE)

    try:
        user = await users.create(name, email, get_password_hash(password))
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        await users.db.rollback()
        log_auth_event("register", email, False, error_message="Unique constraint violation")
        return AuthFailure(AuthErrorKind.CONFLICT, DUPLICATE_EMAIL_MESSAGE)

    log_auth_event("register", email, True, str(user.id))
    return RegistrationSuccess(user=user)
