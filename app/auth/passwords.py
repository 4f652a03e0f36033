"""Password hashing, plus recognition of legacy plaintext credentials."""

import secrets

from passlib.context import CryptContext

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Every bcrypt hash starts with one of these version markers
BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash in constant time."""
    return pwd_context.verify(plain_password, hashed_password)


def is_password_hash(stored_password: str) -> bool:
    """Return True if the stored credential is a bcrypt hash rather than legacy plaintext."""
    return stored_password.startswith(BCRYPT_PREFIXES)


def verify_legacy_password(plain_password: str, stored_password: str) -> bool:
    """Compare against a legacy plaintext credential without leaking timing."""
    return secrets.compare_digest(plain_password.encode(), stored_password.encode())


def dummy_verify_password() -> None:
    """Spend one bcrypt verification when there is no stored hash to check against.

    Used when a login names an unknown email, so it takes as long as a wrong password.
    """
    pwd_context.dummy_verify()
