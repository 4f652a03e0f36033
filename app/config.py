from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
import os

from dotenv import load_dotenv

load_dotenv()

# Local development only. Production must set JWT_SECRET.
DEFAULT_JWT_SECRET = "your-secret-key"


def _env_bool(name: str, default: bool = False) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once at startup and passed down explicitly."""

    database_url: str = "sqlite+aiosqlite:///./boxmas.db"
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    token_expire_days: int = 7
    session_expire_days: int = 7
    sweep_expired_sessions_on_login: bool = True
    auto_create_tables: bool = False
    environment: str = "development"
    log_level: str = "INFO"
    db_echo: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            jwt_secret=os.getenv("JWT_SECRET") or DEFAULT_JWT_SECRET,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", cls.jwt_algorithm),
            token_expire_days=int(os.getenv("TOKEN_EXPIRE_DAYS", str(cls.token_expire_days))),
            session_expire_days=int(
                os.getenv("SESSION_EXPIRE_DAYS", str(cls.session_expire_days))
            ),
            sweep_expired_sessions_on_login=_env_bool("SWEEP_EXPIRED_SESSIONS_ON_LOGIN", True),
            auto_create_tables=_env_bool("AUTO_CREATE_TABLES", False),
            environment=os.getenv("ENVIRONMENT", cls.environment).strip().lower(),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            db_echo=_env_bool("DB_ECHO", False),
        )

    @property
    def token_ttl(self) -> timedelta:
        return timedelta(days=self.token_expire_days)

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(days=self.session_expire_days)

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> None:
        """Reject configurations that must never reach production.

        Raises:
            ValueError: If the insecure default signing secret is used in production
                or a validity window is not positive.
        """
        if self.is_production and self.uses_default_secret:
            raise ValueError("JWT_SECRET must be set when ENVIRONMENT=production")
        if self.token_expire_days <= 0 or self.session_expire_days <= 0:
            raise ValueError("Token and session validity windows must be positive")


@lru_cache()
def get_settings() -> Settings:
    """Get the settings for this process, read from the environment once."""
    return Settings.from_env()
