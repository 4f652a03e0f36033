from uuid import uuid4

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from app.config import Settings


class Base(DeclarativeBase):
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database URL."""
    database_url = settings.database_url

    if "postgresql+asyncpg" in database_url:
        # pgbouncer in transaction mode cannot share prepared statements
        connect_args = {
            "server_settings": {"jit": "off"},
            "command_timeout": 60,
            "statement_cache_size": 0,
            "prepared_statement_cache_size": 0,
            "prepared_statement_name_func": lambda: f"__asyncpg_{uuid4().hex[:8]}__",
        }
        return create_async_engine(
            database_url,
            echo=settings.db_echo,
            connect_args=connect_args,
            pool_pre_ping=True,
            poolclass=NullPool,
        )
    if "postgresql" in database_url:
        return create_async_engine(
            database_url, echo=settings.db_echo, pool_pre_ping=True, poolclass=NullPool
        )
    return create_async_engine(database_url, echo=settings.db_echo, pool_pre_ping=True)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db(request: Request):
    """Yield one database session per request from the app's session factory."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def create_tables(engine: AsyncEngine) -> None:
    # Importing the package registers every model on Base.metadata
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
