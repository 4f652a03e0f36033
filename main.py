"""Main FastAPI application entry point.

This module assembles the BoxMas API: the authentication and session core of a
household inventory tracker (locations, boxes, QR labels).

"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from app.auth.dependencies import AuthRejected
from app.auth.tokens import TokenCodec
from app.config import Settings, get_settings
from app.database import build_engine, build_session_factory, create_tables
from app.exception_handlers import auth_rejected_handler, internal_server_error_handler
from app.logging_config import get_logger, setup_logging
from app.middleware import LoggingMiddleware
from app.routes import auth, users


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Logs startup and shutdown, creates tables when configured to, and disposes
    the engine on shutdown.
    """
    logger = get_logger()
    settings: Settings = app.state.settings
    logger.info(f"Starting BoxMas application ({settings.environment})")

    if settings.uses_default_secret:
        logger.warning("JWT_SECRET is not set; using the insecure development default")

    if settings.auto_create_tables:
        await create_tables(app.state.engine)

    yield

    await app.state.engine.dispose()
    logger.info("Shutting down BoxMas application")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around an explicit configuration.

    Raises:
        ValueError: If the configuration is not acceptable for its environment.
    """
    settings = settings or get_settings()
    settings.validate()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="BoxMas API",
        description="Household inventory tracking: authentication and sessions",
        version="0.1.0",
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_codec = TokenCodec(
        settings.jwt_secret, algorithm=settings.jwt_algorithm, ttl=settings.token_ttl
    )

    app.add_middleware(LoggingMiddleware)

    # Exception handlers
    app.add_exception_handler(AuthRejected, auth_rejected_handler)
    app.add_exception_handler(Exception, internal_server_error_handler)

    # Health check endpoint for monitoring
    @app.get("/health")
    def health_check():
        """Fast health check endpoint for load balancers and monitoring."""
        return {"status": "ok", "service": "boxmas"}

    app.include_router(auth.router)
    app.include_router(users.router)

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
