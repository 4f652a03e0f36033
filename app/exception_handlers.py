"""Global exception handlers and the failure-to-response mapping."""

from fastapi import Request
from fastapi.responses import JSONResponse

from app.auth.dependencies import AuthRejected
from app.auth.results import AuthFailure
from app.logging_config import client_ip, get_logger, log_error

logger = get_logger()


def failure_response(failure: AuthFailure) -> JSONResponse:
    """Translate a domain failure into its HTTP response."""
    headers = {"WWW-Authenticate": "Bearer"} if failure.kind.is_unauthenticated else None
    return JSONResponse(
        status_code=failure.status_code, content={"error": failure.message}, headers=headers
    )


async def auth_rejected_handler(request: Request, exc: AuthRejected) -> JSONResponse:
    """Handle requests stopped by the gatekeeper."""
    logger.warning(
        f"Unauthorized: {request.method} {request.url.path} from {client_ip(request)} - "
        f"{exc.failure.kind.code}"
    )
    return JSONResponse(
        status_code=exc.failure.status_code,
        content={"error": f"Unauthorized - {exc.failure.message}"},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def internal_server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors without leaking internals to the client."""
    log_error(exc, request, context="unhandled_exception")

    return JSONResponse(status_code=500, content={"error": "Internal server error"})
