"""Middleware for request/response logging."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.logging_config import client_ip, get_logger

ANONYMOUS = "anonymous"


def request_actor(request: Request) -> str:
    """Who made the request: the authorized user id, or ``anonymous``.

    Only routes behind ``require_identity`` record an identity on ``request.state``.
    """
    identity = getattr(request.state, "identity", None)
    return str(identity.user_id) if identity is not None else ANONYMOUS


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its outcome, duration and the user behind it."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Load balancer probes would drown out real traffic
        if request.url.path == "/health":
            return await call_next(request)

        started = time.perf_counter()
        logger = get_logger()
        logger.info(f"{request.method} {request.url.path} from {client_ip(request)}")

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = time.perf_counter() - started
            logger.error(
                f"{request.method} {request.url.path} failed after {elapsed:.3f}s "
                f"(user={request_actor(request)}): {e}",
                exc_info=True,
            )
            raise

        elapsed = time.perf_counter() - started
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"in {elapsed:.3f}s (user={request_actor(request)})"
        )
        response.headers["X-Process-Time"] = f"{elapsed:.6f}"
        return response
