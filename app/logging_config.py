"""Centralized logging configuration for the BoxMas service."""

import logging
import os
import sys
from typing import Optional

from fastapi import Request

LOGGER_NAME = "boxmas"


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Configure and return the application logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Set log level
    level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Prevent duplicate logs
    logger.propagate = False

    return logger


def get_logger() -> logging.Logger:
    """Get the application logger instance."""
    return logging.getLogger(LOGGER_NAME)


def client_ip(request: Request) -> str:
    return getattr(request.client, "host", "unknown") if request.client else "unknown"


def log_request(
    request: Request, user_id: Optional[str] = None, extra_data: Optional[dict] = None
) -> None:
    """Log incoming HTTP request details.

    Args:
        request: FastAPI request object
        user_id: Optional user ID for authenticated requests
        extra_data: Optional additional data to log
    """
    log_data = {
        "method": request.method,
        "path": request.url.path,
        "client_ip": client_ip(request),
        "user_agent": request.headers.get("user-agent", "unknown"),
    }

    if user_id:
        log_data["user_id"] = user_id

    if extra_data:
        log_data.update(extra_data)

    get_logger().info(f"Request: {log_data}")


def log_auth_event(
    event_type: str,
    email: Optional[str],
    success: bool,
    user_id: Optional[str] = None,
    error_message: Optional[str] = None,
    extra_data: Optional[dict] = None,
) -> None:
    """Log authentication events.

    The error message here is internal only and may be more specific than what
    the client receives (e.g. "unknown email" vs "wrong password").

    Args:
        event_type: Type of auth event (login, register, logout, logout_all, authorize)
        email: User email address, if known
        success: Whether the operation was successful
        user_id: Optional user ID (for successful operations)
        error_message: Optional error message (for failed operations)
        extra_data: Optional additional data to log (device, ip, counts)
    """
    log_data = {
        "event_type": event_type,
        "email": email,
        "success": success,
    }

    if user_id:
        log_data["user_id"] = user_id

    if error_message:
        log_data["error"] = error_message

    if extra_data:
        log_data.update(extra_data)

    level = logging.INFO if success else logging.WARNING
    get_logger().log(level, f"Auth event: {log_data}")


def log_error(
    error: Exception,
    request: Optional[Request] = None,
    user_id: Optional[str] = None,
    context: Optional[str] = None,
) -> None:
    """Log application errors with traceback.

    Args:
        error: Exception that occurred
        request: Optional FastAPI request object
        user_id: Optional user ID
        context: Optional context description
    """
    log_data = {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }

    if request is not None:
        log_data["path"] = request.url.path
        log_data["method"] = request.method
        log_data["client_ip"] = client_ip(request)

    if user_id:
        log_data["user_id"] = user_id

    if context:
        log_data["context"] = context

    get_logger().error(f"Application error: {log_data}", exc_info=error)


def log_database_event(
    operation: str,
    table: str,
    record_id: Optional[str] = None,
    user_id: Optional[str] = None,
    extra_data: Optional[dict] = None,
) -> None:
    """Log database operations.

    Args:
        operation: Database operation (create, update, delete, sweep)
        table: Database table name
        record_id: Optional record ID
        user_id: Optional user ID owning the record
        extra_data: Optional additional data to log
    """
    log_data = {
        "operation": operation,
        "table": table,
    }

    if record_id:
        log_data["record_id"] = record_id

    if user_id:
        log_data["user_id"] = user_id

    if extra_data:
        log_data.update(extra_data)

    get_logger().info(f"Database event: {log_data}")


# Initialize logging on import
_log_level = os.getenv("LOG_LEVEL", "INFO")
setup_logging(_log_level)
