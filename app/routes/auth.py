"""Authentication routes for login, logout, and logout from all devices."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse

from app.auth.authenticator import Authenticator
from app.auth.dependencies import get_authenticator, request_device_info, request_ip_address
from app.auth.gatekeeper import extract_bearer_token
from app.auth.results import AuthErrorKind, AuthFailure
from app.auth.schemas import (
    ErrorResponse,
    LoginResponse,
    LogoutAllResponse,
    LogoutResponse,
    UserLogin,
    UserResponse,
)
from app.exception_handlers import failure_response
from app.logging_config import log_error, log_request

router = APIRouter(prefix="/auth", tags=["auth"])

NO_TOKEN = AuthFailure(AuthErrorKind.NO_TOKEN, "No token provided")


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def login(
    payload: UserLogin,
    request: Request,
    authenticator: Authenticator = Depends(get_authenticator),
):
    """Exchange email and password for a bearer token.

    Unknown email and wrong password produce the same 400 response.
    """
    log_request(request, extra_data={"email": payload.email})
    try:
        result = await authenticator.login(
            payload.email,
            payload.password,
            device_info=request_device_info(request),
            ip_address=request_ip_address(request),
        )
    except Exception as e:
        log_error(e, request, context="user_login")
        return JSONResponse(status_code=500, content={"error": "Failed to login"})

    if isinstance(result, AuthFailure):
        return failure_response(result)

    return LoginResponse(user=UserResponse.model_validate(result.user), token=result.token)


@router.post(
    "/logout",
    response_model=LogoutResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def logout(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    authenticator: Authenticator = Depends(get_authenticator),
):
    """End the session for the presented token.

    A 404 means the session was already gone; clients can treat it as logged out.
    """
    log_request(request)
    token = extract_bearer_token(authorization)
    if token is None:
        return failure_response(NO_TOKEN)

    try:
        result = await authenticator.logout(token)
    except Exception as e:
        log_error(e, request, context="user_logout")
        return JSONResponse(status_code=500, content={"error": "Failed to logout"})

    if isinstance(result, AuthFailure):
        return failure_response(result)

    return LogoutResponse(success=True, message=result.message)


@router.delete(
    "/logout",
    response_model=LogoutAllResponse,
    responses={401: {"model": ErrorResponse}},
)
async def logout_all(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    authenticator: Authenticator = Depends(get_authenticator),
):
    """End every session belonging to the owner of the presented token."""
    log_request(request)
    token = extract_bearer_token(authorization)
    if token is None:
        return failure_response(NO_TOKEN)

    try:
        result = await authenticator.logout_all(token)
    except Exception as e:
        log_error(e, request, context="user_logout_all")
        return JSONResponse(status_code=500, content={"error": "Failed to logout"})

    if isinstance(result, AuthFailure):
        return failure_response(result)

    return LogoutAllResponse(
        success=True, message=result.message, revoked_count=result.revoked_count
    )
