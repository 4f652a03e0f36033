"""User registration and listing."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.auth.dependencies import get_credential_store, require_identity
from app.auth.registration import register_user
from app.auth.results import AuthFailure, Identity
from app.auth.schemas import ErrorResponse, UserCreate, UserEnvelope, UserResponse
from app.auth.users import CredentialStore
from app.exception_handlers import failure_response
from app.logging_config import log_error, log_request

router = APIRouter(prefix="/user", tags=["users"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=UserEnvelope,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_user(
    payload: UserCreate,
    request: Request,
    users: CredentialStore = Depends(get_credential_store),
):
    """Register a new account. Duplicate emails are rejected with 400."""
    log_request(request, extra_data={"email": payload.email})
    try:
        result = await register_user(users, payload.name, payload.email, payload.password)
    except Exception as e:
        log_error(e, request, context="user_registration")
        return JSONResponse(status_code=500, content={"error": "Failed to create user"})

    if isinstance(result, AuthFailure):
        return failure_response(result)

    return UserEnvelope(user=UserResponse.model_validate(result.user))


@router.get("", response_model=list[UserResponse], responses={401: {"model": ErrorResponse}})
async def list_users(
    request: Request,
    identity: Identity = Depends(require_identity),
    users: CredentialStore = Depends(get_credential_store),
):
    """List every user, without credentials."""
    log_request(request, user_id=str(identity.user_id))
    try:
        all_users = await users.list_all()
    except Exception as e:
        log_error(e, request, user_id=str(identity.user_id), context="list_users")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch users"})

    return [UserResponse.model_validate(user) for user in all_users]
