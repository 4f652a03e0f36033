from datetime import datetime
import uuid

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Display name cannot be empty")
    email: str
    password: str = Field(..., min_length=1, description="Password cannot be empty")

    @field_validator("email")
    @classmethod
    def email_must_be_valid(cls, value: str) -> str:
        """Reject malformed addresses but keep the one given, case and all."""
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(str(e)) from e
        return value


class UserLogin(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Public view of a user. The password column is never part of it."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


class UserEnvelope(BaseModel):
    user: UserResponse


class LoginResponse(BaseModel):
    user: UserResponse
    token: str


class LogoutResponse(BaseModel):
    success: bool = True
    message: str


class LogoutAllResponse(LogoutResponse):
    model_config = ConfigDict(populate_by_name=True)

    revoked_count: int = Field(..., alias="revokedCount")


class ErrorResponse(BaseModel):
    error: str
