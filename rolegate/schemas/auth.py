"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, Field, field_validator

from rolegate.core.security import (
    EMAIL_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from rolegate.schemas.user import UserResponse, validate_email_address


def normalize_username(value: str) -> str:
    """Usernames are stored and looked up without surrounding whitespace."""
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class RegisterRequest(BaseModel):
    """New account details."""

    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    email: str = Field(..., min_length=3, max_length=EMAIL_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return normalize_username(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return validate_email_address(v)


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return normalize_username(v)


class AuthResponse(BaseModel):
    """Bearer token plus the authenticated user."""

    token: str = Field(..., description="JWT bearer token")
    user: UserResponse


class Principal(BaseModel):
    """Caller identity taken from a verified bearer token."""

    subject_id: int
    role: str
