"""Request/response schemas for user records."""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rolegate.core.security import EMAIL_MAX_LEN, USERNAME_MAX_LEN
from rolegate.models import User

# Deliberately permissive: one '@', no whitespace, non-empty local part and domain.
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")


def validate_email_address(value: str) -> str:
    value = value.strip()
    if not EMAIL_RE.match(value):
        raise ValueError("must be a valid email address")
    return value


class UserResponse(BaseModel):
    """Outward shape of a user; the password hash is never included."""

    id: int
    username: str
    email: str
    role_id: int
    role: str

    @classmethod
    def from_model(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role_id=user.role_id,
            role=user.role.name if user.role is not None else "",
        )


class UpdateUserRequest(BaseModel):
    """Patchable fields only; anything else in the body is ignored. Empty/zero means no change."""

    model_config = ConfigDict(extra="ignore")

    username: str | None = Field(default=None, max_length=USERNAME_MAX_LEN)
    email: str | None = Field(default=None, max_length=EMAIL_MAX_LEN)
    role_id: int | None = Field(default=None, ge=0)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str | None) -> str | None:
        return v.strip() if v else v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        if not v:
            return v
        return validate_email_address(v)


class MessageResponse(BaseModel):
    message: str
