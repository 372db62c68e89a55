"""Pydantic request/response schemas."""

from rolegate.schemas.auth import AuthResponse, LoginRequest, Principal, RegisterRequest
from rolegate.schemas.error import ErrorResponse
from rolegate.schemas.health import HealthResponse
from rolegate.schemas.user import MessageResponse, UpdateUserRequest, UserResponse

__all__ = [
    "AuthResponse",
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "Principal",
    "RegisterRequest",
    "UpdateUserRequest",
    "UserResponse",
]
