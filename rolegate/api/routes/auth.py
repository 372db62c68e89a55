"""Registration and login endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from rolegate.api.deps import get_auth_service
from rolegate.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from rolegate.schemas.user import UserResponse
from rolegate.services import AuthService

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """Create an account with the default role and return a bearer token."""
    user, token = service.register(body.username, body.email, body.password)
    return AuthResponse(token=token, user=UserResponse.from_model(user))


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """
    Authenticate with username and password; returns a bearer token.
    Include it in the Authorization header as: Bearer <token>
    """
    user, token = service.login(body.username, body.password)
    return AuthResponse(token=token, user=UserResponse.from_model(user))
