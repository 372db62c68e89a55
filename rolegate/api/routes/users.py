"""User administration endpoints; every route runs the credential and policy stages."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from rolegate.api.deps import PROTECTED, authenticate, get_user_service
from rolegate.schemas.auth import Principal
from rolegate.schemas.user import MessageResponse, UpdateUserRequest, UserResponse
from rolegate.services import UserService

router = APIRouter(dependencies=PROTECTED)

UserId = Annotated[int, Path(ge=1, description="User id")]


@router.get("", response_model=list[UserResponse])
@router.get("/", response_model=list[UserResponse], include_in_schema=False)
def list_users(service: Annotated[UserService, Depends(get_user_service)]) -> list[UserResponse]:
    return [UserResponse.from_model(u) for u in service.list()]


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: UserId,
    service: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    return UserResponse.from_model(service.get(user_id))


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: UserId,
    body: UpdateUserRequest,
    principal: Annotated[Principal, Depends(authenticate)],
    service: Annotated[UserService, Depends(get_user_service)],
) -> UserResponse:
    """Owner or admin may update; only an admin may change role_id."""
    user = service.update(user_id, principal.subject_id, principal.role, body)
    return UserResponse.from_model(user)


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: UserId,
    service: Annotated[UserService, Depends(get_user_service)],
) -> MessageResponse:
    service.delete(user_id)
    return MessageResponse(message="user deleted successfully")
