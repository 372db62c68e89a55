"""User-record administration with the self-or-admin authorization predicate."""

import logging

from sqlalchemy.orm import Session

from rolegate.core.errors import NotFoundError, PermissionDeniedError, ValidationFailedError
from rolegate.models import ADMIN_ROLE, User
from rolegate.repositories import RoleRepository, UserRepository
from rolegate.schemas.user import UpdateUserRequest
from rolegate.services.deadline import check_deadline

logger = logging.getLogger(__name__)


class UserService:
    def __init__(
        self,
        session: Session,
        users: UserRepository,
        roles: RoleRepository,
        deadline: float | None = None,
    ) -> None:
        self.session = session
        self.users = users
        self.roles = roles
        self.deadline = deadline

    def list(self) -> list[User]:
        return self.users.find_all()

    def get(self, user_id: int) -> User:
        return self.users.find_by_id(user_id)

    def update(
        self,
        target_id: int,
        caller_id: int,
        caller_role: str,
        patch: UpdateUserRequest,
    ) -> User:
        """
        Apply a patch of username, email and role_id.

        Allowed for the account owner or an admin. Empty values mean "no
        change"; a role_id from a non-admin is dropped and the rest applied.
        """
        is_admin = caller_role == ADMIN_ROLE
        if target_id != caller_id and not is_admin:
            raise PermissionDeniedError()

        user = self.users.find_by_id(target_id)
        role_id = None
        if patch.role_id:
            if is_admin:
                try:
                    role_id = self.roles.find_by_id(patch.role_id).id
                except NotFoundError as e:
                    raise ValidationFailedError(
                        details=f"role_id: role {patch.role_id} does not exist"
                    ) from e
            else:
                logger.info("Ignoring role change for user %s requested by non-admin %s", target_id, caller_id)

        if patch.username:
            user.username = patch.username
        if patch.email:
            user.email = patch.email
        if role_id is not None:
            user.role_id = role_id
        try:
            self.users.update(user)
            self.users.load_role(user)
            check_deadline(self.deadline)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return user

    def delete(self, user_id: int) -> None:
        try:
            user = self.users.find_by_id(user_id)
            self.users.delete(user)
            check_deadline(self.deadline)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info("Soft-deleted user id=%s", user_id)
