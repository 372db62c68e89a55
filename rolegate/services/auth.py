"""Registration and login use-cases: password hashing, default role, token issuance."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rolegate.core.errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    UserExistsError,
)
from rolegate.core.security import PasswordHasher, TokenCodec
from rolegate.models import Role, User
from rolegate.repositories import RoleRepository, UserRepository
from rolegate.services.deadline import check_deadline

logger = logging.getLogger(__name__)

DEFAULT_ROLE_DESCRIPTION = "regular user"


class AuthService:
    def __init__(
        self,
        session: Session,
        users: UserRepository,
        roles: RoleRepository,
        hasher: PasswordHasher,
        codec: TokenCodec,
        default_role: str = "user",
        deadline: float | None = None,
    ) -> None:
        self.session = session
        self.users = users
        self.roles = roles
        self.hasher = hasher
        self.codec = codec
        self.default_role = default_role
        self.deadline = deadline

    def _get_or_create_default_role(self) -> Role:
        try:
            return self.roles.find_by_name(self.default_role)
        except NotFoundError:
            pass
        try:
            role = self.roles.create(Role(name=self.default_role, description=DEFAULT_ROLE_DESCRIPTION))
            logger.info("Created missing default role '%s'", self.default_role)
            return role
        except ConflictError:
            # Another registration created it first.
            return self.roles.find_by_name(self.default_role)

    def register(self, username: str, email: str, password: str) -> tuple[User, str]:
        """
        Create a user with the default role and return (user, token).

        The pre-check, role lookup and insert share one transaction; the
        unique indexes are the source of truth, so an insert conflict from a
        concurrent registration also surfaces as UserExistsError.
        """
        try:
            try:
                self.users.find_by_username_or_email(username, email)
            except NotFoundError:
                pass
            else:
                raise UserExistsError()

            password_hash = self.hasher.hash(password)
            role = self._get_or_create_default_role()
            user = User(username=username, email=email, password=password_hash, role_id=role.id)
            try:
                self.users.create(user)
            except ConflictError as e:
                raise UserExistsError() from e
            self.users.load_role(user)
            check_deadline(self.deadline)
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise UserExistsError() from e
        except Exception:
            self.session.rollback()
            raise

        logger.info("Registered user id=%s username=%s", user.id, user.username)
        token = self.codec.sign(user.id, user.role.name)
        return user, token

    def login(self, username: str, password: str) -> tuple[User, str]:
        """
        Verify credentials and return (user, token).

        Unknown user and wrong password raise the same InvalidCredentialsError.
        """
        try:
            user = self.users.find_by_username(username)
        except NotFoundError:
            # Spend the same bcrypt work as a real check so timing does not leak existence.
            self.hasher.verify(password, self.hasher.dummy_hash)
            raise InvalidCredentialsError() from None

        if not self.hasher.verify(password, user.password):
            raise InvalidCredentialsError()

        self.users.load_role(user)
        return user, self.codec.sign(user.id, user.role.name)
