"""User repository: live-row lookups, create/update/soft-delete, role eager-load."""

from datetime import UTC, datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.attributes import set_committed_value

from rolegate.core.errors import ConflictError, NotFoundError
from rolegate.models import Role, User


class UserRepository:
    """
    Data access for users. Methods flush but never commit: the calling
    service owns the transaction. Soft-deleted rows are invisible here.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def _live(self):
        return self.session.query(User).filter(User.deleted_at.is_(None))

    def find_by_username(self, username: str) -> User:
        user = self._live().filter(User.username == username).first()
        if user is None:
            raise NotFoundError("user not found")
        return user

    def find_by_username_or_email(self, username: str, email: str) -> User:
        """Uniqueness pre-check for registration; NotFoundError means safe to create."""
        user = self._live().filter(or_(User.username == username, User.email == email)).first()
        if user is None:
            raise NotFoundError("user not found")
        return user

    def find_all(self) -> list[User]:
        return self._live().options(joinedload(User.role)).order_by(User.id).all()

    def find_by_id(self, user_id: int) -> User:
        user = self._live().options(joinedload(User.role)).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("user not found")
        return user

    def create(self, user: User) -> User:
        """Insert the user; a uniqueness violation rolls back and raises ConflictError."""
        self.session.add(user)
        self._flush()
        return user

    def update(self, user: User) -> User:
        """Persist all mutable fields in one write."""
        exists = (
            self.session.query(User.id)
            .filter(User.id == user.id, User.deleted_at.is_(None))
            .first()
        )
        if exists is None:
            raise NotFoundError("user not found")
        self.session.add(user)
        self._flush()
        return user

    def delete(self, user: User) -> None:
        """Soft delete: mark the row, keep it on disk."""
        user.deleted_at = datetime.now(UTC)
        self.session.add(user)
        self._flush()

    def load_role(self, user: User) -> User:
        """Populate user.role from user.role_id."""
        role = self.session.get(Role, user.role_id)
        if role is None:
            raise NotFoundError(f"role {user.role_id} not found")
        set_committed_value(user, "role", role)
        return user

    def _flush(self) -> None:
        try:
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            raise ConflictError("username or email already in use") from e
