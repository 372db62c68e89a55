"""Role repository: lookup by name/id, create, and default-role bootstrap."""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rolegate.core.errors import ConflictError, NotFoundError
from rolegate.models import ADMIN_ROLE, ANONYMOUS_ROLE, USER_ROLE, Role

DEFAULT_ROLES = {
    ADMIN_ROLE: "administrator",
    USER_ROLE: "regular user",
    ANONYMOUS_ROLE: "unauthenticated caller",
}


class RoleRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_name(self, name: str) -> Role:
        role = (
            self.session.query(Role)
            .filter(Role.name == name, Role.deleted_at.is_(None))
            .first()
        )
        if role is None:
            raise NotFoundError(f"role '{name}' not found")
        return role

    def find_by_id(self, role_id: int) -> Role:
        role = (
            self.session.query(Role)
            .filter(Role.id == role_id, Role.deleted_at.is_(None))
            .first()
        )
        if role is None:
            raise NotFoundError(f"role {role_id} not found")
        return role

    def create(self, role: Role) -> Role:
        self.session.add(role)
        try:
            self.session.flush()
        except IntegrityError as e:
            self.session.rollback()
            raise ConflictError(f"role '{role.name}' already exists") from e
        return role

    def ensure_defaults(self) -> list[Role]:
        """Create any missing default role. Caller commits."""
        created = []
        for name, description in DEFAULT_ROLES.items():
            try:
                self.find_by_name(name)
            except NotFoundError:
                created.append(self.create(Role(name=name, description=description)))
        return created
