"""ORM model for roles referenced by users and named in policy rules."""

from sqlalchemy import Column, Integer, String

from rolegate.models.base import Base, TimestampMixin

ADMIN_ROLE = "admin"
USER_ROLE = "user"
ANONYMOUS_ROLE = "anonymous"


class Role(TimestampMixin, Base):
    """Named role, e.g. 'admin', 'user', 'anonymous'. Never deleted by the application."""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), nullable=False, unique=True, index=True)
    description = Column(String(255), nullable=False, default="")
