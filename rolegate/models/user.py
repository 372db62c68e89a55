"""ORM model for application users (auth and RBAC)."""

from sqlalchemy import Column, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship

from rolegate.models.base import Base, TimestampMixin


class User(TimestampMixin, Base):
    """
    User account for JWT authentication and role-based access control.

    username and email are unique among live rows only, so a soft-deleted
    account does not block re-registration. password holds the bcrypt hash.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index(
            "ix_users_username_live",
            "username",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index(
            "ix_users_email_live",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    password = Column(String(255), nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False, index=True)

    role = relationship("Role", lazy="select")
