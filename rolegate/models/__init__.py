"""SQLAlchemy ORM models."""

from rolegate.models.base import Base
from rolegate.models.policy_rule import PolicyRule
from rolegate.models.role import ADMIN_ROLE, ANONYMOUS_ROLE, USER_ROLE, Role
from rolegate.models.user import User

__all__ = [
    "ADMIN_ROLE",
    "ANONYMOUS_ROLE",
    "USER_ROLE",
    "Base",
    "PolicyRule",
    "Role",
    "User",
]
