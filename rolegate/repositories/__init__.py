"""Persistence contracts for users and roles, backed by a SQLAlchemy session."""

from rolegate.repositories.roles import RoleRepository
from rolegate.repositories.users import UserRepository

__all__ = ["RoleRepository", "UserRepository"]
