"""Use-case services composing repositories, hashing and token issuance."""

from rolegate.services.auth import AuthService
from rolegate.services.users import UserService

__all__ = ["AuthService", "UserService"]
