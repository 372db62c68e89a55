"""Core app configuration, database, security and logging."""

from rolegate.core.config import Settings, get_settings
from rolegate.core.database import get_db

__all__ = ["Settings", "get_settings", "get_db"]
