"""
Alembic environment for the rolegate schema.

The server runs migrations programmatically and hands over its own
connection through config.attributes["connection"]; the alembic CLI
falls back to the URL from application settings.
"""

from alembic import context
from sqlalchemy import create_engine
from sqlalchemy.engine import Connection
from sqlalchemy.pool import NullPool

from rolegate.models import Base

config = context.config
target_metadata = Base.metadata


def settings_url():
    from rolegate.core.config import get_settings
    from rolegate.core.database import build_database_url

    return build_database_url(get_settings().database)


def migrate(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


def run_offline() -> None:
    """Emit SQL to stdout instead of executing it."""
    context.configure(
        url=settings_url().render_as_string(hide_password=False),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    connection = config.attributes.get("connection")
    if connection is not None:
        migrate(connection)
        return
    engine = create_engine(settings_url(), poolclass=NullPool)
    with engine.connect() as connection:
        migrate(connection)


if context.is_offline_mode():
    run_offline()
else:
    run_online()
