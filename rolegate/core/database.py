"""Database engine, session factory and request-scoped session dependency."""

import logging
from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from rolegate.core.config import DatabaseSettings

logger = logging.getLogger(__name__)


def build_database_url(db_settings: DatabaseSettings) -> URL:
    """Return database.url if set, else a PostgreSQL URL from the discrete keys."""
    if db_settings.url:
        return make_url(db_settings.url)
    return URL.create(
        "postgresql+psycopg2",
        username=db_settings.user,
        password=db_settings.password.get_secret_value(),
        host=db_settings.host,
        port=db_settings.port,
        database=db_settings.dbname,
        query={"sslmode": db_settings.sslmode},
    )


def build_engine(db_settings: DatabaseSettings) -> Engine:
    """Create the pooled engine; pool sizing follows the max idle/open/lifetime keys."""
    url = build_database_url(db_settings)
    if url.get_backend_name() == "sqlite":
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise every pooled connection sees an empty database.
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=db_settings.echo, **kwargs)

    max_idle = min(db_settings.max_idle_conns, db_settings.max_open_conns)
    return create_engine(
        url,
        echo=db_settings.echo,
        pool_pre_ping=True,
        pool_size=max_idle,
        max_overflow=db_settings.max_open_conns - max_idle,
        pool_recycle=db_settings.conn_max_lifetime_minutes * 60,
    )


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning("Database health check failed: %s", e)
        return False
