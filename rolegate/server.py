"""
Server entry point. Run from project root:
  python -m rolegate
or, once installed, the `rolegate` console script.

Exit codes: 0 graceful shutdown, 2 configuration error, 3 database
unreachable, 4 migration failure.
"""

import logging
import sys
from pathlib import Path

import uvicorn
from alembic import command
from alembic.config import Config as AlembicConfig
from dotenv import load_dotenv
from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from rolegate.core.config import get_settings
from rolegate.core.database import build_engine
from rolegate.core.logging import configure_logging
from rolegate.main import create_app

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2
EXIT_DATABASE_ERROR = 3
EXIT_MIGRATION_ERROR = 4

ALEMBIC_DIR = Path(__file__).resolve().parent.parent / "alembic"


def run_migrations(engine: Engine) -> None:
    """Upgrade the schema to head using the given engine's connection."""
    config = AlembicConfig()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    with engine.begin() as connection:
        config.attributes["connection"] = connection
        command.upgrade(config, "head")


def main() -> int:
    load_dotenv()
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"FATAL: invalid configuration (jwt.secret must be set):\n{e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(settings.log)

    engine = build_engine(settings.database)
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Cannot connect to database: %s", e)
        return EXIT_DATABASE_ERROR
    logger.info("Database connection established")

    try:
        run_migrations(engine)
    except Exception as e:
        logger.exception("Database migration failed: %s", e)
        return EXIT_MIGRATION_ERROR
    logger.info("Database migrations applied")

    app = create_app(settings, db_engine=engine)
    logger.info("Server starting on port %d", settings.server.port)
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
        timeout_graceful_shutdown=max(1, round(settings.server.shutdown_grace_seconds)),
    )
    logger.info("Server exiting")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
