"""Shared builders for isolated settings, databases and apps."""

from typing import Any

from fastapi import FastAPI
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from rolegate.core.config import Settings
from rolegate.core.database import build_engine, build_session_factory
from rolegate.core.security import TokenCodec
from rolegate.main import create_app
from rolegate.models import Base

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"

KEYMATCH_MODEL = """[request_definition]
r = sub, obj, act

[policy_definition]
p = sub, obj, act

[role_definition]
g = _, _

[policy_effect]
e = some(where (p.eft == allow))

[matchers]
m = (p.sub == "*" || g(r.sub, p.sub)) && (p.obj == "*" || keyMatch2(r.obj, p.obj)) && (p.act == "*" || r.act == p.act)
"""


def make_settings(**overrides: Any) -> Settings:
    """Settings for tests: in-memory SQLite, cheap bcrypt, no log file."""
    values: dict[str, Any] = {
        "jwt": {"secret": TEST_SECRET, "expiration_seconds": 3600},
        "database": {"url": "sqlite://"},
        "password": {"cost": 4},
        "log": {"filename": None},
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_database(url: str = "sqlite://") -> tuple[Engine, sessionmaker[Session]]:
    engine = build_engine(make_settings(database={"url": url}).database)
    Base.metadata.create_all(engine)
    return engine, build_session_factory(engine)


def make_app(settings: Settings | None = None) -> FastAPI:
    """App over a fresh in-memory database; enter a TestClient to run startup."""
    app = create_app(settings or make_settings())
    Base.metadata.create_all(app.state.db_engine)
    return app


def make_codec(ttl_seconds: int = 3600) -> TokenCodec:
    return TokenCodec(TEST_SECRET, ttl_seconds=ttl_seconds)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
