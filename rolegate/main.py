"""FastAPI application factory. No business logic; only wiring and middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from rolegate import __version__
from rolegate.api import router as api_router
from rolegate.api.errors import register_error_handlers
from rolegate.api.middleware import install_rate_limiter, install_request_middleware
from rolegate.core.config import Settings, get_settings
from rolegate.core.database import build_engine, build_session_factory
from rolegate.core.security import PasswordHasher, TokenCodec
from rolegate.policy import DEFAULT_POLICY, PolicyEngine, PolicyStore
from rolegate.repositories import RoleRepository

logger = logging.getLogger(__name__)


def bootstrap(session_factory: sessionmaker[Session], policy_engine: PolicyEngine) -> None:
    """Create missing default roles, seed the policy store if empty, load the policy view."""
    with session_factory() as session:
        created = RoleRepository(session).ensure_defaults()
        session.commit()
        if created:
            logger.info("Created default roles: %s", ", ".join(r.name for r in created))
    policy_engine.bootstrap(DEFAULT_POLICY)


def create_app(settings: Settings | None = None, db_engine: Engine | None = None) -> FastAPI:
    """
    Composition root: build every shared component once and hang it on app.state.

    Tests pass their own settings (and optionally an engine) for isolated instances.
    """
    settings = settings or get_settings()
    db_engine = db_engine or build_engine(settings.database)
    session_factory = build_session_factory(db_engine)
    policy_engine = PolicyEngine(settings.casbin.model, PolicyStore(session_factory))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        bootstrap(session_factory, policy_engine)
        yield
        db_engine.dispose()

    app = FastAPI(
        title="Rolegate API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db_engine = db_engine
    app.state.session_factory = session_factory
    app.state.password_hasher = PasswordHasher(rounds=settings.password.cost)
    app.state.token_codec = TokenCodec(
        settings.jwt.secret.get_secret_value(),
        ttl_seconds=settings.jwt.expiration_seconds,
        algorithm=settings.jwt.algorithm,
    )
    app.state.policy_engine = policy_engine

    install_request_middleware(app, settings.server.request_timeout_seconds)
    if settings.ratelimiter.enabled:
        install_rate_limiter(app, settings.ratelimiter)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(api_router)
    return app
