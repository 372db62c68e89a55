"""
Request pipeline stages and service dependencies.

Protected routes run two stages in order: the credential stage verifies
the bearer token and records subject id and role on request.state; the
policy stage asks the policy engine whether that role may perform the
request method on the request path.
"""

import logging
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from rolegate.core.database import get_db
from rolegate.core.errors import PolicyDeniedError, UnauthorizedError
from rolegate.core.security import TokenCodec
from rolegate.models import ANONYMOUS_ROLE
from rolegate.policy import PolicyEngine
from rolegate.repositories import RoleRepository, UserRepository
from rolegate.schemas.auth import Principal
from rolegate.services import AuthService, UserService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_policy_engine(request: Request) -> PolicyEngine:
    return request.app.state.policy_engine


def get_auth_service(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> AuthService:
    state = request.app.state
    return AuthService(
        session=db,
        users=UserRepository(db),
        roles=RoleRepository(db),
        hasher=state.password_hasher,
        codec=state.token_codec,
        default_role=state.settings.app.default_role,
        deadline=getattr(request.state, "deadline", None),
    )


def get_user_service(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> UserService:
    return UserService(
        session=db,
        users=UserRepository(db),
        roles=RoleRepository(db),
        deadline=getattr(request.state, "deadline", None),
    )


def authenticate(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
) -> Principal:
    """Credential stage: require 'Authorization: Bearer <token>' and verify it. Raises 401."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("missing or malformed Authorization header")
    claims = codec.verify(credentials.credentials)
    request.state.subject_id = claims.subject_id
    request.state.role = claims.role
    return Principal(subject_id=claims.subject_id, role=claims.role)


def policy_object(request: Request) -> str:
    """Path evaluated by the policy stage; a trailing slash is not significant."""
    path = request.url.path
    return path.rstrip("/") or "/"


def authorize(
    request: Request,
    engine: Annotated[PolicyEngine, Depends(get_policy_engine)],
) -> None:
    """Policy stage: deny with 403; engine failures propagate and render as 500."""
    role = getattr(request.state, "role", None) or ANONYMOUS_ROLE
    obj = policy_object(request)
    if not engine.decide(role, obj, request.method):
        logger.info("Policy denied role=%s %s %s", role, request.method, obj)
        raise PolicyDeniedError()


# Router-level dependency list for protected routes; order matters.
PROTECTED = [Depends(authenticate), Depends(authorize)]
