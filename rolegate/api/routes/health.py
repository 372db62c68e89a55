"""Liveness and readiness check."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rolegate.api.deps import get_policy_engine
from rolegate.core.database import check_db_connected, get_db
from rolegate.policy import PolicyEngine
from rolegate.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse, response_model_exclude_none=True)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    engine: Annotated[PolicyEngine, Depends(get_policy_engine)],
) -> HealthResponse:
    """
    Report database connectivity and whether the policy view is loaded.
    Status is "degraded" when either is missing; the endpoint itself always answers 200.
    """
    db_ok = check_db_connected(db)
    return HealthResponse(
        status="ok" if db_ok and engine.loaded else "degraded",
        database="connected" if db_ok else "disconnected",
        policy="loaded" if engine.loaded else "not_loaded",
    )
