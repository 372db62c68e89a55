"""Health check payload."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"] = "ok"
    database: Literal["connected", "disconnected"] | None = None
    policy: Literal["loaded", "not_loaded"] | None = Field(
        default=None,
        description="Whether the in-memory policy view has been built",
    )
