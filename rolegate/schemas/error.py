"""Uniform error envelope."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    code: int
    message: str
    details: str | None = None

    def body(self) -> dict:
        return self.model_dump(exclude_none=True)
