"""Outermost request handling: deadline, crash recovery and access logging."""

import asyncio
import logging
import time

from fastapi import FastAPI, Request
from slowapi import Limiter
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from rolegate.api.errors import error_response, log_for_status
from rolegate.core.config import RateLimiterSettings
from rolegate.core.errors import DeadlineExceededError, InternalError

logger = logging.getLogger(__name__)


def install_request_middleware(app: FastAPI, timeout_seconds: float) -> None:
    @app.middleware("http")
    async def request_context(request: Request, call_next):
        start = time.perf_counter()
        # Services re-check this before committing; wait_for alone cannot stop a worker thread.
        request.state.deadline = time.monotonic() + timeout_seconds
        try:
            response = await asyncio.wait_for(call_next(request), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(
                "Request deadline of %.1fs exceeded: %s %s",
                timeout_seconds,
                request.method,
                request.url.path,
            )
            response = error_response(500, DeadlineExceededError.default_message)
        except Exception:
            logger.exception("Unhandled error: %s %s", request.method, request.url.path)
            response = error_response(500, InternalError.default_message)

        latency_ms = (time.perf_counter() - start) * 1000
        subject_id = getattr(request.state, "subject_id", None)
        log_for_status(
            response.status_code,
            "%s %s %s %.1fms ip=%s user_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            latency_ms,
            request.client.host if request.client else "-",
            subject_id if subject_id is not None else "-",
        )
        return response


def build_limiter(rl_settings: RateLimiterSettings) -> Limiter:
    """Per-client-IP limiter applying ratelimiter.limit per ratelimiter.period to every route."""
    return Limiter(
        key_func=get_remote_address,
        default_limits=[f"{rl_settings.limit} per {rl_settings.period_seconds} second"],
        storage_uri="memory://",
    )


def install_rate_limiter(app: FastAPI, rl_settings: RateLimiterSettings) -> None:
    app.state.limiter = build_limiter(rl_settings)
    app.add_middleware(SlowAPIMiddleware)
