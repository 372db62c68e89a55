"""Per-request deadline checked by services before they commit."""

import time

from rolegate.core.errors import DeadlineExceededError


def check_deadline(deadline: float | None) -> None:
    """Raise DeadlineExceededError once time.monotonic() has reached deadline. None means no limit."""
    if deadline is not None and time.monotonic() >= deadline:
        raise DeadlineExceededError()
