from __future__ import annotations

import functools
import time
from typing import Any, Callable, TypeVar

import structlog

F = TypeVar("F", bound=Callable[..., Any])

logger = structlog.get_logger("job")


def log_job(name: str) -> Callable[[F], F]:
    """Decorator to time a scheduled job and emit start/completed/error events."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            start = time.perf_counter()
            logger.info("job.start", job=name)
            try:
                result = func(*args, **kwargs)
            except Exception:
                duration = (time.perf_counter() - start) * 1000
                logger.exception("job.error", job=name, duration_ms=round(duration, 2))
                raise
            duration = (time.perf_counter() - start) * 1000
            logger.info("job.completed", job=name, duration_ms=round(duration, 2))
            return result

        return wrapper  # type: ignore[return-value]

    return decorator
