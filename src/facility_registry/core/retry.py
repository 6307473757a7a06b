from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from facility_registry.core.exceptions import BackendUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Capped exponential backoff for backend reads.

    Only ``retry_on`` errors are retried; anything else (a missing document,
    a rejected payload) surfaces on the first attempt. When every attempt
    fails, the last error is raised unchanged.
    """

    attempts: int = 3
    base_delay_seconds: float = 0.05
    max_delay_seconds: float = 2.0
    retry_on: tuple[type[Exception], ...] = (BackendUnavailableError,)

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError("attempts must be >= 1")
        if self.base_delay_seconds < 0 or self.max_delay_seconds < 0:
            raise ValueError("retry delays must be >= 0")

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay_seconds * (2 ** (attempt - 1)), self.max_delay_seconds)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        on_retry: Callable[[int, float], None] | None = None,
    ) -> T:
        attempt = 1
        while True:
            try:
                return await operation()
            except self.retry_on as exc:
                if attempt >= self.attempts:
                    logger.warning("backend_retries_exhausted", extra={"attempts": attempt, "reason": str(exc)})
                    raise
                delay = self.delay_for(attempt)
                logger.info(
                    "backend_retry_scheduled",
                    extra={"attempt": attempt, "delay_seconds": delay, "reason": str(exc)},
                )
                if on_retry:
                    on_retry(attempt, delay)
                await asyncio.sleep(delay)
            attempt += 1
