from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
)

from admin_resources.exceptions import classify_error, is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff for reads.

    ``retries`` counts extra attempts after the first one, so the default
    policy calls the transport at most twice. Only ``TransientError`` (after
    classification) is retried.
    """

    retries: int = 1
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0

    @property
    def max_attempts(self) -> int:
        return max(0, self.retries) + 1

    def calculate_delay(self, attempt: int) -> float:
        """Delay before the retry that follows failed ``attempt`` (1-based)."""
        delay = self.base_delay * (self.exponential_base ** max(0, attempt - 1))
        return min(delay, self.max_delay)

    @classmethod
    def none(cls) -> "RetryPolicy":
        return cls(retries=0)


Sleep = Callable[[float], Awaitable[None]]


async def run_with_retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: Optional[Sleep] = None,
    log_extra: Optional[dict[str, Any]] = None,
) -> T:
    """Call ``fn`` under ``policy``; raise the classified error once retries run out."""

    async def attempt() -> T:
        try:
            return await fn()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            classified = classify_error(exc)
            if classified is exc:
                raise
            raise classified from exc

    def before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "Transient failure on attempt %d/%d, retrying in %.2fs: %s",
            state.attempt_number,
            policy.max_attempts,
            state.next_action.sleep if state.next_action else 0.0,
            exc,
            extra={**(log_extra or {}), "attempt": state.attempt_number},
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=lambda state: policy.calculate_delay(state.attempt_number),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep,
        sleep=sleep or asyncio.sleep,
        reraise=True,
    )
    return await retrying(attempt)


__all__ = ["RetryPolicy", "run_with_retry"]
