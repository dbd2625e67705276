"""Retry policy for upstream calls.

Retry Strategy:
- Exponential backoff: base_delay * 2^attempt, capped at max_delay
- Jitter: +/- jitter fraction to keep parallel retries from lining up
- max_attempts counts the first try (3 = one call plus two retries)
- Retryable: any 5xx status and transient transport errors
- total_timeout bounds the whole sequence, not just one attempt
"""

import random
from dataclasses import dataclass

from rosterarr.config import YahooSettings

SERVER_ERROR_STATUSES = frozenset(range(500, 600))


@dataclass(frozen=True)
class RetryPolicy:
    """Declarative retry settings consumed by YahooClient."""

    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 8.0
    jitter: float = 0.3
    retryable_statuses: frozenset[int] = SERVER_ERROR_STATUSES
    total_timeout: float | None = 25.0

    @classmethod
    def from_settings(cls, settings: YahooSettings) -> "RetryPolicy":
        return cls(
            max_attempts=max(1, settings.retry_count),
            base_delay=settings.retry_base_delay,
            total_timeout=settings.request_deadline or None,
        )

    def backoff(self, attempt: int) -> float:
        """Delay before the retry that follows a failed attempt.

        Args:
            attempt: Zero-based number of the attempt that just failed

        Returns:
            Delay in seconds with jitter applied

        Example delays (base 0.5s, no jitter):
            Attempt 0: 0.5s
            Attempt 1: 1.0s
            Attempt 2: 2.0s
        """
        delay = min(self.max_delay, self.base_delay * (2**attempt))
        if self.jitter:
            delay *= 1 + self.jitter * (2 * random.random() - 1)
        return max(0.0, delay)

    def is_retryable_status(self, status: int) -> bool:
        return status in self.retryable_statuses

    def should_retry(self, attempt: int) -> bool:
        """Whether another attempt is allowed after zero-based attempt failed."""
        return attempt + 1 < self.max_attempts

    def deadline(self, now: float) -> float | None:
        """Absolute deadline for a sequence starting at now (monotonic)."""
        if self.total_timeout is None:
            return None
        return now + self.total_timeout
