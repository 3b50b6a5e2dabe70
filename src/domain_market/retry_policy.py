"""
Retry policy for upstream calls.

Only rate-limit errors are retryable. Retry ``n`` (1-indexed) waits
``base_delay * 2 ** (n - 1)`` seconds, and no more than ``max_retries``
retries are granted for a single request. Every other error kind propagates
to the caller immediately.
"""

from dataclasses import dataclass
from typing import Optional

from .config import RetryConfig
from .exceptions import RateLimitError


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of evaluating an error against the policy."""

    should_retry: bool
    delay_seconds: float = 0.0


class RetryPolicy:
    """Stateless exponential-backoff policy for rate-limited requests."""

    def __init__(self, config: Optional[RetryConfig] = None) -> None:
        self._config = config or RetryConfig()

    @property
    def max_retries(self) -> int:
        return self._config.max_retries

    def calculate_delay(self, attempt: int) -> float:
        """
        Backoff before retry number ``attempt`` (1-indexed).

        Args:
            attempt: The retry about to be made (1 for the first retry)

        Returns:
            The delay in seconds
        """
        return self._config.base_delay_seconds * (2 ** max(0, attempt - 1))

    def is_retryable(self, error: BaseException) -> bool:
        return isinstance(error, RateLimitError)

    def evaluate(self, error: BaseException, attempt: int) -> RetryDecision:
        """
        Decide whether retry number ``attempt`` should happen for ``error``.

        Args:
            error: The error raised by the last execution
            attempt: The retry about to be made (1 for the first retry)
        """
        if not self.is_retryable(error) or attempt > self._config.max_retries:
            return RetryDecision(should_retry=False)
        return RetryDecision(should_retry=True, delay_seconds=self.calculate_delay(attempt))
