"""
Retry policy with exponential backoff and jitter.

Retries are opt-in: the execution engine never retries on its own. Wrap a
call with ``with_retry`` (or ``OpenAIKit.with_retry``) to retry the
transient failures the error taxonomy marks as retryable.
"""

from __future__ import annotations

import asyncio
import inspect
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from openaikit.errors import OpenAIKitError
from openaikit.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")

MIN_DELAY = 0.1

logger = get_logger("openaikit.resilience.retry")


def _suggested_delay(error: OpenAIKitError, attempt: int) -> float | None:
    return error.retry_delay


@dataclass
class RetryConfig:
    """Configuration for retry policy.

    Attributes:
        max_attempts: Total attempts including the first one (at least 1)
        base_delay: Base delay in seconds (at least 0.1)
        max_delay: Upper bound for any delay in seconds
        jitter_factor: Relative jitter applied to computed delays (0.0-1.0)
        exponential_backoff: Double the base delay on every attempt
        delay_calculator: Optional ``(error, attempt) -> seconds | None``
            consulted before anything else
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    jitter_factor: float = 0.1
    exponential_backoff: bool = True
    delay_calculator: Callable[[OpenAIKitError, int], float | None] | None = None

    def __post_init__(self) -> None:
        self.max_attempts = max(1, self.max_attempts)
        self.base_delay = max(MIN_DELAY, self.base_delay)
        self.max_delay = max(self.base_delay, self.max_delay)
        self.jitter_factor = min(max(0.0, self.jitter_factor), 1.0)

    @classmethod
    def default(cls) -> RetryConfig:
        """3 attempts, 1s base, 60s cap, 10% jitter."""
        return cls()

    @classmethod
    def rate_limit_optimized(cls) -> RetryConfig:
        """Longer, more patient backoff that follows the error's suggested delay."""
        return cls(
            max_attempts=5,
            base_delay=2.0,
            max_delay=120.0,
            jitter_factor=0.2,
            delay_calculator=_suggested_delay,
        )

    @classmethod
    def no_retry(cls) -> RetryConfig:
        """Create a config that disables retries."""
        return cls(max_attempts=1)


@dataclass
class RetryResult:
    """Result of a retry operation.

    Attributes:
        success: Whether the operation succeeded
        value: The result value (if success)
        error: The last error (if failed)
        attempts: Number of attempts made
        total_delay: Total time spent waiting between attempts, in seconds
    """

    success: bool
    value: Any = None
    error: OpenAIKitError | None = None
    attempts: int = 0
    total_delay: float = 0.0


class RetryPolicy:
    """Retry policy with exponential backoff and jitter.

    Only ``OpenAIKitError`` instances whose classification is retryable
    are retried. Any other exception propagates from the first attempt.

    Example:
        >>> policy = RetryPolicy(RetryConfig.rate_limit_optimized())
        >>> result = await policy.execute(lambda: client.execute(request))
        >>> if result.success:
        ...     print(result.value)
        ... else:
        ...     print(f"Failed after {result.attempts} attempts: {result.error}")
    """

    def __init__(self, config: RetryConfig | None = None) -> None:
        self._config = config or RetryConfig()

    @property
    def config(self) -> RetryConfig:
        return self._config

    def calculate_delay(self, error: OpenAIKitError, attempt: int) -> float:
        """Calculate delay before the next attempt.

        Order of precedence: the configured calculator, then the error's
        suggested delay, then base delay (doubled per attempt when
        exponential) with jitter.

        Args:
            error: Failure of the previous attempt
            attempt: Previous attempt number (0-based)

        Returns:
            Delay in seconds
        """
        config = self._config

        if config.delay_calculator is not None:
            custom = config.delay_calculator(error, attempt)
            if custom is not None:
                return min(custom, config.max_delay)

        suggested = error.retry_delay
        if suggested is not None:
            return min(suggested, config.max_delay)

        delay = config.base_delay
        if config.exponential_backoff:
            delay = config.base_delay * (2.0**attempt)

        delay += delay * config.jitter_factor * random.uniform(-1.0, 1.0)
        return min(max(MIN_DELAY, delay), config.max_delay)

    def should_retry(self, error: Exception, attempt: int) -> bool:
        """Check if an error should trigger another attempt.

        Args:
            error: The exception that occurred
            attempt: Attempt that failed (0-based)
        """
        if attempt >= self._config.max_attempts - 1:
            return False
        return isinstance(error, OpenAIKitError) and error.retryable

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        on_retry: Callable[[int, OpenAIKitError, float], Any] | None = None,
    ) -> RetryResult:
        """Execute an operation with retry.

        Args:
            operation: Async operation to execute
            on_retry: Optional callback ``(next_attempt, error, delay)``
                called before each wait; may be a coroutine function

        Returns:
            RetryResult with success status and value/error

        Raises:
            Exception: Any non-``OpenAIKitError`` raised by the operation
        """
        total_delay = 0.0
        attempt = 0

        while True:
            try:
                value = await operation()
            except OpenAIKitError as e:
                if not self.should_retry(e, attempt):
                    return RetryResult(
                        success=False,
                        error=e,
                        attempts=attempt + 1,
                        total_delay=total_delay,
                    )

                delay = self.calculate_delay(e, attempt)
                total_delay += delay
                attempt += 1

                logger.info(
                    "Retrying after error",
                    attempt=attempt + 1,
                    max_attempts=self._config.max_attempts,
                    kind=e.kind.value,
                    delay=round(delay, 3),
                )
                if on_retry is not None:
                    outcome = on_retry(attempt, e, delay)
                    if inspect.isawaitable(outcome):
                        await outcome

                await asyncio.sleep(delay)
            else:
                return RetryResult(
                    success=True,
                    value=value,
                    attempts=attempt + 1,
                    total_delay=total_delay,
                )


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    on_retry: Callable[[int, OpenAIKitError, float], Any] | None = None,
) -> T:
    """Execute an operation with retry, raising on failure.

    Args:
        operation: Async operation to execute
        config: Retry configuration
        on_retry: Optional callback called before each retry

    Returns:
        Operation result

    Raises:
        OpenAIKitError: The last error if no attempt succeeded
    """
    policy = RetryPolicy(config)
    result = await policy.execute(operation, on_retry)

    if result.success:
        return result.value
    assert result.error is not None
    raise result.error
