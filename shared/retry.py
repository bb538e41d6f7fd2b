"""
Retry mechanism for resilient operations.
"""

import asyncio
import random
from typing import Any, Optional, Callable, Awaitable

from shared.logging import get_logger


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(self,
                 max_attempts: int = 3,
                 base_delay: float = 1.0,
                 max_delay: float = 60.0,
                 exponential_base: float = 2.0,
                 jitter: bool = True,
                 backoff_strategy: str = "exponential",
                 reraise: bool = False):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.backoff_strategy = backoff_strategy
        # Raise the last underlying exception instead of RetryError
        self.reraise = reraise


class RetryError(Exception):
    """Exception raised when all retry attempts are exhausted."""
    def __init__(self, message: str, last_exception: Exception, attempts: int):
        super().__init__(message)
        self.last_exception = last_exception
        self.attempts = attempts


async def retry_async(
    func: Callable[[], Awaitable[Any]],
    config: Optional[RetryConfig] = None,
    *,
    exceptions: tuple = (Exception,),
    retry_if: Optional[Callable[[Exception], bool]] = None,
    name: Optional[str] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Any:
    """Call ``func`` until it succeeds or the attempts are exhausted.

    Exceptions outside ``exceptions``, or for which ``retry_if`` returns
    False, propagate immediately without further attempts.
    """
    if config is None:
        config = RetryConfig()

    name = name or getattr(func, "__name__", "operation")
    logger = get_logger(f"retry.{name}")
    last_exception: Optional[Exception] = None

    for attempt in range(1, config.max_attempts + 1):
        try:
            result = await func()
            if attempt > 1:
                logger.info("Retry succeeded", attempt=attempt, function=name)
            return result

        except exceptions as e:
            if retry_if is not None and not retry_if(e):
                raise

            last_exception = e

            if attempt == config.max_attempts:
                logger.error(
                    "All retry attempts exhausted",
                    attempt=attempt,
                    max_attempts=config.max_attempts,
                    function=name,
                    error=str(e)
                )
                if config.reraise:
                    raise
                raise RetryError(
                    f"Function {name} failed after {config.max_attempts} attempts",
                    last_exception=e,
                    attempts=config.max_attempts
                ) from e

            delay = _calculate_delay(attempt, config)

            logger.warning(
                "Retry attempt failed, waiting before next attempt",
                attempt=attempt,
                delay=delay,
                function=name,
                error=str(e)
            )

            await sleep(delay)

    raise RetryError(
        f"Unexpected error in retry loop for {name}",
        last_exception=last_exception or Exception("Unknown error"),
        attempts=config.max_attempts
    )


def _calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Calculate delay between retry attempts."""
    if config.backoff_strategy == "exponential":
        delay = config.base_delay * (config.exponential_base ** (attempt - 1))
    elif config.backoff_strategy == "linear":
        delay = config.base_delay * attempt
    else:
        delay = config.base_delay

    delay = min(delay, config.max_delay)

    if config.jitter:
        jitter_amount = delay * 0.1  # 10% jitter
        delay += random.uniform(-jitter_amount, jitter_amount)

    return max(0.0, delay)
