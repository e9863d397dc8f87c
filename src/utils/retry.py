"""
Retry logic with exponential backoff for resilient API calls.

Handles transient failures with configurable retry strategies,
exponential backoff, and optional jitter.

Responsibility: Provide retry utilities for network operations
"""

import asyncio
import random
from typing import Awaitable, TypeVar, Callable, Optional, Type, Tuple
import logging

import httpx

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RetryError(Exception):
    """Raised when all retry attempts are exhausted"""

    def __init__(
        self,
        message: str,
        last_exception: Optional[Exception] = None,
        attempts: int = 0
    ):
        super().__init__(message)
        self.last_exception = last_exception
        self.attempts = attempts


def calculate_backoff(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True
) -> float:
    """
    Calculate backoff delay for retry attempt.

    Formula: min(max_delay, base_delay * (exponential_base ** attempt))

    Args:
        attempt: Current attempt number (0-indexed)
        base_delay: Base delay in seconds
        max_delay: Maximum delay cap in seconds
        exponential_base: Base for exponential calculation (usually 2.0)
        jitter: Randomize between 0.5x and 1.0x of the calculated delay

    Returns:
        Delay in seconds for this attempt

    Example:
        >>> calculate_backoff(0, base_delay=2.0, jitter=False)
        2.0
        >>> calculate_backoff(1, base_delay=2.0, jitter=False)
        4.0
    """
    delay = base_delay * (exponential_base ** attempt)
    delay = min(delay, max_delay)

    if jitter:
        delay = delay * (0.5 + random.random() * 0.5)

    return delay


def is_retryable_error(
    exception: Exception,
    retryable_exceptions: Tuple[Type[Exception], ...] = ()
) -> bool:
    """
    Determine if an exception should trigger a retry.

    Default retryable conditions:
        - Network timeouts and connection errors
        - HTTP 5xx errors
        - HTTP 429 (rate limit)
    """
    if retryable_exceptions and isinstance(exception, retryable_exceptions):
        return True

    if isinstance(exception, (httpx.TimeoutException, httpx.ConnectError, httpx.RemoteProtocolError)):
        return True

    if isinstance(exception, httpx.HTTPStatusError):
        status_code = exception.response.status_code
        return status_code >= 500 or status_code == 429

    return False


async def retry_async(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    retryable_exceptions: Tuple[Type[Exception], ...] = (),
    logger_instance: Optional[logging.Logger] = None,
    on_retry: Optional[Callable[[int, Exception], None]] = None
) -> T:
    """
    Retry an async function with exponential backoff.

    Args:
        func: Zero-argument async callable to retry
        max_attempts: Maximum attempts (1 = no retries)
        base_delay: Base delay between retries in seconds
        max_delay: Maximum delay cap in seconds
        exponential_base: Base for exponential backoff
        jitter: Add randomization to delays
        retryable_exceptions: Additional exception types to retry
        logger_instance: Logger to use (defaults to module logger)
        on_retry: Called with (attempt_number, exception) before each retry sleep

    Returns:
        Result of successful function call

    Raises:
        RetryError: If all attempts are exhausted on retryable errors
        Exception: The original exception when it is not retryable
    """
    log = logger_instance or logger
    last_exception: Optional[Exception] = None

    for attempt in range(max_attempts):
        try:
            result = await func()

            if attempt > 0:
                log.info(f"Succeeded after {attempt + 1} attempts")

            return result

        except Exception as e:
            last_exception = e

            if not is_retryable_error(e, retryable_exceptions):
                log.warning(f"Non-retryable error: {e}")
                raise

            if attempt + 1 >= max_attempts:
                log.error(
                    f"All {max_attempts} retry attempts exhausted. "
                    f"Last error: {e}"
                )
                raise RetryError(
                    f"Failed after {max_attempts} attempts: {e}",
                    last_exception=e,
                    attempts=max_attempts
                ) from e

            delay = calculate_backoff(
                attempt=attempt,
                base_delay=base_delay,
                max_delay=max_delay,
                exponential_base=exponential_base,
                jitter=jitter
            )

            log.warning(
                f"Attempt {attempt + 1}/{max_attempts} failed: {e}. "
                f"Retrying in {delay:.2f}s..."
            )

            if on_retry:
                on_retry(attempt + 1, e)

            await asyncio.sleep(delay)

    raise RetryError(
        f"Failed after {max_attempts} attempts",
        last_exception=last_exception,
        attempts=max_attempts
    )
