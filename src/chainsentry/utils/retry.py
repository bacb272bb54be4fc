"""Retry executor for fallible async operations.

Every external call in the service (indexer queries, route lookups, wallet
sends, notifications) goes through ``retry()``. Attempts run one after
another with a linear backoff of ``delay * attempt`` seconds between them.
"""

import asyncio
from dataclasses import dataclass
from functools import wraps
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[Any]]


class ConfigurationError(ValueError):
    """Raised when retry parameters are invalid. No attempt is made."""

    pass


class RetryError(Exception):
    """Raised when every attempt of a retried operation has failed.

    Attributes:
        attempts: Number of attempts made (equals the retry budget)
        last_error: Exception raised by the final attempt
    """

    def __init__(self, message: str, attempts: int, last_error: BaseException):
        super().__init__(message)
        self.message = message
        self.attempts = attempts
        self.last_error = last_error

    def __str__(self) -> str:
        return f"{self.message} Last error: {self.last_error!r}"


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Successful result of a retried operation."""

    value: T
    attempts: int


async def retry(
    operation: Callable[[], Awaitable[T]],
    retries: int = 3,
    delay: float = 1.0,
    *,
    sleep: Optional[SleepFunc] = None,
) -> RetryOutcome[T]:
    """Run ``operation`` until it succeeds or the retry budget is spent.

    Args:
        operation: Zero-argument callable returning an awaitable
        retries: Total number of attempts (must be at least 1)
        delay: Base backoff in seconds; the wait after attempt N is delay * N
        sleep: Coroutine used for the backoff wait (asyncio.sleep by default)

    Returns:
        RetryOutcome with the value and the 1-based attempt that produced it

    Raises:
        ConfigurationError: If retries < 1 or delay < 0
        RetryError: If all attempts failed
    """
    if retries < 1:
        raise ConfigurationError("The number of retries must be at least 1.")
    if delay < 0:
        raise ConfigurationError("The retry delay must not be negative.")
    if sleep is None:
        sleep = asyncio.sleep

    attempts = 0
    while True:
        attempts += 1
        try:
            value = await operation()
        except Exception as e:
            if attempts >= retries:
                raise RetryError(
                    f"Maximum retries reached ({retries}).", attempts, e
                ) from e
            await sleep(delay * attempts)
        else:
            return RetryOutcome(value=value, attempts=attempts)


def with_retry(
    retries: int = 3, delay: float = 1.0
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator running each call of an async function through ``retry()``.

    The decorated function returns the plain value; the attempt count is
    discarded.
    """
    if retries < 1:
        raise ConfigurationError("The number of retries must be at least 1.")
    if delay < 0:
        raise ConfigurationError("The retry delay must not be negative.")

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            outcome = await retry(lambda: func(*args, **kwargs), retries, delay)
            return outcome.value

        return wrapper

    return decorator
