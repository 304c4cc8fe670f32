"""Retry strategies with linear backoff for transient failures.

Image URL resolution retries network hiccups but never permanent errors
(missing object, no permission). The strategy decides *whether* and *how long
to wait*; ``RetryContext`` runs the attempts.

Example:
    >>> from bootpedia.core.retry import LinearBackoff
    >>> strategy = LinearBackoff(max_attempts=3, base_delay=1.0, increment=1.0)
    >>> [strategy.next_delay(attempt) for attempt in (1, 2)]
    [1.0, 2.0]
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar

from bootpedia.core.timestamps import utc_now

T = TypeVar("T")


def is_retryable(error: Exception) -> bool:
    """Default retry predicate: honour a ``retryable`` flag when present."""
    return bool(getattr(error, "retryable", False))


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    @abstractmethod
    def next_delay(self, attempt: int) -> float:
        """Delay before the attempt that follows failed attempt ``attempt``.

        Args:
            attempt: One-based number of the attempt that just failed
        """
        ...

    @abstractmethod
    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        """Whether another attempt may follow failed attempt ``attempt``."""
        ...


@dataclass
class LinearBackoff(RetryStrategy):
    """Linear backoff: ``delay = base_delay + increment * (attempt - 1)``.

    With the defaults the waits are 1s, 2s, ... i.e. ``attempt * 1 second``.

    Attributes:
        max_attempts: Total attempts, the first one included
        base_delay: Delay after the first failure (seconds)
        increment: Added per further failure (seconds)
        max_delay: Cap on a single delay (seconds)
        retry_on: Predicate selecting retryable errors
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    increment: float = 1.0
    max_delay: float = 30.0
    retry_on: Callable[[Exception], bool] = is_retryable

    def next_delay(self, attempt: int) -> float:
        return min(self.base_delay + self.increment * (attempt - 1), self.max_delay)

    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        if attempt >= self.max_attempts:
            return False
        if error is not None:
            return self.retry_on(error)
        return True


@dataclass
class NoRetry(RetryStrategy):
    """No retry - fail immediately."""

    def next_delay(self, attempt: int) -> float:
        return 0.0

    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        return False


@dataclass
class RetryContext:
    """Runs an async callable under a strategy and records each failure.

    Example:
        >>> ctx = RetryContext(LinearBackoff(max_attempts=3))
        >>> url = await ctx.run_async(blob_store.resolve_url, "tutorials/a.png")
    """

    strategy: RetryStrategy
    on_retry: Callable[[int, Exception, float], None] | None = None
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    attempt: int = field(default=0, init=False)
    last_error: Exception | None = field(default=None, init=False)
    errors: list[tuple[int, Exception, datetime]] = field(default_factory=list, init=False)

    @property
    def attempts(self) -> int:
        """Number of attempts made."""
        return self.attempt

    async def run_async(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Execute ``func`` until it succeeds or the strategy gives up.

        Raises:
            The last exception once no further attempt is allowed.
        """
        while True:
            self.attempt += 1
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                self.last_error = e
                self.errors.append((self.attempt, e, utc_now()))

                if not self.strategy.should_retry(self.attempt, e):
                    raise

                delay = self.strategy.next_delay(self.attempt)

                if self.on_retry:
                    self.on_retry(self.attempt, e, delay)

                await self.sleep(delay)


__all__ = ["LinearBackoff", "NoRetry", "RetryContext", "RetryStrategy", "is_retryable"]
