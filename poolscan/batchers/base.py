"""
Base classes for blockchain batch calling.

This module provides the shared result types, the retry policy used by
discovery and detail fetching, and the abstract batcher that chunks work
into aggregation-sized pieces.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterator, List, Optional, Sequence, TypeVar

from .errors import ErrorHandler, RateLimitError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CallResult:
    """Outcome of one call inside an aggregation batch."""

    success: bool
    raw: bytes = b""


@dataclass
class BatchResult:
    """
    Ordered results of one aggregation call, one per submitted call.

    Attributes:
        results: Per-call outcomes in submission order
        block_number: Block reported by the aggregation contract, if any
    """

    results: List[CallResult] = field(default_factory=list)
    block_number: Optional[int] = None

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[CallResult]:
        return iter(self.results)

    def __getitem__(self, index):
        return self.results[index]

    @property
    def failed_count(self) -> int:
        return sum(1 for result in self.results if not result.success)


def linear_backoff(base_delay: float, attempt: int) -> float:
    """Delay grows with the attempt number: base, 2*base, 3*base..."""
    return base_delay * attempt


def exponential_backoff(base_delay: float, attempt: int, cap: float = 60.0) -> float:
    """Delay doubles per attempt, capped at 60 seconds by default."""
    return min(base_delay * (2 ** (attempt - 1)), cap)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with backoff for transport-level failures.

    Attributes:
        max_attempts: Total attempts including the first one
        base_delay: Seconds fed to the backoff function
        backoff: Maps (base_delay, attempt number) to a delay in seconds
    """

    max_attempts: int = 5
    base_delay: float = 1.0
    backoff: Callable[[float, int], float] = linear_backoff

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def get_delay(self, attempt: int, error: Optional[Exception] = None) -> float:
        """Delay before the attempt following ``attempt`` (1-based)."""
        delay = self.backoff(self.base_delay, attempt)
        if isinstance(error, RateLimitError) and error.retry_after:
            delay = max(delay, error.retry_after)
        return delay

    async def run(
        self,
        operation: Callable[..., Awaitable[T]],
        *args: Any,
        description: Optional[str] = None,
        error_handler: Optional[ErrorHandler] = None,
        on_retry: Optional[Callable[[int, Exception], None]] = None,
        **kwargs: Any,
    ) -> T:
        """
        Await ``operation`` until it succeeds or the policy gives up.

        Args:
            operation: Coroutine function to call
            description: Name used in log messages
            error_handler: Decides which errors are retryable
            on_retry: Called with (attempt, error) before each retry

        Returns:
            The operation's result

        Raises:
            The last error once attempts are exhausted, or immediately for
            errors the handler does not consider retryable.
        """
        handler = error_handler or ErrorHandler(logger)
        name = description or getattr(operation, "__name__", str(operation))

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation(*args, **kwargs)
            except Exception as e:
                handler.log_error(
                    e,
                    {
                        "attempt": attempt,
                        "max_attempts": self.max_attempts,
                        "operation": name,
                    },
                )

                if not handler.should_retry(e):
                    logger.info(f"Not retrying {name}: {e}")
                    raise

                if attempt >= self.max_attempts:
                    logger.error(f"{name} failed after {attempt} attempts: {e}")
                    raise

                delay = self.get_delay(attempt, e)
                logger.info(
                    f"Retrying {name} in {delay:.1f}s... (attempt {attempt}/{self.max_attempts})"
                )
                if on_retry is not None:
                    on_retry(attempt, e)
                await asyncio.sleep(delay)

        raise RuntimeError("unreachable")  # pragma: no cover


@dataclass
class BatchConfig:
    """Configuration for batch operations."""

    batch_size: int = 100
    max_calls: int = 500
    pacing_seconds: float = 0.0
    retry_policy: Optional[RetryPolicy] = None


class BaseBatcher(ABC):
    """
    Abstract base class for chunked aggregation work.

    Splits a work list into pieces small enough for one aggregation call and
    leaves the per-chunk call to subclasses.
    """

    def __init__(self, config: Optional[BatchConfig] = None):
        self.config = config or BatchConfig()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.error_handler = ErrorHandler(self.logger)

    @abstractmethod
    async def batch_call(self, items: Sequence[Any]) -> Any:
        """
        Execute one aggregation call for a chunk of items.

        Args:
            items: Chunk produced by _chunk

        Returns:
            Chunk result, subclass specific
        """
        pass

    def _chunk(self, items: Sequence[T], chunk_size: Optional[int] = None) -> List[Sequence[T]]:
        """Split items into chunks of chunk_size (defaults to batch_size)."""
        size = chunk_size or self.config.batch_size
        return [items[i : i + size] for i in range(0, len(items), size)]

    async def _retry_operation(self, operation, *args, **kwargs) -> Any:
        """Run operation under the configured retry policy, once if there is none."""
        if self.config.retry_policy is None:
            return await operation(*args, **kwargs)
        return await self.config.retry_policy.run(
            operation, *args, error_handler=self.error_handler, **kwargs
        )
