"""Base class for clients that retry external calls and count failures."""

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from chainsentry.metrics.registry import MetricsRegistry
from chainsentry.utils.retry import RetryError, RetryOutcome, retry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InstrumentedClient:
    """Runs external calls through ``retry()`` and reports terminal failures.

    Subclasses set ``error_metric`` and ``error_metric_help``. After
    ``with_metrics(registry)`` every exhausted retry sequence increments the
    error counter once before the ``RetryError`` is re-raised.
    """

    error_metric: str = ""
    error_metric_help: str = ""

    def __init__(self) -> None:
        self._metrics: Optional[MetricsRegistry] = None

    def with_metrics(self, registry: MetricsRegistry):
        """Attach a registry and register this client's error counter.

        Raises:
            DuplicateMetricError: If the counter is already registered
        """
        registry.register_counter(self.error_metric, self.error_metric_help, {})
        self._metrics = registry
        return self

    async def _call(
        self,
        operation: Callable[[], Awaitable[T]],
        retries: int = 3,
        delay: float = 1.0,
        description: str = "request",
    ) -> RetryOutcome[T]:
        try:
            outcome = await retry(operation, retries, delay)
        except RetryError as e:
            logger.error(
                f"{type(self).__name__} {description} failed after {e.attempts} attempts: "
                f"{e.last_error!r}"
            )
            if self._metrics is not None:
                self._metrics.increment(self.error_metric, {})
            raise

        if outcome.attempts > 1:
            logger.info(
                f"{type(self).__name__} {description} succeeded after {outcome.attempts} attempts"
            )
        return outcome
