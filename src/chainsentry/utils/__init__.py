"""Utility modules for chainsentry."""

from chainsentry.utils.retry import (
    ConfigurationError,
    RetryError,
    RetryOutcome,
    retry,
    with_retry,
)

__all__ = ["ConfigurationError", "RetryError", "RetryOutcome", "retry", "with_retry"]
