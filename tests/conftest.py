"""Pytest configuration and fixtures."""

import importlib
import os
from types import SimpleNamespace

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["TELEGRAM_BOT_TOKEN"] = ""
os.environ["TELEGRAM_CHAT_ID"] = ""
os.environ["LOG_JSON"] = "false"

from chainsentry.config import get_settings
from chainsentry.metrics import MetricsRegistry

# The package re-exports the retry() function under the same name
retry_module = importlib.import_module("chainsentry.utils.retry")


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Drop cached settings so each test sees its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def registry() -> MetricsRegistry:
    """Fresh, isolated metrics registry."""
    return MetricsRegistry()


@pytest.fixture
def backoff_delays(monkeypatch) -> list[float]:
    """Replace the retry backoff sleep with a recorder.

    Returns the list of requested delays, in order.
    """
    delays: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    monkeypatch.setattr(retry_module, "asyncio", SimpleNamespace(sleep=fake_sleep))
    return delays
