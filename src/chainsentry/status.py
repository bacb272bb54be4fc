"""Readiness status reported by ``/healthz``."""

import os
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Optional

from chainsentry import __version__
from chainsentry.config import get_settings


@dataclass
class Status:
    """Readiness of the service."""

    ready: bool
    error: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


class StatusProvider(ABC):
    """Source of the readiness status."""

    @abstractmethod
    async def status(self) -> Status:
        pass


class StaticStatusProvider(StatusProvider):
    """Status toggled by the application as it starts and stops."""

    def __init__(self, ready: bool = False, error: str = ""):
        self._status = Status(ready=ready, error=error)

    def mark_ready(self) -> None:
        self._status = Status(ready=True)

    def mark_not_ready(self, error: Optional[str] = None) -> None:
        self._status = Status(ready=False, error=error or "")

    async def status(self) -> Status:
        return self._status


def app_info() -> dict:
    """Version and process information included in health responses."""
    return {
        "appVersion": __version__,
        "environment": get_settings().environment,
        "processId": os.getpid(),
    }
