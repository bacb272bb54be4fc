"""Fuel wallet with retried reads and sends.

Signing and submission are done by a ``WalletBackend``; this module only
adds retries and failure accounting around it. Backends never expose the
private key.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from chainsentry.fuel.provider import FuelProvider
from chainsentry.metrics.instrumented import InstrumentedClient

logger = logging.getLogger(__name__)


class WalletBackend(ABC):
    """Signs and submits Fuel transactions for one account."""

    @property
    @abstractmethod
    def address(self) -> str:
        """Account address (0x-prefixed hex)."""
        pass

    @abstractmethod
    async def send_transaction(self, request: Any) -> str:
        """Sign and submit ``request``, wait for its result and return the tx id."""
        pass


class FuelWallet(InstrumentedClient):
    """Retrying wrapper around a wallet backend."""

    error_metric = "fuel_wallet_request_error_count"
    error_metric_help = "Counts the number of failed Fuel wallet requests"

    # (attempts, base delay in seconds)
    BALANCE_RETRY = (3, 1.0)
    SEND_RETRY = (2, 20.0)

    def __init__(self, backend: WalletBackend, provider: FuelProvider):
        super().__init__()
        self.backend = backend
        self.provider = provider

    @property
    def address(self) -> str:
        return self.backend.address

    async def get_balance(self, asset_id: str) -> int:
        """Raw balance of ``asset_id`` held by this wallet.

        Raises:
            RetryError: If every attempt failed
        """
        outcome = await self._call(
            lambda: self.provider.get_balance(self.address, asset_id),
            *self.BALANCE_RETRY,
            description=f"balance of {asset_id}",
        )
        return outcome.value

    async def send(self, request: Any) -> str:
        """Send a transaction and wait for it to be included.

        Returns:
            Transaction id

        Raises:
            RetryError: If every attempt failed
        """
        outcome = await self._call(
            lambda: self.backend.send_transaction(request),
            *self.SEND_RETRY,
            description="transaction send",
        )
        logger.info(f"Transaction {outcome.value} sent from {self.address}")
        return outcome.value
