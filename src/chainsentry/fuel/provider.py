"""Fuel node access.

Only the two reads the service needs are modelled: the latest block height
(for swap deadlines) and an owner's balance of one asset.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

FUEL_MAINNET_GRAPHQL = "https://mainnet.fuel.network/v1/graphql"

LATEST_BLOCK_QUERY = """
query LatestBlockHeight {
  chain {
    latestBlock {
      height
    }
  }
}
"""

BALANCE_QUERY = """
query Balance($owner: Address!, $assetId: AssetId!) {
  balance(owner: $owner, assetId: $assetId) {
    amount
  }
}
"""


class FuelProviderError(Exception):
    """Raised when the Fuel node answers with GraphQL errors."""

    pass


class FuelProvider(ABC):
    """Read access to a Fuel node."""

    @abstractmethod
    async def get_block_height(self) -> int:
        """Height of the latest block."""
        pass

    @abstractmethod
    async def get_balance(self, owner: str, asset_id: str) -> int:
        """Raw balance of ``asset_id`` held by ``owner``."""
        pass


class FuelGraphQLProvider(FuelProvider):
    """FuelProvider backed by the node's GraphQL API."""

    def __init__(
        self,
        url: str = FUEL_MAINNET_GRAPHQL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def _query(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                self.url, json={"query": query, "variables": variables or {}}
            )
            response.raise_for_status()
            payload = response.json()

        if payload.get("errors"):
            raise FuelProviderError(f"Fuel node returned errors: {payload['errors']}")
        return payload.get("data") or {}

    async def get_block_height(self) -> int:
        data = await self._query(LATEST_BLOCK_QUERY)
        return int(data["chain"]["latestBlock"]["height"])

    async def get_balance(self, owner: str, asset_id: str) -> int:
        data = await self._query(BALANCE_QUERY, {"owner": owner, "assetId": asset_id})
        balance = data.get("balance") or {}
        return int(balance.get("amount", 0))
