"""Aptos indexer client.

Queries coin and fungible asset metadata from the Aptos GraphQL indexer.
API Docs: https://aptos.dev/en/build/indexer
"""

import logging
from typing import Any, Optional

import httpx

from chainsentry.aptos.types import CoinInfo, FungibleAssetMetadata
from chainsentry.metrics.instrumented import InstrumentedClient

logger = logging.getLogger(__name__)

APTOS_INDEXER_MAINNET = "https://api.mainnet.aptoslabs.com/v1/graphql"

# Native APT is not listed in fungible_asset_metadata under its short address
APT_ASSET_TYPE = "0xa"
APT_METADATA = FungibleAssetMetadata(
    asset_type=APT_ASSET_TYPE, decimals=8, name="Aptos", symbol="APT"
)

# Bridged tokens whose on-chain names are ambiguous
OVERRIDDEN_TOKEN_NAMES = {
    "0x5e156f1207d0ebfa19a9eeff00d62a282278fb8719f4fab3a586a0a2c0fffbea::coin::T": "wUSDC",
    "0xcc8a89c8dce9693d354449f1f73e60e14e347417854f029db5bc8e7454008abb::coin::T": "zWETH",
}

COIN_INFO_QUERY = """
query CoinInfo($coinAddresses: [String!]!) {
  coin_infos(where: { coin_type: { _in: $coinAddresses } }) {
    decimals
    name
    symbol
    coin_type
  }
}
"""

FUNGIBLE_ASSET_METADATA_QUERY = """
query FungibleAssetMetadata($assetTypes: [String!]!) {
  fungible_asset_metadata(where: { asset_type: { _in: $assetTypes } }) {
    asset_type
    decimals
    name
    symbol
  }
}
"""


class AptosIndexerError(Exception):
    """Raised when the indexer answers with GraphQL errors."""

    pass


class AptosIndexer(InstrumentedClient):
    """Client for the Aptos GraphQL indexer."""

    error_metric = "aptos_blockchain_request_error_count"
    error_metric_help = "Counts the number of failed requests to the Aptos blockchain"

    def __init__(
        self,
        indexer_url: str = APTOS_INDEXER_MAINNET,
        timeout: float = 10.0,
        retries: int = 3,
        retry_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the indexer client.

        Args:
            indexer_url: GraphQL endpoint
            timeout: Per-request timeout in seconds
            retries: Attempts per query
            retry_delay: Base backoff between attempts in seconds
            transport: Optional httpx transport (used by tests)
        """
        super().__init__()
        self.indexer_url = indexer_url
        self.timeout = timeout
        self.retries = retries
        self.retry_delay = retry_delay
        self._transport = transport

    async def _query(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                self.indexer_url,
                json={"query": query, "variables": variables},
            )
            response.raise_for_status()
            payload = response.json()

        if payload.get("errors"):
            raise AptosIndexerError(f"Indexer returned errors: {payload['errors']}")
        return payload.get("data") or {}

    async def get_coin_info(self, coin_types: list[str]) -> list[CoinInfo]:
        """Fetch metadata for coins in a single request.

        Args:
            coin_types: Coin types as ``<account_address>::<module>::<struct>``

        Returns:
            One CoinInfo per coin known to the indexer

        Raises:
            RetryError: If every attempt failed
        """
        outcome = await self._call(
            lambda: self._query(COIN_INFO_QUERY, {"coinAddresses": coin_types}),
            self.retries,
            self.retry_delay,
            description="coin_infos query",
        )

        return [
            CoinInfo(
                decimals=coin["decimals"],
                name=OVERRIDDEN_TOKEN_NAMES.get(coin["coin_type"], coin["name"]),
                symbol=coin["symbol"],
                coin_type=coin["coin_type"],
            )
            for coin in outcome.value.get("coin_infos", [])
        ]

    async def get_fungible_assets(self, asset_types: list[str]) -> list[FungibleAssetMetadata]:
        """Fetch fungible asset metadata in a single request.

        Native APT (``0xa``) is answered locally and placed first.

        Raises:
            RetryError: If every attempt failed
        """
        native = [APT_METADATA for asset in asset_types if asset.lower() == APT_ASSET_TYPE]

        outcome = await self._call(
            lambda: self._query(FUNGIBLE_ASSET_METADATA_QUERY, {"assetTypes": asset_types}),
            self.retries,
            self.retry_delay,
            description="fungible_asset_metadata query",
        )

        return native + [
            FungibleAssetMetadata(
                asset_type=asset["asset_type"],
                decimals=asset["decimals"],
                name=asset["name"],
                symbol=asset["symbol"],
            )
            for asset in outcome.value.get("fungible_asset_metadata", [])
        ]
