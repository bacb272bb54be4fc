"""Aptos indexer result types."""

from dataclasses import dataclass


@dataclass
class CoinInfo:
    """Legacy coin metadata (``coin_infos`` table)."""

    decimals: int
    name: str
    symbol: str
    coin_type: str


@dataclass
class FungibleAssetMetadata:
    """Fungible asset metadata (``fungible_asset_metadata`` table)."""

    asset_type: str
    decimals: int
    name: str
    symbol: str
