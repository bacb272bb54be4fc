"""Aptos indexer integration."""

from chainsentry.aptos.client import AptosIndexer, AptosIndexerError
from chainsentry.aptos.types import CoinInfo, FungibleAssetMetadata

__all__ = ["AptosIndexer", "AptosIndexerError", "CoinInfo", "FungibleAssetMetadata"]
