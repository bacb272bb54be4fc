"""Fuel chain integration: node provider, wallet and Mira DEX."""

from chainsentry.fuel.coin import Coin
from chainsentry.fuel.mira import (
    BestRoute,
    MiraAmm,
    MiraAPIService,
    PoolId,
    SwapKind,
    TxParams,
    UnsupportedSwapKindError,
)
from chainsentry.fuel.provider import FuelGraphQLProvider, FuelProvider, FuelProviderError
from chainsentry.fuel.wallet import FuelWallet, WalletBackend

__all__ = [
    "BestRoute",
    "Coin",
    "FuelGraphQLProvider",
    "FuelProvider",
    "FuelProviderError",
    "FuelWallet",
    "MiraAPIService",
    "MiraAmm",
    "PoolId",
    "SwapKind",
    "TxParams",
    "UnsupportedSwapKindError",
    "WalletBackend",
]
