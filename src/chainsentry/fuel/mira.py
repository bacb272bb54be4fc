"""Mira DEX integration on Fuel.

Route discovery goes through the Mira HTTP API; swap transactions are built
by a ``MiraAmm`` backend and sent through the ``FuelWallet``.
API: https://prod.api.mira.ly
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

import httpx

from chainsentry.fuel.provider import FuelProvider
from chainsentry.fuel.wallet import FuelWallet
from chainsentry.metrics.instrumented import InstrumentedClient

logger = logging.getLogger(__name__)

MIRA_API_URL = "https://prod.api.mira.ly"

# Blocks after the current height before a swap expires
DEADLINE_BLOCKS = 1000

# (asset_0, asset_1, is_stable) as returned by /find_route
PathStep = tuple[str, str, bool]


class SwapKind(str, Enum):
    """Which side of the trade is fixed."""

    EXACT_INPUT = "ExactInput"
    EXACT_OUTPUT = "ExactOutput"


class UnsupportedSwapKindError(ValueError):
    """Raised for a swap kind Mira does not support."""

    pass


@dataclass
class BestRoute:
    """Best route for a trade. An empty path means no route exists."""

    path: list[PathStep] = field(default_factory=list)
    input_amount: str = "0"
    output_amount: str = "0"

    @property
    def found(self) -> bool:
        return bool(self.path)


@dataclass(frozen=True)
class PoolId:
    """Mira pool identifier."""

    asset_0: str
    asset_1: str
    is_stable: bool

    @classmethod
    def from_step(cls, step: PathStep) -> "PoolId":
        return cls(asset_0=f"0x{step[0]}", asset_1=f"0x{step[1]}", is_stable=bool(step[2]))


@dataclass(frozen=True)
class TxParams:
    """Gas settings applied to swap transactions."""

    gas_limit: int = 999_999
    max_fee: int = 99_999


class MiraAmm(ABC):
    """Builds Mira swap transaction requests."""

    @abstractmethod
    async def swap_exact_output(
        self,
        amount_out: int,
        asset_out: str,
        amount_in_max: int,
        pools: list[PoolId],
        deadline: int,
        tx_params: TxParams,
    ) -> Any:
        pass

    @abstractmethod
    async def swap_exact_input(
        self,
        amount_in: int,
        asset_in: str,
        amount_out_min: int,
        pools: list[PoolId],
        deadline: int,
        tx_params: TxParams,
    ) -> Any:
        pass


class MiraAPIService(InstrumentedClient):
    """Finds routes through the Mira API and executes swaps."""

    error_metric = "mira_route_request_error_count"
    error_metric_help = "Counts the number of failed Mira route requests"

    HEADERS = {
        "accept": "*/*",
        "accept-language": "en-US,en;q=0.9",
        "content-type": "application/json",
    }

    ROUTE_RETRIES = 3
    ROUTE_RETRY_DELAY = 10.0

    def __init__(
        self,
        provider: FuelProvider,
        wallet: FuelWallet,
        amm: MiraAmm,
        base_url: str = MIRA_API_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        self.provider = provider
        self.wallet = wallet
        self.amm = amm
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.tx_params = TxParams()
        self._transport = transport

    async def _find_route(self, data: dict) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self.base_url}/find_route", json=data, headers=self.HEADERS
            )
            # 404 means there is no route for the pair
            if response.status_code == 404:
                return {"path": [], "input_amount": "0", "output_amount": "0"}
            response.raise_for_status()
            return response.json()

    async def get_best_route(
        self,
        input_asset: str,
        output_asset: str,
        amount: int,
        trade_type: Union[SwapKind, str] = SwapKind.EXACT_OUTPUT,
    ) -> BestRoute:
        """Ask the Mira API for the best route.

        Args:
            input_asset: Asset id being sold
            output_asset: Asset id being bought
            amount: Raw amount of the fixed side of the trade
            trade_type: ExactInput or ExactOutput

        Returns:
            BestRoute (empty path when no route exists)

        Raises:
            RetryError: If every attempt failed
        """
        data = {
            "input": input_asset,
            "output": output_asset,
            "amount": amount,
            "trade_type": SwapKind(trade_type).value,
        }

        outcome = await self._call(
            lambda: self._find_route(data),
            self.ROUTE_RETRIES,
            self.ROUTE_RETRY_DELAY,
            description=f"find_route {input_asset} -> {output_asset}",
        )

        result = outcome.value
        return BestRoute(
            path=[tuple(step) for step in result.get("path", [])],
            input_amount=str(result.get("input_amount", "0")),
            output_amount=str(result.get("output_amount", "0")),
        )

    async def future_deadline(self) -> int:
        """Block height after which a swap submitted now is rejected."""
        return await self.provider.get_block_height() + DEADLINE_BLOCKS

    async def swap(
        self,
        input_asset: str,
        output_asset: str,
        amount: int,
        limit: int,
        path: list[PathStep],
        kind: Union[SwapKind, str] = SwapKind.EXACT_OUTPUT,
    ) -> str:
        """Build a swap along ``path`` and send it from the wallet.

        For ExactOutput, ``amount`` is the raw output bought and ``limit`` the
        maximum raw input spent. For ExactInput, ``amount`` is the raw input
        sold and ``limit`` the minimum raw output accepted.

        Returns:
            Transaction id

        Raises:
            UnsupportedSwapKindError: If ``kind`` is not a known swap kind
            RetryError: If sending the transaction failed
        """
        try:
            kind = SwapKind(kind)
        except ValueError:
            raise UnsupportedSwapKindError(f"Unsupported swap kind: {kind}")

        pools = [PoolId.from_step(step) for step in path]
        deadline = await self.future_deadline()

        if kind is SwapKind.EXACT_OUTPUT:
            request = await self.amm.swap_exact_output(
                amount, output_asset, limit, pools, deadline, self.tx_params
            )
        else:
            request = await self.amm.swap_exact_input(
                amount, input_asset, limit, pools, deadline, self.tx_params
            )

        logger.info(f"Swapping {kind.value} {amount} via {len(pools)} pool(s)")
        return await self.wallet.send(request)
