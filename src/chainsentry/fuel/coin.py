"""Coin amounts with decimals."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[int, str, Decimal]


@dataclass(frozen=True)
class Coin:
    """A Fuel asset with its display symbol and decimals."""

    id: str
    symbol: str
    decimals: int

    def to_pretty(self, amount: Number) -> Decimal:
        """Convert a raw integer amount to its decimal representation."""
        return Decimal(amount).scaleb(-self.decimals)

    def to_raw_amount(self, decimal_amount: Number) -> int:
        """Convert a decimal amount to the raw integer amount (rounded half up)."""
        raw = Decimal(decimal_amount).scaleb(self.decimals)
        return int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
