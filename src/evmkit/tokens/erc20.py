"""ERC20 fungible token facade."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from ..types import SignedTx
from ..utils import from_decimals, to_decimals_str
from .abis import ERC20_ABI
from .base import TokenContract


class ERC20(TokenContract):
    abi = ERC20_ABI

    # name, symbol and decimals never change for a deployed token
    def name(self) -> str:
        return self._read_cached("name")

    def symbol(self) -> str:
        return self._read_cached("symbol")

    def decimals(self) -> int:
        return int(self._read_cached("decimals"))

    def total_supply(self) -> int:
        return int(self._read("totalSupply"))

    def balance_of(self, owner: str) -> int:
        return int(self._read("balanceOf", owner))

    def allowance(self, owner: str, spender: str) -> int:
        return int(self._read("allowance", owner, spender))

    def transfer(self, to: str, amount: int, **kwargs: Any) -> SignedTx:
        return self._send("transfer", to, amount, **kwargs)

    def transfer_from(self, from_address: str, to: str, amount: int, **kwargs: Any) -> SignedTx:
        return self._send("transferFrom", from_address, to, amount, **kwargs)

    def approve(self, spender: str, amount: int, **kwargs: Any) -> SignedTx:
        return self._send("approve", spender, amount, **kwargs)

    def to_base_units(self, amount: str) -> int:
        """Convert a human readable amount using the token's decimals (truncating)."""
        return to_decimals_str(amount, self.decimals())

    def from_base_units(self, amount: int) -> Decimal:
        return from_decimals(amount, self.decimals())
