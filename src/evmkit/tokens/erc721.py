"""ERC721 non-fungible token facade."""

from __future__ import annotations

from typing import Any

from ..types import SignedTx
from .abis import ERC721_ABI
from .base import TokenContract


class ERC721(TokenContract):
    abi = ERC721_ABI

    def name(self) -> str:
        return self._read_cached("name")

    def symbol(self) -> str:
        return self._read_cached("symbol")

    def total_supply(self) -> int:
        return int(self._read("totalSupply"))

    def owner_of(self, token_id: int) -> str:
        return self._read("ownerOf", token_id)

    def balance_of(self, owner: str) -> int:
        return int(self._read("balanceOf", owner))

    def token_uri(self, token_id: int) -> str:
        return self._read("tokenURI", token_id)

    def get_approved(self, token_id: int) -> str:
        return self._read("getApproved", token_id)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return bool(self._read("isApprovedForAll", owner, operator))

    def transfer(self, to: str, token_id: int, **kwargs: Any) -> SignedTx:
        return self._send("transfer", to, token_id, **kwargs)

    def transfer_from(self, from_address: str, to: str, token_id: int, **kwargs: Any) -> SignedTx:
        return self._send("transferFrom", from_address, to, token_id, **kwargs)

    def approve(self, approved: str, token_id: int, **kwargs: Any) -> SignedTx:
        return self._send("approve", approved, token_id, **kwargs)

    def set_approval_for_all(self, operator: str, approved: bool, **kwargs: Any) -> SignedTx:
        return self._send("setApprovalForAll", operator, approved, **kwargs)

    def safe_transfer_from(
        self,
        to: str,
        token_id: int,
        from_address: str | None = None,
        **kwargs: Any,
    ) -> SignedTx:
        """Call ``safeTransferFrom(to, id)`` or, with ``from_address``, ``safeTransferFrom(from, to, id)``."""

        if from_address is None:
            return self._send("safeTransferFrom", to, token_id, **kwargs)
        return self._send("safeTransferFrom", from_address, to, token_id, **kwargs)
