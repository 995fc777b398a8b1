"""ERC1155 multi-token facade."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..exceptions import ValidationError
from ..types import SignedTx
from .abis import ERC1155_ABI
from .base import TokenContract


def _require_same_length(ids: Sequence[Any], other: Sequence[Any], field: str) -> None:
    if len(ids) != len(other):
        raise ValidationError(
            f"ids and {field} must have the same length",
            field=field,
            details={"ids": len(ids), field: len(other)},
        )


class ERC1155(TokenContract):
    """Multi-token contract; ``data`` arguments default to empty bytes."""

    abi = ERC1155_ABI

    def balance_of(self, account: str, token_id: int) -> int:
        return int(self._read("balanceOf", account, token_id))

    def balance_of_batch(self, accounts: Sequence[str], ids: Sequence[int]) -> list[int]:
        _require_same_length(ids, accounts, "accounts")
        return [int(value) for value in self._read("balanceOfBatch", list(accounts), list(ids))]

    def uri(self, token_id: int) -> str:
        return self._read("uri", token_id)

    def is_approved_for_all(self, account: str, operator: str) -> bool:
        return bool(self._read("isApprovedForAll", account, operator))

    def safe_transfer_from(
        self,
        from_address: str,
        to: str,
        token_id: int,
        amount: int,
        data: bytes = b"",
        **kwargs: Any,
    ) -> SignedTx:
        return self._send("safeTransferFrom", from_address, to, token_id, amount, data, **kwargs)

    def safe_batch_transfer_from(
        self,
        from_address: str,
        to: str,
        ids: Sequence[int],
        amounts: Sequence[int],
        data: bytes = b"",
        **kwargs: Any,
    ) -> SignedTx:
        _require_same_length(ids, amounts, "amounts")
        return self._send(
            "safeBatchTransferFrom", from_address, to, list(ids), list(amounts), data, **kwargs
        )

    def set_approval_for_all(self, operator: str, approved: bool, **kwargs: Any) -> SignedTx:
        return self._send("setApprovalForAll", operator, approved, **kwargs)

    def mint(self, to: str, token_id: int, amount: int, data: bytes = b"", **kwargs: Any) -> SignedTx:
        return self._send("mint", to, token_id, amount, data, **kwargs)

    def mint_batch(
        self,
        to: str,
        ids: Sequence[int],
        amounts: Sequence[int],
        data: bytes = b"",
        **kwargs: Any,
    ) -> SignedTx:
        _require_same_length(ids, amounts, "amounts")
        return self._send("mintBatch", to, list(ids), list(amounts), data, **kwargs)

    def burn(self, from_address: str, token_id: int, amount: int, **kwargs: Any) -> SignedTx:
        return self._send("burn", from_address, token_id, amount, **kwargs)

    def burn_batch(
        self,
        from_address: str,
        ids: Sequence[int],
        amounts: Sequence[int],
        **kwargs: Any,
    ) -> SignedTx:
        _require_same_length(ids, amounts, "amounts")
        return self._send("burnBatch", from_address, list(ids), list(amounts), **kwargs)
