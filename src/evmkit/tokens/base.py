"""Shared plumbing for token contract facades."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..abi import ABILike, pack, unpack
from ..address import require_address
from ..builder import send_contract_method
from ..types import SignedTx

if TYPE_CHECKING:
    from ..account import Account

logger = logging.getLogger(__name__)


class TokenContract:
    """Bind a token address and ABI to an account.

    Reads go through ``eth_call``; writes go through the dynamic-first
    contract method path and return the signed transaction once it is mined.
    """

    abi: ABILike = ()

    def __init__(self, address: str, account: Account):
        self.address = require_address(address, "token")
        self.account = account
        self._metadata: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={self.address})"

    def call(self, method: str, *args: Any) -> tuple[Any, ...]:
        """Execute a read-only ``method`` and return every decoded output."""

        data = pack(self.abi, method, *args)
        output = self.account.only_read_call(self.address, data)
        return unpack(self.abi, method, output, len(args))

    def _read(self, method: str, *args: Any) -> Any:
        values = self.call(method, *args)
        return values[0] if values else None

    def _read_cached(self, method: str) -> Any:
        if method not in self._metadata:
            self._metadata[method] = self._read(method)
        return self._metadata[method]

    def _send(self, method: str, *args: Any, **kwargs: Any) -> SignedTx:
        logger.debug("%s.%s%s", type(self).__name__, method, args)
        return send_contract_method(self.account, self.address, self.abi, method, *args, **kwargs)

    def clear_cache(self) -> None:
        self._metadata.clear()
