from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest
from eth_utils import keccak
from hexbytes import HexBytes
from web3.exceptions import TransactionNotFound

from evmkit.account import Account
from evmkit.config import ClientConfig
from evmkit.connections import LedgerConnection

PRIVATE_KEY = "0x8c3083c24062f065ff2ee71b21f665375b266cebffa920e8909ec7c48006725d"
ADDRESS = "0x7161ada3EA6e53E5652A45988DdfF1cE595E09c2"
MNEMONIC = (
    "unaware oxygen allow method allow property predict various slice travel please priority"
)
RECIPIENT = "0x000000000000000000000000000000000000dEaD"
TOKEN = "0x1111111111111111111111111111111111111111"

GWEI = 10**9


class FakeEth:
    """In-memory stand-in for ``web3.eth`` with just enough behaviour for the client."""

    def __init__(
        self,
        *,
        chain_id: int = 1,
        gas_price: int = 10 * GWEI,
        max_priority_fee: int = 1 * GWEI,
        estimate: int | Exception = 21_000,
        nonce: int = 0,
        balance: int = 10**18,
        block_number: int = 100,
    ) -> None:
        self._chain_id: int | Exception = chain_id
        self._gas_price: int | Exception = gas_price
        self._max_priority_fee: int | Exception = max_priority_fee
        self.estimate = estimate
        self.nonce = nonce
        self.balance = balance
        self.balances: dict[str, int | Exception] = {}
        self.block_number = block_number
        self.call_result: bytes | Exception = b""
        self.code: dict[str, bytes] = {}
        self.transactions: dict[str, dict[str, Any]] = {}
        self.blocks: dict[Any, dict[str, Any]] = {}

        self.auto_mine = True
        self.receipt_status = 1
        self.receipts: dict[str, dict[str, Any]] = {}
        self.send_errors: list[Exception] = []
        self.sent: list[bytes] = []
        self.estimate_calls: list[dict[str, Any]] = []
        self.call_calls: list[dict[str, Any]] = []

    # web3 exposes these as properties
    @property
    def chain_id(self) -> int:
        return self._value(self._chain_id)

    @chain_id.setter
    def chain_id(self, value: int | Exception) -> None:
        self._chain_id = value

    @property
    def gas_price(self) -> int:
        return self._value(self._gas_price)

    @gas_price.setter
    def gas_price(self, value: int | Exception) -> None:
        self._gas_price = value

    @property
    def max_priority_fee(self) -> int:
        return self._value(self._max_priority_fee)

    @max_priority_fee.setter
    def max_priority_fee(self, value: int | Exception) -> None:
        self._max_priority_fee = value

    @staticmethod
    def _value(value: Any) -> Any:
        if isinstance(value, Exception):
            raise value
        return value

    def get_balance(self, address: str, block: str = "latest") -> int:
        return self._value(self.balances.get(address, self.balance))

    def get_transaction_count(self, address: str, block: str = "latest") -> int:
        return self._value(self.nonce)

    def estimate_gas(self, tx: dict[str, Any]) -> int:
        self.estimate_calls.append(dict(tx))
        return self._value(self.estimate)

    def call(self, tx: dict[str, Any]) -> bytes:
        self.call_calls.append(dict(tx))
        return HexBytes(self._value(self.call_result))

    def get_code(self, address: str) -> bytes:
        return HexBytes(self.code.get(address, b""))

    def get_block(self, identifier: Any, full_transactions: bool = False) -> dict[str, Any]:
        if identifier in self.blocks:
            return self.blocks[identifier]
        return {"number": self.block_number, "hash": HexBytes(b"\x01" * 32)}

    def send_raw_transaction(self, raw: bytes) -> HexBytes:
        if self.send_errors:
            raise self.send_errors.pop(0)
        raw = bytes(raw)
        self.sent.append(raw)
        tx_hash = HexBytes(keccak(raw))
        if self.auto_mine:
            self.mine(tx_hash.to_0x_hex())
        return tx_hash

    def mine(self, tx_hash: str, status: int | None = None, block_number: int | None = None) -> None:
        self.receipts[tx_hash] = {
            "transactionHash": HexBytes(tx_hash),
            "status": self.receipt_status if status is None else status,
            "blockNumber": self.block_number if block_number is None else block_number,
            "gasUsed": 21_000,
            "effectiveGasPrice": 12 * GWEI,
            "contractAddress": None,
            "logs": [],
        }

    def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any]:
        if tx_hash not in self.receipts:
            raise TransactionNotFound(f"Transaction with hash {tx_hash} not found")
        return self.receipts[tx_hash]

    def get_transaction(self, tx_hash: str) -> dict[str, Any]:
        if tx_hash not in self.transactions:
            raise TransactionNotFound(f"Transaction with hash {tx_hash} not found")
        return self.transactions[tx_hash]


def make_account(
    fake_eth: FakeEth,
    *,
    config: ClientConfig | None = None,
    private_key: str = PRIVATE_KEY,
) -> Account:
    web3 = SimpleNamespace(eth=fake_eth, is_connected=lambda: True)
    connection = LedgerConnection.from_web3(web3, endpoint="http://fake-rpc")
    return Account.from_private_key(private_key, config or ClientConfig(), connection=connection)


@pytest.fixture
def fake_eth() -> FakeEth:
    return FakeEth()


@pytest.fixture
def account(fake_eth: FakeEth) -> Account:
    return make_account(fake_eth)
