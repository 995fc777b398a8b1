"""Type definitions and data models for evmkit."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

from hexbytes import HexBytes

from .exceptions import ValidationError
from .utils import serialise_receipt

Address = str  # 0x-prefixed hex address
Wei = int


class TxType(IntEnum):
    """Transaction envelope types."""

    LEGACY = 0
    DYNAMIC = 2


class GasStrategy(str, Enum):
    """Named gas-price presets relative to the node's suggestion."""

    FAST = "fast"  # 1.5x
    SLOW = "slow"  # 0.8x
    AUTO = "auto"  # max(s, 1.1x)
    STANDARD = "standard"  # as suggested


class ReceiptStatus(IntEnum):
    """Outcome recorded in a mined receipt."""

    FAILED = 0
    SUCCESS = 1


@dataclass(frozen=True)
class GasParams:
    """Resolved gas limit plus exactly one pricing model."""

    gas_limit: int
    gas_price: int | None = None
    max_priority_fee_per_gas: int | None = None
    max_fee_per_gas: int | None = None

    def __post_init__(self) -> None:
        if self.gas_limit <= 0:
            raise ValidationError("Gas limit must be positive", field="gas_limit", value=self.gas_limit)

        legacy = self.gas_price is not None
        dynamic = self.max_priority_fee_per_gas is not None or self.max_fee_per_gas is not None
        if legacy == dynamic:
            raise ValidationError(
                "Exactly one pricing model must be populated",
                field="gas_price",
                details={
                    "gas_price": self.gas_price,
                    "max_priority_fee_per_gas": self.max_priority_fee_per_gas,
                    "max_fee_per_gas": self.max_fee_per_gas,
                },
            )

        if dynamic:
            if self.max_priority_fee_per_gas is None or self.max_fee_per_gas is None:
                raise ValidationError(
                    "Dynamic pricing needs both tip cap and fee cap", field="max_fee_per_gas"
                )
            if self.max_fee_per_gas < self.max_priority_fee_per_gas:
                raise ValidationError(
                    "Fee cap must not be lower than tip cap",
                    field="max_fee_per_gas",
                    value=self.max_fee_per_gas,
                    details={"max_priority_fee_per_gas": self.max_priority_fee_per_gas},
                )

    @property
    def is_dynamic(self) -> bool:
        return self.gas_price is None

    @property
    def price_ceiling(self) -> int:
        """Highest per-gas price the sender may pay under this model."""
        if self.gas_price is not None:
            return self.gas_price
        return self.max_fee_per_gas or 0

    def as_tx_fields(self) -> dict[str, int]:
        """Return the pricing fields in web3 transaction-dict naming."""
        if self.gas_price is not None:
            return {"gas": self.gas_limit, "gasPrice": self.gas_price}
        return {
            "gas": self.gas_limit,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas or 0,
            "maxFeePerGas": self.max_fee_per_gas or 0,
        }


@dataclass(frozen=True)
class SignedTx:
    """Immutable signed transaction with the fields it was built from."""

    tx_type: TxType
    nonce: int
    to: Address | None
    value: int
    data: bytes
    gas: int
    chain_id: int
    raw_transaction: HexBytes
    hash: HexBytes
    gas_price: int | None = None
    max_priority_fee_per_gas: int | None = None
    max_fee_per_gas: int | None = None

    @property
    def hash_hex(self) -> str:
        return self.hash.to_0x_hex()

    @property
    def is_contract_creation(self) -> bool:
        return self.to is None

    @property
    def gas_params(self) -> GasParams:
        return GasParams(
            gas_limit=self.gas,
            gas_price=self.gas_price,
            max_priority_fee_per_gas=self.max_priority_fee_per_gas,
            max_fee_per_gas=self.max_fee_per_gas,
        )

    @property
    def price_ceiling(self) -> int:
        return self.gas_params.price_ceiling


@dataclass(frozen=True)
class Receipt:
    """Outcome of a mined transaction."""

    status: ReceiptStatus
    block_number: int
    gas_used: int
    transaction_hash: str | None = None
    effective_gas_price: int | None = None
    contract_address: Address | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.status == ReceiptStatus.SUCCESS

    @classmethod
    def from_web3(cls, receipt: Mapping[str, Any]) -> "Receipt":
        """Construct a receipt from a web3 ``TxReceipt`` mapping."""

        tx_hash = receipt.get("transactionHash")
        if isinstance(tx_hash, bytes | bytearray):
            tx_hash = HexBytes(tx_hash).to_0x_hex()

        return cls(
            status=ReceiptStatus(1 if int(receipt.get("status", 0) or 0) == 1 else 0),
            block_number=int(receipt.get("blockNumber", 0) or 0),
            gas_used=int(receipt.get("gasUsed", 0) or 0),
            transaction_hash=tx_hash,
            effective_gas_price=receipt.get("effectiveGasPrice"),
            contract_address=receipt.get("contractAddress"),
            raw=serialise_receipt(dict(receipt)),
        )


@dataclass(frozen=True)
class GasSuggestions:
    """Node gas suggestions for both pricing models."""

    gas_price: int
    max_priority_fee_per_gas: int
    max_fee_per_gas: int
