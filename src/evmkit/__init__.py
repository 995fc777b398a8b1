"""evmkit - accounts, transactions and token helpers for EVM chains.

This library derives accounts from a mnemonic or private key, queries chain
state over JSON-RPC, builds and signs legacy or EIP-1559 transactions with
automatic fallback, and tracks submitted transactions until they are mined.
"""

from .account import Account
from .address import (
    compare_addresses,
    is_valid_address,
    is_zero_address,
    require_address,
    to_checksum_address,
    truncate_address,
)
from .builder import TransactionBuilder, send_contract_method
from .config import ChainRegistry, ClientConfig, RPCOptions
from .connections import LedgerConnection
from .constants import ZERO_ADDRESS, ChainID, get_network_name
from .exceptions import (
    EVMKitError,
    NetworkError,
    ReceiptTimeoutError,
    SimulationRevertError,
    SubmissionRejectedError,
    TransactionBuildError,
    TransactionFailedError,
    TransactionNotFoundError,
    TransactionPendingError,
    ValidationError,
    WaitCancelledError,
)
from .gas import GasPlanner
from .nonce import NonceSequencer
from .sender import Sender
from .signer import (
    MessageSigner,
    recover_address,
    recover_address_from_message,
    recover_address_from_typed_data,
)
from .tokens import ERC20, ERC721, ERC1155
from .types import GasParams, GasStrategy, Receipt, ReceiptStatus, SignedTx, TxType
from .utils import format_ether, from_decimals, parse_ether, to_decimals, to_decimals_str

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "Account",
    "LedgerConnection",
    "GasPlanner",
    "NonceSequencer",
    "TransactionBuilder",
    "Sender",
    "MessageSigner",
    # Configuration
    "ClientConfig",
    "RPCOptions",
    "ChainRegistry",
    "ChainID",
    "ZERO_ADDRESS",
    "get_network_name",
    # Types
    "GasParams",
    "GasStrategy",
    "SignedTx",
    "Receipt",
    "ReceiptStatus",
    "TxType",
    # Tokens
    "ERC20",
    "ERC721",
    "ERC1155",
    # Exceptions
    "EVMKitError",
    "ValidationError",
    "NetworkError",
    "SimulationRevertError",
    "TransactionBuildError",
    "SubmissionRejectedError",
    "TransactionFailedError",
    "ReceiptTimeoutError",
    "WaitCancelledError",
    "TransactionNotFoundError",
    "TransactionPendingError",
    # Utility functions
    "send_contract_method",
    "recover_address",
    "recover_address_from_message",
    "recover_address_from_typed_data",
    "is_valid_address",
    "is_zero_address",
    "require_address",
    "to_checksum_address",
    "truncate_address",
    "compare_addresses",
    "to_decimals",
    "to_decimals_str",
    "from_decimals",
    "format_ether",
    "parse_ether",
]
