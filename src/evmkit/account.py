"""Accounts: a signing key bound to a ledger connection."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeVar

from eth_account import Account as EthAccount
from eth_account.signers.local import LocalAccount
from eth_keys import keys
from hexbytes import HexBytes
from web3.exceptions import BlockNotFound

from .address import optional_address, require_address, truncate_address
from .builder import TransactionBuilder
from .config import ClientConfig
from .connections import LedgerConnection
from .constants import DERIVATION_PATH_TEMPLATE, get_network_name
from .exceptions import EVMKitError, NetworkError, SimulationRevertError, ValidationError
from .gas import FEE_CAP_MULTIPLIER, DYNAMIC_BUMP_PERCENT, GasPlanner
from .nonce import NonceSequencer
from .sender import Sender
from .signer import MessageSigner
from .types import GasSuggestions, SignedTx
from .utils import format_ether

logger = logging.getLogger(__name__)

T = TypeVar("T")

EthAccount.enable_unaudited_hdwallet_features()


class Account:
    """Own a private key and the ledger connection used to act for it.

    The address is always derived from the key. Build instances with
    :meth:`from_mnemonic` or :meth:`from_private_key`; release the connection
    with :meth:`close` or by using the account as a context manager.
    """

    def __init__(
        self,
        signer: LocalAccount,
        connection: LedgerConnection,
        config: ClientConfig | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._signer = signer
        self._connection = connection
        self._message_signer = MessageSigner(signer)
        self._gas = GasPlanner(self)
        self._nonce_sequencer = NonceSequencer(self) if self.config.nonce_sequencer else None
        self._builder = TransactionBuilder(self, self._gas)
        self._sender = Sender(self, self._builder)
        self.chain_id = self._discover_chain_id()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_mnemonic(
        cls,
        mnemonic: str,
        index: int = 0,
        config: ClientConfig | None = None,
        *,
        connection: LedgerConnection | None = None,
    ) -> Account:
        """Derive the key at ``m/44'/60'/0'/0/{index}`` (negative indexes clamp to 0)."""

        if not mnemonic or not mnemonic.strip():
            raise ValidationError("Mnemonic cannot be empty", field="mnemonic")
        index = max(index, 0)
        path = DERIVATION_PATH_TEMPLATE.format(index=index)

        try:
            signer = EthAccount.from_mnemonic(mnemonic.strip(), account_path=path)
        except Exception as exc:
            raise ValidationError(
                "Invalid mnemonic", field="mnemonic", details={"error": str(exc)}
            ) from exc

        logger.debug("Derived account %s at %s", signer.address, path)
        config = config or ClientConfig()
        return cls(signer, connection or _open_connection(config), config)

    @classmethod
    def from_private_key(
        cls,
        hex_key: str,
        config: ClientConfig | None = None,
        *,
        connection: LedgerConnection | None = None,
    ) -> Account:
        """Import a hex private key, with or without ``0x``."""

        if not hex_key or not hex_key.strip():
            raise ValidationError("Private key cannot be empty", field="private_key")
        key = hex_key.strip()
        if key.startswith(("0x", "0X")):
            key = key[2:]

        try:
            signer = EthAccount.from_key(bytes.fromhex(key))
        except Exception as exc:
            raise ValidationError(
                "Invalid private key", field="private_key", details={"error": str(exc)}
            ) from exc

        config = config or ClientConfig()
        return cls(signer, connection or _open_connection(config), config)

    # ------------------------------------------------------------------
    # Identity and lifecycle
    # ------------------------------------------------------------------
    @property
    def address(self) -> str:
        return self._signer.address

    @property
    def private_key_hex(self) -> str:
        return HexBytes(self._signer.key).to_0x_hex()

    @property
    def public_key_hex(self) -> str:
        return keys.PrivateKey(bytes(self._signer.key)).public_key.to_hex()

    @property
    def local_account(self) -> LocalAccount:
        return self._signer

    @property
    def connection(self) -> LedgerConnection:
        return self._connection

    @property
    def eth(self) -> Any:
        return self._connection.eth

    @property
    def gas(self) -> GasPlanner:
        return self._gas

    @property
    def builder(self) -> TransactionBuilder:
        return self._builder

    @property
    def sender(self) -> Sender:
        return self._sender

    @property
    def signer(self) -> MessageSigner:
        return self._message_signer

    @property
    def nonce_sequencer(self) -> NonceSequencer | None:
        return self._nonce_sequencer

    def close(self) -> None:
        self._connection.disconnect()

    def is_connected(self) -> bool:
        if not self._connection.is_connected():
            return False
        try:
            self.eth.chain_id
        except Exception:
            return False
        return True

    def __enter__(self) -> Account:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Account(address={self.address}, chain_id={self.chain_id})"

    # ------------------------------------------------------------------
    # Balance and nonce queries
    # ------------------------------------------------------------------
    def balance(self, address: str) -> int:
        checked = require_address(address)
        return self._query("get_balance", lambda: self.eth.get_balance(checked, "latest"), checked)

    def eth_balance(self) -> int:
        return self.balance(self.address)

    def has_enough_balance(self, amount: int | None) -> bool:
        if amount is None or amount <= 0:
            return True
        return self.eth_balance() >= amount

    def batch_get_balances(self, addresses: Sequence[str]) -> dict[str, int | None]:
        """Balances keyed by input address; invalid or failing entries map to None."""
        return self._batch("balances", addresses, self.balance)

    def nonce(self, address: str) -> int:
        """Pending-view transaction count for ``address``."""
        checked = require_address(address)
        return self._query(
            "get_transaction_count",
            lambda: self.eth.get_transaction_count(checked, "pending"),
            checked,
        )

    def batch_get_nonces(self, addresses: Sequence[str]) -> dict[str, int | None]:
        return self._batch("nonces", addresses, self.nonce)

    def next_nonce(self) -> int:
        """Nonce for the next build: from the sequencer when enabled, else the pending view."""
        if self._nonce_sequencer is not None:
            return self._nonce_sequencer.reserve()
        return self.nonce(self.address)

    # ------------------------------------------------------------------
    # Gas queries
    # ------------------------------------------------------------------
    def suggest_gas_price(self) -> int:
        return self._query("gas_price", lambda: self.eth.gas_price)

    def suggest_gas_tip_cap(self) -> int:
        return self._query("max_priority_fee", lambda: self.eth.max_priority_fee)

    def suggest_gas_fee_cap(self) -> int:
        return self.suggest_gas_price() * FEE_CAP_MULTIPLIER

    def gas_suggestions(self) -> GasSuggestions:
        gas_price = self.suggest_gas_price()
        return GasSuggestions(
            gas_price=gas_price,
            max_priority_fee_per_gas=self.suggest_gas_tip_cap(),
            max_fee_per_gas=gas_price * FEE_CAP_MULTIPLIER,
        )

    def dynamic_gas_price(self) -> int:
        """Suggested gas price plus 10%."""
        return self.suggest_gas_price() * DYNAMIC_BUMP_PERCENT // 100

    def estimate_gas(
        self,
        from_address: str | None,
        to: str | None,
        value: int = 0,
        data: bytes = b"",
    ) -> int:
        """Estimate gas for a call; this is the main preflight revert signal.

        Raises:
            ValidationError: for malformed addresses
            SimulationRevertError: when the node refuses the estimate
            NetworkError: when the node cannot be reached
        """

        tx = self._call_params(from_address, to, value, data)
        return self._simulate("estimate_gas", lambda: self.eth.estimate_gas(tx), tx.get("to"))

    # ------------------------------------------------------------------
    # Read calls
    # ------------------------------------------------------------------
    def only_read_call(self, to: str, data: bytes) -> bytes:
        """Execute ``eth_call`` against ``to`` without sending a transaction."""

        checked = require_address(to, "contract")
        call = {"to": checked, "data": HexBytes(data).to_0x_hex()}
        result = self._simulate("call", lambda: self.eth.call(call), checked)
        return bytes(result)

    def call(
        self,
        from_address: str | None,
        to: str | None,
        value: int = 0,
        data: bytes = b"",
    ) -> bytes:
        tx = self._call_params(from_address, to, value, data)
        return bytes(self._simulate("call", lambda: self.eth.call(tx), tx.get("to")))

    # ------------------------------------------------------------------
    # Block and network queries
    # ------------------------------------------------------------------
    def latest_block_number(self) -> int:
        return self._query("block_number", lambda: self.eth.block_number)

    def get_block(self, block: int | str = "latest", full_transactions: bool = False) -> Any:
        return self._fetch_block(block, full_transactions)

    def get_block_by_hash(self, block_hash: bytes | str, full_transactions: bool = False) -> Any:
        try:
            identifier = HexBytes(block_hash)
        except ValueError as exc:
            raise ValidationError("Invalid block hash", field="block_hash", value=block_hash) from exc
        if len(identifier) != 32:
            raise ValidationError("Block hash must be 32 bytes", field="block_hash", value=block_hash)
        return self._fetch_block(identifier.to_0x_hex(), full_transactions)

    def get_code(self, address: str) -> bytes:
        checked = require_address(address)
        return bytes(self._query("get_code", lambda: self.eth.get_code(checked), checked))

    def is_contract_address(self, address: str) -> bool:
        return len(self.get_code(address)) > 0

    def network_info(self) -> tuple[int, str]:
        """Return ``(chain_id, network_name)``, re-querying when the id is unknown."""

        chain_id = self.chain_id
        if not chain_id:
            chain_id = self._query("chain_id", lambda: self.eth.chain_id)
            self.chain_id = chain_id
        return chain_id, get_network_name(chain_id)

    def network_status(self) -> dict[str, Any]:
        chain_id, network_name = self.network_info()
        status: dict[str, Any] = {
            "latest_block": self.latest_block_number(),
            "chain_id": chain_id,
            "network_name": network_name,
        }
        try:
            suggestions = self.gas_suggestions()
        except EVMKitError as exc:
            status["gas_error"] = exc.message
        else:
            status["gas_price"] = suggestions.gas_price
            status["gas_tip_cap"] = suggestions.max_priority_fee_per_gas
            status["gas_fee_cap"] = suggestions.max_fee_per_gas
        status["connected"] = self.is_connected()
        return status

    def account_info(self) -> dict[str, Any]:
        """Summary of identity, balance and network, tolerant of query failures."""

        info: dict[str, Any] = {
            "address": self.address,
            "truncated_address": truncate_address(self.address),
            "chain_id": self.chain_id,
            "rpc": self._connection.endpoint,
        }
        try:
            balance = self.eth_balance()
        except EVMKitError as exc:
            info["balance"] = None
            info["balance_error"] = exc.message
        else:
            info["balance"] = balance
            info["balance_eth"] = format_ether(balance)

        try:
            chain_id, network_name = self.network_info()
        except EVMKitError as exc:
            info["network"] = None
            info["network_error"] = exc.message
        else:
            info["network"] = network_name
            info["chain_id"] = chain_id

        info["connected"] = self.is_connected()
        return info

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------
    def sign_hash(self, message_hash: bytes | str) -> str:
        return self._message_signer.sign_hash(message_hash)

    def sign_personal(self, message: bytes) -> str:
        return self._message_signer.sign_personal(message)

    def sign_message(self, message: str) -> str:
        return self._message_signer.sign_message(message)

    def sign_hex(self, hex_string: str) -> str:
        return self._message_signer.sign_hex(hex_string)

    def sign_typed_data(
        self,
        domain: Mapping[str, Any],
        types: Mapping[str, Sequence[Mapping[str, str]]],
        primary_type: str,
        message: Mapping[str, Any],
    ) -> str:
        return self._message_signer.sign_typed_data(domain, types, primary_type, message)

    def verify_signature(self, message_hash: bytes | str, signature: bytes | str) -> bool:
        return self._message_signer.verify_signature(message_hash, signature)

    def verify_message_signature(self, message: str | bytes, signature: bytes | str) -> bool:
        return self._message_signer.verify_message_signature(message, signature)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    def build(self, to: str | None = None, value: int = 0, data: bytes = b"", **kwargs: Any) -> SignedTx:
        return self._builder.build(to, value, data, **kwargs)

    def send_tx(self, signed_tx: SignedTx, **kwargs: Any) -> str:
        return self._sender.send_tx(signed_tx, **kwargs)

    def send_contract_method(
        self, contract: str, abi: Any, method: str, *args: Any, value: int = 0, **kwargs: Any
    ) -> SignedTx:
        return self._builder.send_contract_method(contract, abi, method, *args, value=value, **kwargs)

    def send_ether(self, to: str, amount: int, **kwargs: Any) -> str:
        return self._builder.send_ether(to, amount, **kwargs)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _discover_chain_id(self) -> int:
        if self.config.chain_id is not None:
            return self.config.chain_id
        try:
            chain_id = int(self._connection.request("chain_id", lambda: self.eth.chain_id))
        except Exception as exc:
            logger.warning(
                "Could not discover chain id from %s, using 0: %s", self._connection.endpoint, exc
            )
            return 0
        logger.debug("Discovered chain id %d", chain_id)
        return chain_id

    def _call_params(
        self,
        from_address: str | None,
        to: str | None,
        value: int,
        data: bytes,
    ) -> dict[str, Any]:
        tx: dict[str, Any] = {"value": value or 0, "data": HexBytes(data or b"").to_0x_hex()}
        if from_address:
            tx["from"] = require_address(from_address, "from")
        checked_to = optional_address(to, "to")
        if checked_to is not None:
            tx["to"] = checked_to
        return tx

    def _fetch_block(self, identifier: Any, full_transactions: bool) -> Any:
        try:
            return self._query(
                "get_block", lambda: self.eth.get_block(identifier, full_transactions)
            )
        except NetworkError as exc:
            if isinstance(exc.__cause__, BlockNotFound):
                raise ValidationError(
                    f"Block {identifier} not found", field="block", value=identifier
                ) from exc.__cause__
            raise

    def _query(self, operation: str, func: Callable[[], T], address: str | None = None) -> T:
        try:
            return self._connection.request(operation, func)
        except EVMKitError:
            raise
        except Exception as exc:
            raise NetworkError(
                f"RPC query {operation} failed",
                endpoint=self._connection.endpoint,
                details={"operation": operation, "address": address, "error": str(exc)},
            ) from exc

    def _simulate(self, operation: str, func: Callable[[], T], address: str | None = None) -> T:
        try:
            return self._connection.request(operation, func)
        except EVMKitError:
            raise
        except Exception as exc:
            raise SimulationRevertError(
                f"Simulation {operation} failed",
                operation=operation,
                address=address,
                details={"error": str(exc)},
            ) from exc

    def _batch(
        self, label: str, addresses: Sequence[str], query: Callable[[str], int]
    ) -> dict[str, int | None]:
        if not addresses:
            raise ValidationError("Address list cannot be empty", field="addresses")

        results: dict[str, int | None] = {}
        for address in addresses:
            try:
                results[address] = query(address)
            except EVMKitError as exc:
                logger.debug("Batch %s lookup failed for %s: %s", label, address, exc.message)
                results[address] = None
        return results


def _open_connection(config: ClientConfig) -> LedgerConnection:
    if not config.rpc.url:
        raise ValidationError("RPC URL cannot be empty", field="rpc_url")
    connection = LedgerConnection(config.rpc)
    connection.connect()
    return connection
