"""Assemble and sign legacy or EIP-1559 transactions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from hexbytes import HexBytes

from .abi import ABILike, encode_constructor, pack
from .address import optional_address, require_address
from .exceptions import EVMKitError, TransactionBuildError, ValidationError
from .gas import total_cost
from .types import GasParams, Receipt, SignedTx, TxType

if TYPE_CHECKING:
    from .account import Account
    from .gas import GasPlanner

logger = logging.getLogger(__name__)


def _as_bytes(data: bytes | str | None) -> bytes:
    if not data:
        return b""
    try:
        return bytes(HexBytes(data))
    except ValueError as exc:
        raise ValidationError("Transaction data is not valid hex", field="data", value=data) from exc


class TransactionBuilder:
    """Resolve parameters, assemble and sign transactions for one account.

    Every call is independent: parameters are resolved, the transaction is
    assembled and then signed. A failure at any step leaves nothing behind
    besides the failed node request. Builders never retry on their own.
    """

    def __init__(self, account: Account, gas: GasPlanner):
        self._account = account
        self._gas = gas

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------
    def build_legacy(
        self,
        to: str | None = None,
        value: int = 0,
        data: bytes | str = b"",
        gas_limit: int | None = None,
        gas_price: int | None = None,
        nonce: int | None = None,
    ) -> SignedTx:
        """Build and sign a legacy (EIP-155) transaction; empty ``to`` creates a contract."""

        checked_to = optional_address(to, "to")
        payload = _as_bytes(data)

        with self._nonce_scope(nonce) as resolved_nonce:
            price = self._gas.resolve_gas_price(gas_price)
            limit = self._gas.resolve_gas_limit(gas_limit, checked_to, value, payload)
            return self._sign(
                TxType.LEGACY,
                resolved_nonce,
                checked_to,
                value,
                payload,
                GasParams(gas_limit=limit, gas_price=price),
            )

    def build_dynamic(
        self,
        to: str | None = None,
        value: int = 0,
        data: bytes | str = b"",
        gas_limit: int | None = None,
        max_fee_per_gas: int | None = None,
        max_priority_fee_per_gas: int | None = None,
        nonce: int | None = None,
    ) -> SignedTx:
        """Build and sign an EIP-1559 transaction.

        An automatic fee cap is twice the suggested legacy price. The cap is
        raised to the tip whenever it would be lower.
        """

        checked_to = optional_address(to, "to")
        payload = _as_bytes(data)

        with self._nonce_scope(nonce) as resolved_nonce:
            tip, fee_cap = self._gas.resolve_dynamic_fees(max_fee_per_gas, max_priority_fee_per_gas)
            limit = self._gas.resolve_gas_limit(gas_limit, checked_to, value, payload)
            return self._sign(
                TxType.DYNAMIC,
                resolved_nonce,
                checked_to,
                value,
                payload,
                GasParams(
                    gas_limit=limit,
                    max_priority_fee_per_gas=tip,
                    max_fee_per_gas=fee_cap,
                ),
            )

    def build(
        self,
        to: str | None = None,
        value: int = 0,
        data: bytes | str = b"",
        gas_limit: int | None = None,
        gas_price: int | None = None,
        nonce: int | None = None,
    ) -> SignedTx:
        """Build with the dynamic fee model first and fall back to legacy.

        The gas limit and nonce are resolved once and shared by every attempt.
        An explicit ``gas_price`` selects the legacy model only.

        Raises:
            EVMKitError: the last variant's error, with earlier failures in
                ``details["fallback_failures"]``
        """

        checked_to = optional_address(to, "to")
        payload = _as_bytes(data)

        with self._nonce_scope(nonce) as resolved_nonce:
            limit = self._gas.resolve_gas_limit(gas_limit, checked_to, value, payload)

            variants: list[tuple[TxType, Callable[[], SignedTx]]] = []
            if gas_price is None:
                variants.append(
                    (
                        TxType.DYNAMIC,
                        lambda: self.build_dynamic(
                            checked_to, value, payload, gas_limit=limit, nonce=resolved_nonce
                        ),
                    )
                )
            variants.append(
                (
                    TxType.LEGACY,
                    lambda: self.build_legacy(
                        checked_to,
                        value,
                        payload,
                        gas_limit=limit,
                        gas_price=gas_price,
                        nonce=resolved_nonce,
                    ),
                )
            )
            return self._first_successful(variants)

    def build_with_gas_params(
        self,
        to: str | None,
        value: int,
        data: bytes | str,
        gas_params: GasParams,
        nonce: int,
    ) -> SignedTx:
        """Sign with fully resolved pricing, choosing the envelope from ``gas_params``."""

        checked_to = optional_address(to, "to")
        tx_type = TxType.DYNAMIC if gas_params.is_dynamic else TxType.LEGACY
        return self._sign(tx_type, nonce, checked_to, value, _as_bytes(data), gas_params)

    # ------------------------------------------------------------------
    # Contract calls and transfers
    # ------------------------------------------------------------------
    def send_contract_method(
        self,
        contract: str,
        abi: ABILike,
        method: str,
        *args: Any,
        value: int = 0,
        gas_limit: int | None = None,
        gas_price: int | None = None,
        **send_kwargs: Any,
    ) -> SignedTx:
        """ABI-encode ``method(*args)``, build with fallback and submit it.

        Returns the signed transaction once the sender has seen a successful
        receipt.
        """

        checked = require_address(contract, "contract")
        data = pack(abi, method, *args)
        signed = self.build(checked, value, data, gas_limit=gas_limit, gas_price=gas_price)
        logger.info("Sending %s on %s nonce=%d", method, checked, signed.nonce)
        self._account.sender.send_tx(signed, **send_kwargs)
        return signed

    def preflight_tx(
        self,
        from_address: str | None,
        to: str | None,
        value: int = 0,
        data: bytes | str = b"",
    ) -> None:
        """Simulate a transaction with ``eth_estimateGas`` then ``eth_call``.

        Raises:
            SimulationRevertError: when either simulation fails
        """

        payload = _as_bytes(data)
        self._account.estimate_gas(from_address, to, value, payload)
        self._account.call(from_address, to, value, payload)

    def preflight_contract_method(
        self,
        from_address: str | None,
        contract: str,
        abi: ABILike,
        method: str,
        *args: Any,
        value: int = 0,
    ) -> None:
        checked = require_address(contract, "contract")
        self.preflight_tx(from_address, checked, value, pack(abi, method, *args))

    def send_ether(
        self,
        to: str,
        amount: int,
        gas_limit: int | None = None,
        gas_price: int | None = None,
        **send_kwargs: Any,
    ) -> str:
        """Transfer ``amount`` wei after checking the balance covers amount plus gas."""

        if amount is None or amount <= 0:
            raise ValidationError("Transfer amount must be positive", field="amount", value=amount)
        checked = require_address(to, "to")

        with self._nonce_scope(None) as nonce:
            signed = self.build(
                checked, amount, b"", gas_limit=gas_limit, gas_price=gas_price, nonce=nonce
            )
            self._require_signed_balance(signed)
        logger.info("Sending %d wei to %s", amount, checked)
        return self._account.sender.send_tx(signed, **send_kwargs)

    def send_contract_call(
        self,
        to: str,
        data: bytes | str,
        value: int = 0,
        gas_limit: int | None = None,
        gas_price: int | None = None,
        **send_kwargs: Any,
    ) -> str:
        checked = require_address(to, "contract")
        payload = _as_bytes(data)
        if not payload:
            raise ValidationError("Call data cannot be empty", field="data")
        value = value or 0

        with self._nonce_scope(None) as nonce:
            signed = self.build(
                checked, value, payload, gas_limit=gas_limit, gas_price=gas_price, nonce=nonce
            )
            if value > 0:
                self._require_signed_balance(signed)
        return self._account.sender.send_tx(signed, **send_kwargs)

    def deploy_contract(
        self,
        bytecode: bytes | str,
        abi: ABILike | None = None,
        *args: Any,
        value: int = 0,
        gas_limit: int | None = None,
        gas_price: int | None = None,
        **send_kwargs: Any,
    ) -> Receipt:
        """Deploy ``bytecode`` with ABI-encoded constructor ``args``; returns the receipt."""

        code = _as_bytes(bytecode)
        if not code:
            raise ValidationError("Contract bytecode cannot be empty", field="bytecode")
        if args:
            code = encode_constructor(abi or [], code, *args)

        signed = self.build(None, value, code, gas_limit=gas_limit, gas_price=gas_price)
        tx_hash = self._account.sender.send_tx(signed, **send_kwargs)
        receipt = self._account.sender.get_transaction_receipt(tx_hash)
        logger.info("Deployed contract at %s (tx %s)", receipt.contract_address, tx_hash)
        return receipt

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _first_successful(self, variants: list[tuple[TxType, Callable[[], SignedTx]]]) -> SignedTx:
        failures: list[dict[str, str]] = []
        for index, (variant, attempt) in enumerate(variants):
            try:
                return attempt()
            except EVMKitError as exc:
                failures.append({"variant": variant.name, "error": exc.message})
                if index == len(variants) - 1:
                    if len(failures) > 1:
                        exc.details["fallback_failures"] = failures[:-1]
                    raise
                logger.warning(
                    "%s transaction build failed (%s), falling back", variant.name, exc.message
                )
        raise TransactionBuildError("No transaction variants to attempt")

    def _sign(
        self,
        tx_type: TxType,
        nonce: int,
        to: str | None,
        value: int,
        data: bytes,
        gas_params: GasParams,
    ) -> SignedTx:
        chain_id = self._account.chain_id
        fields: dict[str, Any] = {
            "nonce": nonce,
            "value": value or 0,
            "data": HexBytes(data).to_0x_hex(),
            **gas_params.as_tx_fields(),
        }
        if to is not None:
            fields["to"] = to
        if tx_type is TxType.DYNAMIC:
            fields["type"] = int(TxType.DYNAMIC)
            fields["chainId"] = chain_id
        elif chain_id:
            fields["chainId"] = chain_id
        else:
            logger.warning("Chain id unknown; signing legacy transaction without replay protection")

        try:
            signed = self._account.local_account.sign_transaction(fields)
        except Exception as exc:
            raise TransactionBuildError(
                f"Failed to sign {tx_type.name.lower()} transaction",
                variant=tx_type.name,
                details={"nonce": nonce, "to": to, "error": str(exc)},
            ) from exc

        signed_tx = SignedTx(
            tx_type=tx_type,
            nonce=nonce,
            to=to,
            value=value or 0,
            data=data,
            gas=gas_params.gas_limit,
            chain_id=chain_id,
            raw_transaction=HexBytes(signed.raw_transaction),
            hash=HexBytes(signed.hash),
            gas_price=gas_params.gas_price,
            max_priority_fee_per_gas=gas_params.max_priority_fee_per_gas,
            max_fee_per_gas=gas_params.max_fee_per_gas,
        )
        logger.debug(
            "Signed %s tx nonce=%d to=%s hash=%s",
            tx_type.name,
            nonce,
            to or "<create>",
            signed_tx.hash_hex,
        )
        return signed_tx

    def _require_balance(self, required: int) -> None:
        if not self._account.has_enough_balance(required):
            raise ValidationError(
                f"Insufficient balance, {required} wei required",
                field="amount",
                value=required,
                details={"address": self._account.address},
            )

    def _require_signed_balance(self, signed: SignedTx) -> None:
        """Check the balance covers the value plus the worst-case fee of ``signed``."""
        self._require_balance(total_cost(signed.value, signed.gas, signed.price_ceiling))

    def _nonce_scope(self, nonce: int | None) -> _NonceScope:
        return _NonceScope(self._account, nonce)


class _NonceScope:
    """Resolve a nonce and give a sequencer reservation back if the build fails."""

    def __init__(self, account: Account, nonce: int | None):
        self._account = account
        self._explicit = nonce
        self._nonce: int | None = None

    def __enter__(self) -> int:
        if self._explicit is not None:
            self._nonce = self._explicit
        else:
            self._nonce = self._account.next_nonce()
        return self._nonce

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        sequencer = self._account.nonce_sequencer
        if exc_type is not None and self._explicit is None and sequencer is not None:
            sequencer.release(self._nonce)


def send_contract_method(
    account: Account,
    contract: str,
    abi: ABILike,
    method: str,
    *args: Any,
    value: int = 0,
    **kwargs: Any,
) -> SignedTx:
    """Module-level entry point used by the token facades."""
    return account.builder.send_contract_method(contract, abi, method, *args, value=value, **kwargs)
