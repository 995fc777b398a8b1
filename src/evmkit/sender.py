"""Submit signed transactions and track them until they are mined."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from hexbytes import HexBytes
from web3.exceptions import TransactionNotFound

from .connections import TRANSPORT_ERRORS
from .exceptions import (
    EVMKitError,
    NetworkError,
    ReceiptTimeoutError,
    SubmissionRejectedError,
    TransactionFailedError,
    TransactionNotFoundError,
    TransactionPendingError,
    ValidationError,
    WaitCancelledError,
)
from .types import Receipt, SignedTx

if TYPE_CHECKING:
    from .account import Account
    from .builder import TransactionBuilder

logger = logging.getLogger(__name__)

# Outcomes that resubmitting cannot change
_FINAL_ERRORS = (TransactionFailedError, WaitCancelledError, ValidationError)
# Outcomes a higher gas price may fix
_ESCALATABLE_ERRORS = (SubmissionRejectedError, ReceiptTimeoutError)


def _hash_hex(tx_hash: bytes | str) -> str:
    try:
        value = HexBytes(tx_hash)
    except ValueError as exc:
        raise ValidationError("Invalid transaction hash", field="tx_hash", value=tx_hash) from exc
    if len(value) != 32:
        raise ValidationError("Transaction hash must be 32 bytes", field="tx_hash", value=tx_hash)
    return value.to_0x_hex()


class Sender:
    """Submit raw transactions and poll for their receipts."""

    def __init__(self, account: Account, builder: TransactionBuilder):
        self._account = account
        self._builder = builder

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------
    def submit(self, signed_tx: SignedTx) -> str:
        """Broadcast ``signed_tx`` without waiting for it.

        Raises:
            SubmissionRejectedError: when the node refuses the transaction
            NetworkError: when the node cannot be reached
        """

        connection = self._account.connection
        connection.ensure_connected()
        try:
            tx_hash = self._account.eth.send_raw_transaction(signed_tx.raw_transaction)
        except TRANSPORT_ERRORS as exc:
            raise NetworkError(
                "Failed to reach RPC while submitting transaction",
                endpoint=connection.endpoint,
                details={"tx_hash": signed_tx.hash_hex, "error": str(exc)},
            ) from exc
        except Exception as exc:
            raise SubmissionRejectedError(
                "Node rejected transaction",
                tx_hash=signed_tx.hash_hex,
                details={"nonce": signed_tx.nonce, "to": signed_tx.to, "error": str(exc)},
            ) from exc

        tx_hex = HexBytes(tx_hash).to_0x_hex() if tx_hash else signed_tx.hash_hex
        logger.info(
            "Transaction submitted hash=%s nonce=%d type=%s",
            tx_hex,
            signed_tx.nonce,
            signed_tx.tx_type.name,
        )
        return tx_hex

    def send_tx(
        self,
        signed_tx: SignedTx,
        *,
        timeout: float | None = None,
        poll_interval: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> str:
        """Submit ``signed_tx`` and wait until it is mined successfully.

        Raises:
            SubmissionRejectedError: the node refused the transaction
            TransactionFailedError: the transaction was mined but reverted
            ReceiptTimeoutError: no receipt before the deadline; it may still be pending
            WaitCancelledError: ``cancel_event`` was set while waiting
        """

        tx_hash = self.submit(signed_tx)
        receipt = self.wait_for_receipt(
            tx_hash, timeout=timeout, poll_interval=poll_interval, cancel_event=cancel_event
        )
        if not receipt.succeeded:
            raise TransactionFailedError(
                f"Transaction {tx_hash} reverted (status=0)",
                tx_hash=tx_hash,
                receipt=receipt,
                details={"block_number": receipt.block_number, "gas_used": receipt.gas_used},
            )

        logger.info(
            "Transaction confirmed hash=%s block=%d gas_used=%d",
            tx_hash,
            receipt.block_number,
            receipt.gas_used,
        )
        return tx_hash

    def send_tx_with_retry(
        self,
        signed_tx: SignedTx,
        max_retries: int = 0,
        *,
        retry_delay: float = 1.0,
        **send_kwargs: Any,
    ) -> str:
        """Resubmit the same signed transaction with linear back-off.

        ``max_retries <= 0`` uses the configured default. The wait between
        attempt ``n`` and ``n + 1`` is ``n * retry_delay`` seconds.
        """

        if max_retries <= 0:
            max_retries = max(self._account.config.max_retries, 1)

        last_error: EVMKitError | None = None
        for attempt in range(1, max_retries + 1):
            try:
                return self.send_tx(signed_tx, **send_kwargs)
            except _FINAL_ERRORS:
                raise
            except EVMKitError as exc:
                last_error = exc
                logger.warning(
                    "Send attempt %d/%d for %s failed: %s",
                    attempt,
                    max_retries,
                    signed_tx.hash_hex,
                    exc.message,
                )
                if attempt < max_retries:
                    time.sleep(attempt * retry_delay)

        if last_error is None:
            raise SubmissionRejectedError("No send attempts were made", tx_hash=signed_tx.hash_hex)
        last_error.details["attempts"] = max_retries
        raise last_error

    def send_tx_with_smart_gas(self, signed_tx: SignedTx, **send_kwargs: Any) -> str:
        """Send ``signed_tx``; if it is rejected or stalls, resend once with escalated pricing."""

        try:
            return self.send_tx(signed_tx, **send_kwargs)
        except _ESCALATABLE_ERRORS as exc:
            logger.warning(
                "Transaction %s not accepted (%s), escalating gas", signed_tx.hash_hex, exc.message
            )

        escalated = self._account.gas.escalate(signed_tx.gas_params)
        replacement = self._builder.build_with_gas_params(
            signed_tx.to,
            signed_tx.value,
            signed_tx.data,
            escalated,
            signed_tx.nonce,
        )
        return self.send_tx(replacement, **send_kwargs)

    def batch_send_transactions(
        self, signed_txs: Sequence[SignedTx | None], **send_kwargs: Any
    ) -> list[str]:
        """Send each transaction in order, collecting failures.

        Raises:
            EVMKitError: when any transaction failed; ``details`` carries the
                hashes that succeeded and the error per index
        """

        if not signed_txs:
            raise ValidationError("Transaction list cannot be empty", field="signed_txs")

        hashes: list[str | None] = []
        errors: dict[int, str] = {}
        for index, signed_tx in enumerate(signed_txs):
            if signed_tx is None:
                hashes.append(None)
                errors[index] = "transaction is empty"
                continue
            try:
                hashes.append(self.send_tx(signed_tx, **send_kwargs))
            except EVMKitError as exc:
                hashes.append(None)
                errors[index] = exc.message

        if errors:
            raise EVMKitError(
                f"Batch send failed for {len(errors)} of {len(signed_txs)} transactions",
                details={"hashes": hashes, "errors": errors},
            )
        return [tx_hash for tx_hash in hashes if tx_hash is not None]

    # ------------------------------------------------------------------
    # Confirmation
    # ------------------------------------------------------------------
    def wait_for_receipt(
        self,
        tx_hash: bytes | str,
        *,
        timeout: float | None = None,
        poll_interval: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Receipt:
        """Poll until a receipt exists and return it, whatever its status."""

        tx_hex = _hash_hex(tx_hash)
        config = self._account.config
        timeout = config.receipt_timeout if timeout is None else timeout
        poll_interval = config.poll_interval if poll_interval is None else poll_interval

        deadline = time.monotonic() + timeout
        attempt = 0
        while True:
            self._check_cancelled(cancel_event, tx_hex)
            attempt += 1
            receipt = self._poll_receipt(tx_hex)
            if receipt is not None:
                return receipt

            remaining = deadline - time.monotonic()
            logger.debug("Receipt for %s not found (attempt %d)", tx_hex, attempt)
            if remaining <= 0:
                raise ReceiptTimeoutError(
                    f"Timed out after {timeout}s waiting for {tx_hex}",
                    tx_hash=tx_hex,
                    timeout=timeout,
                    details={"attempts": attempt},
                )
            self._pause(min(poll_interval, remaining), cancel_event, tx_hex)

    def wait_for_transaction(
        self,
        tx_hash: bytes | str,
        confirmations: int = 1,
        *,
        timeout: float | None = None,
        poll_interval: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Receipt:
        """Wait until ``latest_block - receipt_block >= confirmations``."""

        tx_hex = _hash_hex(tx_hash)
        config = self._account.config
        confirmations = max(confirmations, 1)
        timeout = config.confirmation_timeout if timeout is None else timeout
        poll_interval = config.confirmation_poll_interval if poll_interval is None else poll_interval

        deadline = time.monotonic() + timeout
        while True:
            self._check_cancelled(cancel_event, tx_hex)
            receipt = self._poll_receipt(tx_hex)
            if receipt is not None:
                depth = self._account.latest_block_number() - receipt.block_number
                logger.debug("Transaction %s has %d/%d confirmations", tx_hex, depth, confirmations)
                if depth >= confirmations:
                    return receipt

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ReceiptTimeoutError(
                    f"Timed out after {timeout}s waiting for {confirmations} confirmations of {tx_hex}",
                    tx_hash=tx_hex,
                    timeout=timeout,
                    details={"confirmations": confirmations},
                )
            self._pause(min(poll_interval, remaining), cancel_event, tx_hex)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_transaction_receipt(self, tx_hash: bytes | str) -> Receipt:
        tx_hex = _hash_hex(tx_hash)
        receipt = self._poll_receipt(tx_hex)
        if receipt is None:
            raise TransactionNotFoundError(f"No receipt for {tx_hex}", tx_hash=tx_hex)
        return receipt

    def get_transaction(self, tx_hash: bytes | str) -> Any:
        """Return the mined transaction; a pending one raises ``TransactionPendingError``."""

        tx_hex = _hash_hex(tx_hash)
        try:
            tx = self._account.connection.request(
                "get_transaction", self._account.eth.get_transaction, tx_hex
            )
        except TransactionNotFound as exc:
            raise TransactionNotFoundError(f"Transaction {tx_hex} not found", tx_hash=tx_hex) from exc

        if tx is None:
            raise TransactionNotFoundError(f"Transaction {tx_hex} not found", tx_hash=tx_hex)
        if tx.get("blockNumber") is None:
            raise TransactionPendingError(f"Transaction {tx_hex} is still pending", tx_hash=tx_hex)
        return tx

    def is_transaction_successful(self, tx_hash: bytes | str) -> bool:
        return self.get_transaction_receipt(tx_hash).succeeded

    def calculate_transaction_fee(self, tx: SignedTx | bytes | str) -> int:
        """Fee actually paid: ``gas_used`` times the effective gas price.

        Falls back to the signed price ceiling when the node does not report an
        effective price.
        """

        tx_hash = tx.hash_hex if isinstance(tx, SignedTx) else tx
        receipt = self.get_transaction_receipt(tx_hash)
        price = receipt.effective_gas_price
        if price is None:
            if not isinstance(tx, SignedTx):
                raise ValidationError(
                    "Receipt has no effective gas price; pass the signed transaction",
                    field="tx",
                    value=tx_hash,
                )
            price = tx.price_ceiling
        return receipt.gas_used * int(price)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _poll_receipt(self, tx_hex: str) -> Receipt | None:
        connection = self._account.connection
        try:
            raw = connection.request(
                "get_transaction_receipt", self._account.eth.get_transaction_receipt, tx_hex
            )
        except TransactionNotFound:
            return None
        except EVMKitError:
            raise
        except Exception as exc:
            raise NetworkError(
                "Failed to fetch transaction receipt",
                endpoint=connection.endpoint,
                details={"tx_hash": tx_hex, "error": str(exc)},
            ) from exc

        if raw is None:
            return None
        return Receipt.from_web3(raw)

    @staticmethod
    def _check_cancelled(cancel_event: threading.Event | None, tx_hex: str) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise WaitCancelledError(f"Wait for {tx_hex} cancelled", tx_hash=tx_hex)

    @staticmethod
    def _pause(seconds: float, cancel_event: threading.Event | None, tx_hex: str) -> None:
        if cancel_event is None:
            time.sleep(seconds)
            return
        if cancel_event.wait(seconds):
            raise WaitCancelledError(f"Wait for {tx_hex} cancelled", tx_hash=tx_hex)
