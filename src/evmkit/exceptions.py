"""Exception hierarchy for evmkit."""

from typing import Any


class EVMKitError(Exception):
    """Base exception for all evmkit errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(EVMKitError):
    """Raised when input validation fails, before any network I/O."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class NetworkError(EVMKitError):
    """Raised when the RPC endpoint is unreachable or answers garbage."""

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code


class SimulationRevertError(EVMKitError):
    """Raised when gas estimation or a read-only call fails on the node."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        address: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.operation = operation
        self.address = address


class TransactionBuildError(EVMKitError):
    """Raised when a transaction cannot be assembled or signed."""

    def __init__(self, message: str, variant: str | None = None, details: dict | None = None):
        super().__init__(message, details)
        self.variant = variant


class SubmissionRejectedError(EVMKitError):
    """Raised when the node rejects a raw transaction (nonce, funds, price)."""

    def __init__(self, message: str, tx_hash: str | None = None, details: dict | None = None):
        super().__init__(message, details)
        self.tx_hash = tx_hash


class TransactionFailedError(EVMKitError):
    """Raised when a transaction was mined but reverted (receipt status 0)."""

    def __init__(
        self,
        message: str,
        tx_hash: str | None = None,
        receipt: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.tx_hash = tx_hash
        self.receipt = receipt


class ReceiptTimeoutError(EVMKitError):
    """Raised when no receipt showed up before the deadline.

    The transaction may still be pending; callers should query it again later.
    """

    def __init__(
        self,
        message: str,
        tx_hash: str | None = None,
        timeout: float | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.tx_hash = tx_hash
        self.timeout = timeout


class WaitCancelledError(EVMKitError):
    """Raised when the caller cancels a confirmation wait."""

    def __init__(self, message: str, tx_hash: str | None = None, details: dict | None = None):
        super().__init__(message, details)
        self.tx_hash = tx_hash


class TransactionNotFoundError(EVMKitError):
    """Raised when the node has no record (or no receipt yet) for a hash."""

    def __init__(self, message: str, tx_hash: str | None = None, details: dict | None = None):
        super().__init__(message, details)
        self.tx_hash = tx_hash


class TransactionPendingError(EVMKitError):
    """Raised when a transaction is known but not yet mined."""

    def __init__(self, message: str, tx_hash: str | None = None, details: dict | None = None):
        super().__init__(message, details)
        self.tx_hash = tx_hash


def _error_text(exc: BaseException | None) -> str:
    if exc is None:
        return ""
    if isinstance(exc, EVMKitError):
        return f"{exc.message} {exc.details.get('error', '')} {exc.details.get('cause', '')}".lower()
    return str(exc).lower()


def is_revert_error(exc: BaseException | None) -> bool:
    """Return True when ``exc`` reports an EVM revert."""
    text = _error_text(exc)
    return "revert" in text or "vm execution error" in text


def is_insufficient_funds_error(exc: BaseException | None) -> bool:
    return "insufficient funds" in _error_text(exc)


def is_gas_limit_error(exc: BaseException | None) -> bool:
    text = _error_text(exc)
    return "gas limit" in text or "out of gas" in text
