"""Address format checks and helpers."""

import re
from typing import Any

from eth_typing import ChecksumAddress
from web3 import Web3

from .exceptions import ValidationError

_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")


def is_valid_address(address: Any) -> bool:
    """Return True when ``address`` is ``0x`` followed by exactly 40 hex digits.

    Only the format is checked; EIP-55 checksum casing is not validated.
    """
    return isinstance(address, str) and _ADDRESS_RE.fullmatch(address) is not None


def is_zero_address(address: Any) -> bool:
    """Return True when the 20-byte value of ``address`` is all zero."""
    if isinstance(address, bytes | bytearray):
        return len(address) == 20 and not any(address)
    if not is_valid_address(address):
        return False
    return int(address, 16) == 0


def to_checksum_address(address: str) -> ChecksumAddress:
    if not is_valid_address(address):
        raise ValidationError(f"Invalid address: {address}", field="address", value=address)
    return Web3.to_checksum_address(address)


def require_address(address: Any, field: str = "address") -> ChecksumAddress:
    """Validate ``address`` and return its checksummed form.

    Raises:
        ValidationError: naming ``field`` when the format is wrong
    """
    if not is_valid_address(address):
        raise ValidationError(f"Invalid {field} address: {address}", field=field, value=address)
    return Web3.to_checksum_address(address)


def optional_address(address: str | None, field: str = "to") -> ChecksumAddress | None:
    """Like ``require_address`` but maps an empty value to None (contract creation)."""
    if address is None or address == "":
        return None
    return require_address(address, field)


def truncate_address(address: str) -> str:
    """Shorten an address for display (first 6 and last 4 characters)."""
    if not is_valid_address(address):
        return address
    return f"{address[:6]}...{address[-4:]}"


def truncate_hash(tx_hash: str) -> str:
    if len(tx_hash) < 16:
        return tx_hash
    return f"{tx_hash[:8]}...{tx_hash[-8:]}"


def compare_addresses(first: str, second: str) -> bool:
    if not is_valid_address(first) or not is_valid_address(second):
        return False
    return first.lower() == second.lower()


def compare_hashes(first: str, second: str) -> bool:
    return first.lower() == second.lower()
