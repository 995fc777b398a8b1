"""Unit conversion and serialisation helpers for evmkit."""

import re
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from hexbytes import HexBytes

from .exceptions import ValidationError

WEI_PER_ETHER = 10**18
WEI_PER_GWEI = 10**9

_DECIMAL_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)")


def to_decimals(value: int, decimals: int) -> int:
    """Scale a whole token amount up to its integer base-unit representation."""
    if value < 0:
        raise ValidationError("Value cannot be negative", field="value", value=value)
    return int(value) * 10**decimals


def to_decimals_str(value: str, decimals: int) -> int:
    """Convert a decimal string to base units, truncating excess precision.

    Digits beyond ``decimals`` are dropped rather than rounded, so
    ``to_decimals_str("1.239", 2) == 123``.
    """
    if decimals < 0:
        raise ValidationError("Decimals cannot be negative", field="decimals", value=decimals)

    text = value.strip() if isinstance(value, str) else str(value)
    if text == "":
        return 0
    if not _DECIMAL_RE.fullmatch(text):
        raise ValidationError(f"Invalid decimal string: {value}", field="value", value=value)

    negative = text.startswith("-")
    text = text.lstrip("+-")

    int_part, _, frac_part = text.partition(".")
    frac_part = frac_part[:decimals].ljust(decimals, "0")

    merged = (int_part + frac_part).lstrip("0") or "0"
    result = int(merged)
    return -result if negative else result


def from_decimals(value: int | None, decimals: int) -> Decimal:
    """Convert integer base units into a human readable Decimal."""
    if value is None:
        return Decimal(0)
    return Decimal(value) / (Decimal(10) ** decimals)


def format_ether(wei: int | None) -> str:
    """Format a wei amount as an ether string with 18 decimal places."""
    return f"{from_decimals(wei, 18):.18f}"


def parse_ether(ether: str) -> int:
    """Parse an ether amount string into wei."""
    return to_decimals_str(ether, 18)


def format_gwei(wei: int | None) -> str:
    """Format a wei amount as a gwei string with 9 decimal places."""
    return f"{from_decimals(wei, 9):.9f}"


def parse_gwei(gwei: str) -> int:
    """Parse a gwei amount string into wei."""
    return to_decimals_str(gwei, 9)


def validate_amount(amount: int | None, field: str = "amount") -> int:
    if amount is None:
        raise ValidationError("Amount is required", field=field)
    if amount < 0:
        raise ValidationError("Amount cannot be negative", field=field, value=amount)
    return amount


def bytes_to_hex(data: bytes) -> str:
    return HexBytes(data).to_0x_hex()


def hex_to_bytes(value: str) -> bytes:
    """Decode a 0x-prefixed (or bare) hex string."""
    try:
        return bytes(HexBytes(value))
    except ValueError as exc:
        raise ValidationError("Invalid hex string", field="hex", value=value) from exc


def int_to_hex(value: int | None) -> str:
    if value is None:
        return "0x0"
    return hex(value)


def hex_to_int(value: str) -> int:
    try:
        return int(value, 16)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Invalid hex integer", field="hex", value=value) from exc


def serialise_receipt(receipt: Any) -> Any:
    """Serialise web3 receipt objects into JSON-friendly structures."""
    if receipt is None:
        return None
    if isinstance(receipt, Mapping):
        return {key: serialise_receipt(value) for key, value in receipt.items()}
    if isinstance(receipt, Sequence) and not isinstance(
        receipt, str | bytes | bytearray | HexBytes
    ):
        return [serialise_receipt(item) for item in receipt]
    if isinstance(receipt, bytes | bytearray | HexBytes):
        return HexBytes(receipt).to_0x_hex()
    return receipt
