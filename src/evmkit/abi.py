"""Pack and unpack contract calls against a JSON ABI.

Encoding itself is delegated to ``eth_abi``; this module resolves the method
entry, builds the canonical signature and selector, and normalises Python
arguments per Solidity type before handing them over.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import keccak
from hexbytes import HexBytes
from web3 import Web3

from .address import is_valid_address
from .exceptions import ValidationError

logger = logging.getLogger(__name__)

ABIEntry = Mapping[str, Any]
ABILike = str | Sequence[ABIEntry]

_ARRAY_SUFFIX_RE = re.compile(r"^(?P<base>.*?)(?P<dims>(\[\d*\])*)$")
_INT_RE = re.compile(r"^(?P<sign>u?)int(?P<bits>\d*)$")
_FIXED_BYTES_RE = re.compile(r"^bytes(?P<size>\d+)$")


def load_abi(abi: ABILike) -> list[dict[str, Any]]:
    """Parse a JSON ABI document (or pass through an already decoded one)."""

    if isinstance(abi, str):
        try:
            parsed = json.loads(abi)
        except json.JSONDecodeError as exc:
            raise ValidationError("Failed to parse ABI JSON", field="abi", details={"error": str(exc)}) from exc
    else:
        parsed = list(abi)

    if not isinstance(parsed, list):
        raise ValidationError("ABI must be a JSON array", field="abi")
    return [dict(entry) for entry in parsed if isinstance(entry, Mapping)]


def canonical_type(param: Mapping[str, Any]) -> str:
    """Return the canonical ABI type string, expanding tuples."""

    raw_type = str(param.get("type", ""))
    match = _ARRAY_SUFFIX_RE.match(raw_type)
    base = match.group("base") if match else raw_type
    dims = match.group("dims") if match else ""

    if base == "tuple":
        inner = ",".join(canonical_type(component) for component in param.get("components", []))
        return f"({inner}){dims}"
    if base == "uint":
        base = "uint256"
    elif base == "int":
        base = "int256"
    return f"{base}{dims}"


def function_signature(entry: ABIEntry) -> str:
    inputs = ",".join(canonical_type(param) for param in entry.get("inputs", []))
    return f"{entry['name']}({inputs})"


def function_selector(entry: ABIEntry | str) -> bytes:
    """First four bytes of keccak256 over the canonical signature.

    ``entry`` is an ABI function entry or an already canonical signature
    string such as ``"transfer(address,uint256)"``.
    """
    signature = entry if isinstance(entry, str) else function_signature(entry)
    return keccak(text=signature)[:4]


def find_function(abi: ABILike, method: str, arg_count: int | None = None) -> dict[str, Any]:
    """Locate ``method`` in ``abi``; overloads are resolved by argument count."""

    entries = [
        entry
        for entry in load_abi(abi)
        if entry.get("type", "function") == "function" and entry.get("name") == method
    ]
    if not entries:
        raise ValidationError(f"Method {method} not found in ABI", field="method", value=method)

    if arg_count is None or len(entries) == 1:
        return entries[0]

    for entry in entries:
        if len(entry.get("inputs", [])) == arg_count:
            return entry

    raise ValidationError(
        f"No overload of {method} takes {arg_count} arguments",
        field="method",
        value=method,
        details={"candidates": [function_signature(entry) for entry in entries]},
    )


def find_constructor(abi: ABILike) -> dict[str, Any] | None:
    for entry in load_abi(abi):
        if entry.get("type") == "constructor":
            return entry
    return None


def normalize_argument(param: Mapping[str, Any], value: Any, name: str = "arg") -> Any:
    """Coerce ``value`` into the Python shape ``eth_abi`` expects for ``param``.

    Raises:
        ValidationError: naming the argument when the value cannot represent the type
    """

    raw_type = str(param.get("type", ""))
    match = _ARRAY_SUFFIX_RE.match(raw_type)
    dims = match.group("dims") if match else ""

    if dims:
        last_dim = dims[dims.rfind("[") :]
        inner_param = dict(param)
        inner_param["type"] = raw_type[: len(raw_type) - len(last_dim)]
        if isinstance(value, str | bytes | bytearray) or not isinstance(value, Sequence):
            raise ValidationError(f"Argument {name} must be a list", field=name, value=value)
        size = last_dim[1:-1]
        if size and len(value) != int(size):
            raise ValidationError(
                f"Argument {name} must have exactly {size} items", field=name, value=value
            )
        return [
            normalize_argument(inner_param, item, f"{name}[{index}]")
            for index, item in enumerate(value)
        ]

    base = raw_type
    if base == "tuple":
        return _normalize_tuple(param, value, name)
    if base == "address":
        return _normalize_address(value, name)
    if base == "bool":
        if not isinstance(value, bool):
            raise ValidationError(f"Argument {name} must be a bool", field=name, value=value)
        return value
    if base == "string":
        if not isinstance(value, str):
            raise ValidationError(f"Argument {name} must be a string", field=name, value=value)
        return value
    if base == "bytes":
        return _normalize_bytes(value, name)

    fixed = _FIXED_BYTES_RE.match(base)
    if fixed:
        data = _normalize_bytes(value, name)
        size = int(fixed.group("size"))
        if len(data) > size:
            raise ValidationError(
                f"Argument {name} exceeds {size} bytes", field=name, value=value
            )
        return data.ljust(size, b"\x00")

    integer = _INT_RE.match(base)
    if integer:
        return _normalize_int(value, name, unsigned=integer.group("sign") == "u")

    return value


def _normalize_address(value: Any, name: str) -> str:
    if isinstance(value, bytes | bytearray) and len(value) == 20:
        return Web3.to_checksum_address(HexBytes(value).to_0x_hex())
    if not is_valid_address(value):
        raise ValidationError(f"Argument {name} is not a valid address", field=name, value=value)
    return Web3.to_checksum_address(value)


def _normalize_bytes(value: Any, name: str) -> bytes:
    if isinstance(value, bytes | bytearray):
        return bytes(value)
    if isinstance(value, str):
        try:
            return bytes(HexBytes(value))
        except ValueError as exc:
            raise ValidationError(
                f"Argument {name} is not valid hex", field=name, value=value
            ) from exc
    raise ValidationError(f"Argument {name} must be bytes", field=name, value=value)


def _normalize_int(value: Any, name: str, *, unsigned: bool) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Argument {name} must be an integer", field=name, value=value)
    if isinstance(value, str):
        try:
            value = int(value, 16) if value.lower().startswith("0x") else int(value)
        except ValueError as exc:
            raise ValidationError(
                f"Argument {name} must be an integer", field=name, value=value
            ) from exc
    if not isinstance(value, int):
        raise ValidationError(f"Argument {name} must be an integer", field=name, value=value)
    if unsigned and value < 0:
        raise ValidationError(f"Argument {name} cannot be negative", field=name, value=value)
    return value


def _normalize_tuple(param: Mapping[str, Any], value: Any, name: str) -> tuple[Any, ...]:
    components = list(param.get("components", []))
    if isinstance(value, Mapping):
        try:
            items = [value[component.get("name")] for component in components]
        except KeyError as exc:
            raise ValidationError(
                f"Argument {name} is missing tuple field {exc.args[0]}", field=name, value=value
            ) from exc
    elif isinstance(value, Sequence) and not isinstance(value, str | bytes | bytearray):
        items = list(value)
    else:
        raise ValidationError(f"Argument {name} must be a tuple", field=name, value=value)

    if len(items) != len(components):
        raise ValidationError(
            f"Argument {name} expects {len(components)} tuple fields", field=name, value=value
        )
    return tuple(
        normalize_argument(component, item, f"{name}.{component.get('name') or index}")
        for index, (component, item) in enumerate(zip(components, items))
    )


def encode_arguments(params: Sequence[Mapping[str, Any]], args: Sequence[Any]) -> bytes:
    if len(params) != len(args):
        raise ValidationError(
            f"Expected {len(params)} arguments, got {len(args)}",
            field="args",
            details={"args": list(args)},
        )
    if not params:
        return b""

    types = [canonical_type(param) for param in params]
    values = [
        normalize_argument(param, arg, param.get("name") or f"arg{index}")
        for index, (param, arg) in enumerate(zip(params, args))
    ]
    try:
        return abi_encode(types, values)
    except Exception as exc:
        raise ValidationError(
            "ABI encoding failed", field="args", details={"types": types, "error": str(exc)}
        ) from exc


def pack(abi: ABILike, method: str, *args: Any) -> bytes:
    """Encode a call to ``method`` as selector + packed arguments."""

    entry = find_function(abi, method, len(args))
    data = function_selector(entry) + encode_arguments(entry.get("inputs", []), args)
    logger.debug("Packed %s (%d bytes)", function_signature(entry), len(data))
    return data


def unpack(abi: ABILike, method: str, output: bytes, arg_count: int | None = None) -> tuple[Any, ...]:
    """Decode the return data of ``method``."""

    entry = find_function(abi, method, arg_count)
    outputs = entry.get("outputs", [])
    if not outputs:
        return tuple()

    types = [canonical_type(param) for param in outputs]
    try:
        decoded = abi_decode(types, bytes(output))
    except Exception as exc:
        raise ValidationError(
            f"ABI decoding failed for {method}",
            field="output",
            details={"types": types, "error": str(exc)},
        ) from exc

    return tuple(_normalize_output(param, value) for param, value in zip(outputs, decoded))


def encode_constructor(abi: ABILike, bytecode: bytes | str, *args: Any) -> bytes:
    """Append ABI-encoded constructor arguments to contract bytecode."""

    code = bytes(HexBytes(bytecode))
    if not args:
        return code

    constructor = find_constructor(abi)
    if constructor is None:
        raise ValidationError(
            "Constructor arguments given but the ABI has no constructor", field="abi"
        )
    return code + encode_arguments(constructor.get("inputs", []), args)


def _normalize_output(param: Mapping[str, Any], value: Any) -> Any:
    raw_type = str(param.get("type", ""))
    if raw_type == "address" and isinstance(value, str):
        return Web3.to_checksum_address(value)
    if raw_type == "address[]" and isinstance(value, Sequence):
        return [Web3.to_checksum_address(item) for item in value]
    if isinstance(value, tuple) and raw_type.endswith("[]"):
        return list(value)
    return value
