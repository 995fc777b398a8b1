"""Message signing and signature recovery.

Signatures are returned as ``0x``-prefixed hex with the recovery byte in
{27, 28}. Recovery accepts either {0, 1} or {27, 28}.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from eth_account import Account as EthAccount
from eth_account.messages import (
    SignableMessage,
    _hash_eip191_message,
    encode_defunct,
    encode_typed_data,
)
from eth_account.signers.local import LocalAccount
from eth_keys.exceptions import BadSignature
from hexbytes import HexBytes
from web3 import Web3

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

_DOMAIN_FIELD_TYPES = {
    "name": "string",
    "version": "string",
    "chainId": "uint256",
    "verifyingContract": "address",
    "salt": "bytes32",
}


def _as_message_bytes(message: str | bytes) -> bytes:
    return message.encode() if isinstance(message, str) else bytes(message)


def personal_message_hash(message: bytes) -> bytes:
    """Digest signed by ``personal_sign`` for ``message``."""
    return _hash_eip191_message(encode_defunct(primitive=bytes(message)))


def encode_typed_message(
    domain: Mapping[str, Any],
    types: Mapping[str, Sequence[Mapping[str, str]]],
    primary_type: str,
    message: Mapping[str, Any],
) -> SignableMessage:
    """Validate an EIP-712 payload and encode it as a signable message.

    ``EIP712Domain`` is derived from the keys present in ``domain`` when
    ``types`` does not declare it.
    """

    if not primary_type:
        raise ValidationError("primary_type cannot be empty", field="primary_type")
    if not message:
        raise ValidationError("message cannot be empty", field="message")
    if not types:
        raise ValidationError("types cannot be empty", field="types")
    for type_name, fields in types.items():
        if not fields:
            raise ValidationError(
                f"Type {type_name} has no fields", field="types", value=type_name
            )
    if primary_type not in types:
        raise ValidationError(
            f"Primary type {primary_type} is not defined", field="primary_type", value=primary_type
        )

    full_types = {name: [dict(item) for item in fields] for name, fields in types.items()}
    if "EIP712Domain" not in full_types:
        full_types["EIP712Domain"] = [
            {"name": key, "type": kind} for key, kind in _DOMAIN_FIELD_TYPES.items() if key in domain
        ]

    try:
        return encode_typed_data(
            full_message={
                "types": full_types,
                "primaryType": primary_type,
                "domain": dict(domain),
                "message": dict(message),
            }
        )
    except Exception as exc:
        raise ValidationError(
            "Failed to encode typed data", field="message", details={"error": str(exc)}
        ) from exc


def typed_data_hash(
    domain: Mapping[str, Any],
    types: Mapping[str, Sequence[Mapping[str, str]]],
    primary_type: str,
    message: Mapping[str, Any],
) -> bytes:
    """Return the EIP-712 digest ``keccak(0x19 0x01 || domainSeparator || hashStruct)``."""
    return _hash_eip191_message(encode_typed_message(domain, types, primary_type, message))


def _require_hash(message_hash: bytes | str) -> bytes:
    try:
        data = bytes(HexBytes(message_hash))
    except (TypeError, ValueError) as exc:
        raise ValidationError("Hash is not valid hex", field="hash", value=message_hash) from exc
    if len(data) != 32:
        raise ValidationError(
            "Hash must be exactly 32 bytes", field="hash", value=HexBytes(data).to_0x_hex()
        )
    return data


def _normalise_signature(signature: bytes | str) -> bytes:
    """Return the 65-byte signature with its recovery byte in {27, 28}."""

    try:
        raw = bytearray(HexBytes(signature))
    except (TypeError, ValueError) as exc:
        raise ValidationError("Signature is not valid hex", field="signature") from exc
    if len(raw) != 65:
        raise ValidationError(
            "Signature must be 65 bytes", field="signature", value=HexBytes(bytes(raw)).to_0x_hex()
        )

    if raw[64] in (0, 1):
        raw[64] += 27
    elif raw[64] not in (27, 28):
        raise ValidationError("Invalid recovery byte", field="signature", value=raw[64])
    return bytes(raw)


def _recover(operation: str, recover: Callable[[bytes], str], signature: bytes | str) -> str:
    normalised = _normalise_signature(signature)
    try:
        return recover(normalised)
    except (BadSignature, ValueError) as exc:
        raise ValidationError(
            f"Failed to recover signer from {operation}",
            field="signature",
            details={"error": str(exc)},
        ) from exc


def recover_address(message_hash: bytes | str, signature: bytes | str) -> str:
    """Recover the checksummed signer address from a 32-byte hash and signature."""

    digest = _require_hash(message_hash)
    return _recover(
        "hash", lambda sig: EthAccount._recover_hash(digest, signature=sig), signature
    )


def recover_address_from_message(message: str | bytes, signature: bytes | str) -> str:
    signable = encode_defunct(primitive=_as_message_bytes(message))
    return _recover(
        "message", lambda sig: EthAccount.recover_message(signable, signature=sig), signature
    )


def recover_address_from_typed_data(
    domain: Mapping[str, Any],
    types: Mapping[str, Sequence[Mapping[str, str]]],
    primary_type: str,
    message: Mapping[str, Any],
    signature: bytes | str,
) -> str:
    signable = encode_typed_message(domain, types, primary_type, message)
    return _recover(
        "typed data", lambda sig: EthAccount.recover_message(signable, signature=sig), signature
    )


class MessageSigner:
    """Sign hashes, personal messages and EIP-712 payloads with one key."""

    def __init__(self, signer: LocalAccount):
        self._signer = signer

    @property
    def address(self) -> str:
        return self._signer.address

    def sign_hash(self, message_hash: bytes | str) -> str:
        """Sign a raw 32-byte digest (no prefix is applied)."""

        digest = _require_hash(message_hash)
        signed = self._signer.unsafe_sign_hash(digest)
        return HexBytes(signed.signature).to_0x_hex()

    def sign_personal(self, message: bytes) -> str:
        if not message:
            raise ValidationError("Message cannot be empty", field="message")
        signed = self._signer.sign_message(encode_defunct(primitive=bytes(message)))
        return HexBytes(signed.signature).to_0x_hex()

    def sign_message(self, message: str) -> str:
        return self.sign_personal(message.encode())

    def sign_bytes(self, data: bytes) -> str:
        return self.sign_personal(data)

    def sign_hex(self, hex_string: str) -> str:
        try:
            data = bytes(HexBytes(hex_string))
        except ValueError as exc:
            raise ValidationError(
                "Failed to parse hex string", field="hex_string", value=hex_string
            ) from exc
        return self.sign_personal(data)

    def sign_typed_data(
        self,
        domain: Mapping[str, Any],
        types: Mapping[str, Sequence[Mapping[str, str]]],
        primary_type: str,
        message: Mapping[str, Any],
    ) -> str:
        signable = encode_typed_message(domain, types, primary_type, message)
        logger.debug("Signing typed data %s", primary_type)
        return HexBytes(self._signer.sign_message(signable).signature).to_0x_hex()

    def verify_signature(self, message_hash: bytes | str, signature: bytes | str) -> bool:
        """Return True when ``signature`` over ``message_hash`` was made by this key."""
        return self._is_signer(recover_address(message_hash, signature))

    def verify_message_signature(self, message: str | bytes, signature: bytes | str) -> bool:
        return self._is_signer(recover_address_from_message(message, signature))

    def verify_typed_data_signature(
        self,
        domain: Mapping[str, Any],
        types: Mapping[str, Sequence[Mapping[str, str]]],
        primary_type: str,
        message: Mapping[str, Any],
        signature: bytes | str,
    ) -> bool:
        recovered = recover_address_from_typed_data(domain, types, primary_type, message, signature)
        return self._is_signer(recovered)

    def _is_signer(self, recovered: str) -> bool:
        return Web3.to_checksum_address(recovered) == Web3.to_checksum_address(self.address)
