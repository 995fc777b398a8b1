"""Tests for message signing and signature recovery."""

import pytest
from eth_account import Account as EthAccount
from eth_account.messages import encode_defunct, encode_typed_data
from eth_utils import keccak
from hexbytes import HexBytes

from conftest import ADDRESS, PRIVATE_KEY
from evmkit.exceptions import ValidationError
from evmkit.signer import (
    personal_message_hash,
    recover_address,
    recover_address_from_message,
    recover_address_from_typed_data,
    typed_data_hash,
)

DOMAIN = {
    "name": "Ether Mail",
    "version": "1",
    "chainId": 1,
    "verifyingContract": "0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC",
}
TYPES = {
    "Person": [
        {"name": "name", "type": "string"},
        {"name": "wallet", "type": "address"},
    ],
    "Mail": [
        {"name": "from", "type": "Person"},
        {"name": "to", "type": "Person"},
        {"name": "contents", "type": "string"},
    ],
}
MESSAGE = {
    "from": {"name": "Cow", "wallet": "0xCD2a3d9F938E13CD947Ec05AbC7FE734Df8DD826"},
    "to": {"name": "Bob", "wallet": "0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB"},
    "contents": "Hello, Bob!",
}


def test_personal_message_hash_matches_eip191():
    signable = encode_defunct(text="hello")
    expected = keccak(b"\x19" + signable.version + signable.header + signable.body)
    assert personal_message_hash(b"hello") == expected


def test_sign_message_matches_eth_account(account):
    signature = account.sign_message("hello world")
    expected = EthAccount.sign_message(encode_defunct(text="hello world"), PRIVATE_KEY)
    assert signature == HexBytes(expected.signature).to_0x_hex()
    assert HexBytes(signature)[64] in (27, 28)


def test_sign_message_round_trips_through_recovery(account):
    signature = account.sign_message("gm")
    assert recover_address_from_message("gm", signature) == ADDRESS
    assert account.verify_message_signature("gm", signature)
    assert not account.verify_message_signature("gn", signature)


def test_recovery_accepts_zero_one_recovery_byte(account):
    digest = keccak(b"payload")
    signature = bytearray(HexBytes(account.sign_hash(digest)))
    signature[64] -= 27
    assert recover_address(digest, bytes(signature)) == ADDRESS


def test_sign_hash_rejects_wrong_length(account):
    with pytest.raises(ValidationError) as excinfo:
        account.sign_hash(b"\x01" * 31)
    assert excinfo.value.field == "hash"


def test_recover_rejects_bad_signature_length():
    with pytest.raises(ValidationError):
        recover_address(keccak(b"x"), b"\x00" * 64)


def test_recover_rejects_bad_recovery_byte(account):
    digest = keccak(b"payload")
    signature = bytearray(HexBytes(account.sign_hash(digest)))
    signature[64] = 5
    with pytest.raises(ValidationError):
        recover_address(digest, bytes(signature))


def test_sign_empty_message_rejected(account):
    with pytest.raises(ValidationError):
        account.sign_personal(b"")


def test_sign_hex_and_bytes_agree(account):
    assert account.sign_hex("0xdeadbeef") == account.signer.sign_bytes(b"\xde\xad\xbe\xef")
    with pytest.raises(ValidationError):
        account.sign_hex("0xzz")


def test_verify_signature_from_other_key(account):
    other = EthAccount.create()
    digest = keccak(b"payload")
    signed = EthAccount.unsafe_sign_hash(digest, private_key=other.key)
    assert not account.verify_signature(digest, signed.signature)


def test_typed_data_matches_eth_account(account):
    signature = account.sign_typed_data(DOMAIN, TYPES, "Mail", MESSAGE)
    full_types = dict(TYPES)
    full_types["EIP712Domain"] = [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ]
    expected = EthAccount.sign_message(
        encode_typed_data(
            full_message={
                "types": full_types,
                "primaryType": "Mail",
                "domain": DOMAIN,
                "message": MESSAGE,
            }
        ),
        PRIVATE_KEY,
    )
    assert signature == HexBytes(expected.signature).to_0x_hex()
    assert account.signer.verify_typed_data_signature(DOMAIN, TYPES, "Mail", MESSAGE, signature)


def test_typed_data_hash_is_deterministic():
    assert typed_data_hash(DOMAIN, TYPES, "Mail", MESSAGE) == typed_data_hash(
        DOMAIN, TYPES, "Mail", MESSAGE
    )


@pytest.mark.parametrize(
    "types,primary_type,message",
    [
        (TYPES, "", MESSAGE),
        (TYPES, "Mail", {}),
        ({}, "Mail", MESSAGE),
        ({"Mail": []}, "Mail", MESSAGE),
        (TYPES, "Letter", MESSAGE),
    ],
)
def test_typed_data_rejects_malformed_input(types, primary_type, message):
    with pytest.raises(ValidationError):
        typed_data_hash(DOMAIN, types, primary_type, message)


def test_typed_data_signer_is_recovered(account):
    signature = account.sign_typed_data(DOMAIN, TYPES, "Mail", MESSAGE)
    assert recover_address_from_typed_data(DOMAIN, TYPES, "Mail", MESSAGE, signature) == ADDRESS


@pytest.mark.parametrize("bad_hash", ["0xzz", "not hex", b"\x01" * 33])
def test_malformed_hash_is_validation_error(account, bad_hash):
    with pytest.raises(ValidationError) as excinfo:
        account.verify_signature(bad_hash, "0x" + "00" * 65)
    assert excinfo.value.field == "hash"
    with pytest.raises(ValidationError):
        account.sign_hash(bad_hash)
    with pytest.raises(ValidationError):
        recover_address(bad_hash, "0x" + "00" * 65)


def test_malformed_signature_hex(account):
    with pytest.raises(ValidationError) as excinfo:
        account.verify_signature(keccak(b"payload"), "0xzz")
    assert excinfo.value.field == "signature"
