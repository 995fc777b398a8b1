"""Tests for address helpers."""

import pytest

from evmkit.address import (
    compare_addresses,
    is_valid_address,
    is_zero_address,
    optional_address,
    require_address,
    truncate_address,
    truncate_hash,
)
from evmkit.constants import ZERO_ADDRESS
from evmkit.exceptions import ValidationError


class TestAddressValidation:
    """Format checks only; checksum casing is not enforced."""

    def test_valid_lowercase(self):
        assert is_valid_address("0x" + "a" * 40)

    def test_valid_mixed_case_without_checksum(self):
        assert is_valid_address("0x7161ADA3ea6e53E5652A45988DdfF1cE595E09c2")

    @pytest.mark.parametrize(
        "value",
        [
            "0x" + "a" * 39,
            "0x" + "a" * 41,
            "a" * 40,
            "0x" + "g" * 40,
            "0x" + "ab" * 20 + "\n",
            " 0x" + "ab" * 20,
            "",
            None,
            b"\x00" * 20,
        ],
    )
    def test_invalid(self, value):
        assert not is_valid_address(value)


class TestZeroAddress:
    def test_zero_string(self):
        assert is_zero_address(ZERO_ADDRESS)

    def test_zero_bytes(self):
        assert is_zero_address(b"\x00" * 20)

    def test_non_zero(self):
        assert not is_zero_address("0x" + "0" * 39 + "1")

    def test_invalid_is_not_zero(self):
        assert not is_zero_address("0x00")


def test_require_address_returns_checksum():
    result = require_address("0x7161ada3ea6e53e5652a45988ddff1ce595e09c2", "to")
    assert result == "0x7161ada3EA6e53E5652A45988DdfF1cE595E09c2"


def test_require_address_names_field():
    with pytest.raises(ValidationError) as excinfo:
        require_address("0x1234", "spender")
    assert excinfo.value.field == "spender"
    assert excinfo.value.value == "0x1234"


def test_require_address_rejects_trailing_newline():
    with pytest.raises(ValidationError):
        require_address("0x7161ada3ea6e53e5652a45988ddff1ce595e09c2\n", "to")


def test_optional_address_maps_empty_to_none():
    assert optional_address("") is None
    assert optional_address(None) is None


def test_truncation_helpers():
    assert truncate_address("0x7161ada3EA6e53E5652A45988DdfF1cE595E09c2") == "0x7161...09c2"
    assert truncate_address("nope") == "nope"
    assert truncate_hash("0x" + "ab" * 32) == "0xababab...abababab"


def test_compare_addresses_ignores_case():
    assert compare_addresses(
        "0x7161ada3EA6e53E5652A45988DdfF1cE595E09c2",
        "0x7161ada3ea6e53e5652a45988ddff1ce595e09c2",
    )
    assert not compare_addresses("0x7161ada3EA6e53E5652A45988DdfF1cE595E09c2", "0x1")
