"""Minimal ABIs for the standard token interfaces."""

from __future__ import annotations

from typing import Any


def _params(pairs: tuple[tuple[str, str], ...]) -> list[dict[str, str]]:
    return [{"name": name, "type": kind} for name, kind in pairs]


def _view(name: str, inputs: tuple[tuple[str, str], ...], outputs: tuple[tuple[str, str], ...]) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": _params(inputs),
        "outputs": _params(outputs),
        "stateMutability": "view",
    }


def _write(
    name: str,
    inputs: tuple[tuple[str, str], ...],
    outputs: tuple[tuple[str, str], ...] = (),
) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": _params(inputs),
        "outputs": _params(outputs),
        "stateMutability": "nonpayable",
    }


ERC20_ABI: list[dict[str, Any]] = [
    _view("name", (), (("", "string"),)),
    _view("symbol", (), (("", "string"),)),
    _view("decimals", (), (("", "uint8"),)),
    _view("totalSupply", (), (("", "uint256"),)),
    _view("balanceOf", (("_owner", "address"),), (("balance", "uint256"),)),
    _view("allowance", (("_owner", "address"), ("_spender", "address")), (("", "uint256"),)),
    _write("transfer", (("_to", "address"), ("_value", "uint256")), (("", "bool"),)),
    _write(
        "transferFrom",
        (("_from", "address"), ("_to", "address"), ("_value", "uint256")),
        (("", "bool"),),
    ),
    _write("approve", (("_spender", "address"), ("_value", "uint256")), (("", "bool"),)),
]

ERC721_ABI: list[dict[str, Any]] = [
    _view("name", (), (("", "string"),)),
    _view("symbol", (), (("", "string"),)),
    _view("totalSupply", (), (("", "uint256"),)),
    _view("ownerOf", (("_tokenId", "uint256"),), (("", "address"),)),
    _view("balanceOf", (("_owner", "address"),), (("", "uint256"),)),
    _view("tokenURI", (("_tokenId", "uint256"),), (("", "string"),)),
    _view("getApproved", (("_tokenId", "uint256"),), (("", "address"),)),
    _view("isApprovedForAll", (("_owner", "address"), ("_operator", "address")), (("", "bool"),)),
    _write("transfer", (("_to", "address"), ("_tokenId", "uint256"))),
    _write("transferFrom", (("_from", "address"), ("_to", "address"), ("_tokenId", "uint256"))),
    _write("approve", (("_approved", "address"), ("_tokenId", "uint256"))),
    _write("setApprovalForAll", (("_operator", "address"), ("_approved", "bool"))),
    # Overloaded; resolved by argument count
    _write("safeTransferFrom", (("_to", "address"), ("_tokenId", "uint256"))),
    _write("safeTransferFrom", (("_from", "address"), ("_to", "address"), ("_tokenId", "uint256"))),
]

ERC1155_ABI: list[dict[str, Any]] = [
    _view("balanceOf", (("account", "address"), ("id", "uint256")), (("", "uint256"),)),
    _view("balanceOfBatch", (("accounts", "address[]"), ("ids", "uint256[]")), (("", "uint256[]"),)),
    _view("uri", (("id", "uint256"),), (("", "string"),)),
    _view("isApprovedForAll", (("account", "address"), ("operator", "address")), (("", "bool"),)),
    _write(
        "safeTransferFrom",
        (("from", "address"), ("to", "address"), ("id", "uint256"), ("amount", "uint256"), ("data", "bytes")),
    ),
    _write(
        "safeBatchTransferFrom",
        (
            ("from", "address"),
            ("to", "address"),
            ("ids", "uint256[]"),
            ("amounts", "uint256[]"),
            ("data", "bytes"),
        ),
    ),
    _write("setApprovalForAll", (("operator", "address"), ("approved", "bool"))),
    _write("mint", (("to", "address"), ("id", "uint256"), ("amount", "uint256"), ("data", "bytes"))),
    _write(
        "mintBatch",
        (("to", "address"), ("ids", "uint256[]"), ("amounts", "uint256[]"), ("data", "bytes")),
    ),
    _write("burn", (("from", "address"), ("id", "uint256"), ("amount", "uint256"))),
    _write("burnBatch", (("from", "address"), ("ids", "uint256[]"), ("amounts", "uint256[]"))),
]
