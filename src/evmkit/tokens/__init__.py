"""Facades for the standard token interfaces."""

from .abis import ERC20_ABI, ERC721_ABI, ERC1155_ABI
from .base import TokenContract
from .erc20 import ERC20
from .erc721 import ERC721
from .erc1155 import ERC1155

__all__ = [
    "ERC20",
    "ERC20_ABI",
    "ERC721",
    "ERC721_ABI",
    "ERC1155",
    "ERC1155_ABI",
    "TokenContract",
]
