"""Constants and mappings for evmkit."""

from enum import IntEnum

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# m/44'/60'/0'/0/{index}
DERIVATION_PATH_TEMPLATE = "m/44'/60'/0'/0/{index}"
DEFAULT_DERIVATION_PATH = DERIVATION_PATH_TEMPLATE.format(index=0)

# Ethereum block gas limit used as an upper bound for explicit gas limits
MAX_GAS_LIMIT = 30_000_000


class ChainID(IntEnum):
    """Chain identifiers with known network names."""

    ETHEREUM = 1
    ROPSTEN = 3
    RINKEBY = 4
    GOERLI = 5
    OPTIMISM = 10
    KOVAN = 42
    BSC = 56
    BSC_TESTNET = 97
    POLYGON = 137
    FANTOM = 250
    OPTIMISM_GOERLI = 420
    FANTOM_TESTNET = 4002
    BASE = 8453
    ARBITRUM_ONE = 42161
    AVALANCHE_FUJI = 43113
    AVALANCHE = 43114
    POLYGON_MUMBAI = 80001
    ARBITRUM_GOERLI = 421613


NETWORK_NAMES = {
    ChainID.ETHEREUM: "Ethereum Mainnet",
    ChainID.ROPSTEN: "Ropsten Testnet",
    ChainID.RINKEBY: "Rinkeby Testnet",
    ChainID.GOERLI: "Goerli Testnet",
    ChainID.OPTIMISM: "Optimism",
    ChainID.KOVAN: "Kovan Testnet",
    ChainID.BSC: "BSC Mainnet",
    ChainID.BSC_TESTNET: "BSC Testnet",
    ChainID.POLYGON: "Polygon Mainnet",
    ChainID.FANTOM: "Fantom Opera",
    ChainID.OPTIMISM_GOERLI: "Optimism Goerli",
    ChainID.FANTOM_TESTNET: "Fantom Testnet",
    ChainID.BASE: "Base",
    ChainID.ARBITRUM_ONE: "Arbitrum One",
    ChainID.AVALANCHE_FUJI: "Avalanche Fuji Testnet",
    ChainID.AVALANCHE: "Avalanche C-Chain",
    ChainID.POLYGON_MUMBAI: "Polygon Mumbai Testnet",
    ChainID.ARBITRUM_GOERLI: "Arbitrum Goerli",
}

# Public endpoints per chain, consumed by ChainRegistry
DEFAULT_RPC_ENDPOINTS: dict[int, tuple[str, ...]] = {
    ChainID.ETHEREUM: (
        "https://1rpc.io/eth",
        "https://eth.llamarpc.com",
        "https://eth.drpc.org",
    ),
    ChainID.BSC: (
        "https://binance.llamarpc.com",
        "https://1rpc.io/bnb",
    ),
    ChainID.BASE: ("https://base.llamarpc.com",),
}

CHAIN_ALIASES = {
    "eth": ChainID.ETHEREUM,
    "ethereum": ChainID.ETHEREUM,
    "bsc": ChainID.BSC,
    "binance": ChainID.BSC,
    "base": ChainID.BASE,
}


def get_network_name(chain_id: int) -> str:
    """Get the human readable network name for a chain id.

    Args:
        chain_id: Numeric chain identifier

    Returns:
        Network name, or a placeholder naming the unknown id
    """
    try:
        return NETWORK_NAMES[ChainID(chain_id)]
    except ValueError:
        return f"Unknown Network (ChainID: {chain_id})"


def get_chain_id(name: str) -> int:
    """Get the chain id for a short network alias, defaulting to Ethereum."""
    return int(CHAIN_ALIASES.get(name.strip().lower(), ChainID.ETHEREUM))
