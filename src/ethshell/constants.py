"""Constants shared across the ethshell package."""

from enum import Enum

DEFAULT_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_DATA_DIR = "./ethshell"
DEFAULT_BUILD_DIR = "./build"
DEFAULT_CONTRACTS_DIR = "./contracts"

WALLETS_FILE = "wallets.json"
CONFIG_FILE = "config.json"
ARTIFACT_INDEX_FILE = "artifacts.json"

# Standard Ethereum BIP-44 prefix; children are derived at the last level.
HD_BASE_PATH = "m/44'/60'/0'/0"
HD_DEFAULT_COUNT = 10
MNEMONIC_WORD_COUNTS = frozenset({12, 15, 18, 21, 24})

# Largest integer a JSON consumer can hold without precision loss.
MAX_SAFE_INTEGER = 2**53 - 1

SAFETY_WARNING = "!WARNING! The generated accounts are NOT safe. Do NOT use them on main net!"

# Per-call option keys recognised by the dispatch proxy.
TX_OPTION_KEYS = frozenset(
    {
        "value",
        "nonce",
        "gasLimit",
        "gas",
        "gasPrice",
        "maxFeePerGas",
        "maxPriorityFeePerGas",
        "chainId",
        "accessList",
        "type",
        "customData",
        "from",
    }
)

# Chain ids with well known names; anything else reports as "unknown".
KNOWN_CHAINS = {
    1: "mainnet",
    10: "optimism",
    56: "bnb",
    137: "matic",
    8453: "base",
    17000: "holesky",
    42161: "arbitrum",
    84532: "base-sepolia",
    11155111: "sepolia",
}


class DeployType(str, Enum):
    """How a contract entered the contract table."""

    DEPLOYED = "deployed"
    PRE_DEPLOYED = "pre-deployed"


def get_chain_name(chain_id: int) -> str:
    """Get the well known name of a chain id.

    Args:
        chain_id: Numeric EIP-155 chain id

    Returns:
        Chain name, or "unknown" for local and unlisted chains
    """
    return KNOWN_CHAINS.get(int(chain_id), "unknown")
