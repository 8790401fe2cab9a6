"""ethshell - interactive developer shell for EVM contracts.

Manages local development keys, talks to a JSON-RPC node, deploys and
attaches contracts, and dispatches contract calls as signed transactions
or read-only calls.
"""

__version__ = "0.1.0"

from .accounts import AccountRegistry, LocalSigner, NodeSigner, RegistryStore
from .config import CompilerSettings, ConfigDocument, ShellSettings
from .constants import DeployType
from .evm import (
    ArtifactIndex,
    ContractProxy,
    ContractTable,
    DeploymentOrchestrator,
    NetworkManager,
)
from .exceptions import (
    CompilationError,
    DuplicateKeyError,
    DuplicatePhraseError,
    EmptyNameError,
    EthShellError,
    IndexOutOfRangeError,
    MissingAbiError,
    MissingAddressError,
    NetworkError,
    NotFoundError,
    SignerNotAvailableError,
    TransactionTimeoutError,
    UnknownSignerError,
    ValidationError,
)
from .session import ShellSession
from .types import (
    AccountRecord,
    AccountType,
    AccountView,
    ContractRef,
    ContractSummary,
    DeploymentResult,
)
from .utils import serialise_value

__all__ = [
    # Session and components
    "ShellSession",
    "AccountRegistry",
    "RegistryStore",
    "LocalSigner",
    "NodeSigner",
    "NetworkManager",
    "ContractProxy",
    "ContractTable",
    "ArtifactIndex",
    "DeploymentOrchestrator",
    # Configuration
    "ShellSettings",
    "ConfigDocument",
    "CompilerSettings",
    # Types and enums
    "AccountRecord",
    "AccountType",
    "AccountView",
    "ContractRef",
    "ContractSummary",
    "DeploymentResult",
    "DeployType",
    # Exceptions
    "EthShellError",
    "ValidationError",
    "EmptyNameError",
    "MissingAddressError",
    "MissingAbiError",
    "DuplicateKeyError",
    "DuplicatePhraseError",
    "IndexOutOfRangeError",
    "UnknownSignerError",
    "SignerNotAvailableError",
    "NetworkError",
    "TransactionTimeoutError",
    "NotFoundError",
    "CompilationError",
    # Utility functions
    "serialise_value",
]
