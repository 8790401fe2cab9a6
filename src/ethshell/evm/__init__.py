"""Provider, contract dispatch and deployment helpers."""

from .artifacts import (
    ArtifactIndex,
    clean_build_dir,
    load_abi,
    load_bytecode,
    save_compiler_output,
)
from .compiler import compile_contracts, use_solc_version
from .contracts import ContractHandle, ContractTable
from .deployment import DeploymentOrchestrator
from .network import NetworkManager
from .proxy import ContractProxy, MethodDescriptor, build_method_table
from .transactions import normalise_tx_options, wait_for_receipt

__all__ = [
    "ArtifactIndex",
    "ContractHandle",
    "ContractProxy",
    "ContractTable",
    "DeploymentOrchestrator",
    "MethodDescriptor",
    "NetworkManager",
    "build_method_table",
    "clean_build_dir",
    "compile_contracts",
    "load_abi",
    "load_bytecode",
    "normalise_tx_options",
    "save_compiler_output",
    "use_solc_version",
    "wait_for_receipt",
]
