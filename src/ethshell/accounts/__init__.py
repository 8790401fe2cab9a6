"""Account registry, signers and wallet persistence."""

from .registry import AccountRegistry
from .signers import LocalSigner, NodeSigner, Signer
from .store import RegistryStore

__all__ = [
    "AccountRegistry",
    "LocalSigner",
    "NodeSigner",
    "RegistryStore",
    "Signer",
]
