"""Configuration containers for the ethshell session."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .constants import DEFAULT_BUILD_DIR, DEFAULT_DATA_DIR, DEFAULT_RPC_URL

DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_RECEIPT_TIMEOUT = 120.0
DEFAULT_OPTIMIZER_RUNS = 200


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ShellSettings:
    """Process-level settings resolved from the environment."""

    data_dir: Path = Path(DEFAULT_DATA_DIR)
    build_dir: Path = Path(DEFAULT_BUILD_DIR)
    default_rpc_url: str = DEFAULT_RPC_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    strict_lookups: bool = False

    @classmethod
    def from_env(cls) -> ShellSettings:
        """Read ETHSHELL_* variables; call load_dotenv() first to honour a .env file."""

        return cls(
            data_dir=Path(os.getenv("ETHSHELL_HOME", DEFAULT_DATA_DIR)),
            build_dir=Path(os.getenv("ETHSHELL_BUILD_DIR", DEFAULT_BUILD_DIR)),
            default_rpc_url=os.getenv("ETHSHELL_RPC_URL", DEFAULT_RPC_URL),
            request_timeout=float(os.getenv("ETHSHELL_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)),
            receipt_timeout=float(os.getenv("ETHSHELL_RECEIPT_TIMEOUT", DEFAULT_RECEIPT_TIMEOUT)),
            strict_lookups=_env_bool("ETHSHELL_STRICT"),
        )


@dataclass(frozen=True)
class CompilerSettings:
    """Compiler options persisted for the external compiler service."""

    version: str | None = None
    optimizer: bool = False
    optimizer_runs: int = DEFAULT_OPTIMIZER_RUNS
    via_ir: bool = False
    compile_path: str = DEFAULT_BUILD_DIR

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "optimizer": self.optimizer,
            "optimizerRuns": self.optimizer_runs,
            "viaIR": self.via_ir,
            "compilePath": self.compile_path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> CompilerSettings:
        if not data:
            return cls()
        return cls(
            version=data.get("version"),
            optimizer=bool(data.get("optimizer", False)),
            optimizer_runs=int(data.get("optimizerRuns", DEFAULT_OPTIMIZER_RUNS)),
            via_ir=bool(data.get("viaIR", False)),
            compile_path=data.get("compilePath") or DEFAULT_BUILD_DIR,
        )


@dataclass
class ConfigDocument:
    """The persisted config document; an empty default_wallet means no default."""

    provider_endpoint: str = DEFAULT_RPC_URL
    default_wallet: dict[str, Any] = field(default_factory=dict)
    compiler: CompilerSettings = CompilerSettings()

    def to_dict(self) -> dict[str, Any]:
        return {
            "providerEndpoint": self.provider_endpoint,
            "defaultWallet": dict(self.default_wallet),
            "compiler": self.compiler.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None, *, default_rpc_url: str) -> ConfigDocument:
        data = data or {}
        return cls(
            provider_endpoint=data.get("providerEndpoint") or default_rpc_url,
            default_wallet=dict(data.get("defaultWallet") or {}),
            compiler=CompilerSettings.from_dict(data.get("compiler")),
        )
