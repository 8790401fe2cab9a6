"""Explicitly constructed shell session wiring every component together."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import Any

from .accounts.registry import AccountRegistry
from .accounts.store import RegistryStore
from .config import ConfigDocument, ShellSettings
from .constants import DEFAULT_CONTRACTS_DIR
from .evm.artifacts import ArtifactIndex, clean_build_dir
from .evm.compiler import compile_contracts, current_version, use_solc_version
from .evm.contracts import ContractTable
from .evm.deployment import DeploymentOrchestrator
from .evm.network import NetworkManager
from .types import AccountView, DeploymentResult

logger = logging.getLogger(__name__)


class ShellSession:
    """Own the registry, provider, artifacts and contract table for one shell."""

    def __init__(self, settings: ShellSettings) -> None:
        self.settings = settings
        self.store = RegistryStore(settings.data_dir, default_rpc_url=settings.default_rpc_url)
        self.config = ConfigDocument(provider_endpoint=settings.default_rpc_url)
        self.network = NetworkManager(settings, self.config, self.store)
        self.registry = AccountRegistry(
            self.store, self.config, network=self.network, strict=settings.strict_lookups
        )
        self.artifacts = ArtifactIndex(settings.data_dir)
        self.contracts = ContractTable()
        self.orchestrator = DeploymentOrchestrator(
            self.registry,
            self.network,
            self.artifacts,
            self.contracts,
            receipt_timeout=settings.receipt_timeout,
        )
        self._namespace: dict[str, Any] = {}
        self._opened = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def open(self) -> ShellSession:
        """Load persisted config and wallets."""

        loaded = self.store.load_config()
        self.config.provider_endpoint = loaded.provider_endpoint
        self.config.default_wallet = loaded.default_wallet
        self.config.compiler = loaded.compiler
        self.registry.load()
        self._opened = True
        logger.info(
            "Session opened with %d accounts, provider %s", len(self.registry), self.network.url
        )
        return self

    def close(self) -> None:
        if self._opened:
            self.registry.flush()
            self._opened = False

    def __enter__(self) -> ShellSession:
        return self.open()

    def __exit__(self, *_exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Commands not owned by a component
    # ------------------------------------------------------------------
    def deploy(self, name: str, *args: Any, **kwargs: Any) -> DeploymentResult:
        result = self.orchestrator.deploy(name, *args, **kwargs)
        self._publish(result)
        return result

    def attach(self, name: str, *args: Any, **kwargs: Any) -> DeploymentResult:
        result = self.orchestrator.attach(name, *args, **kwargs)
        self._publish(result)
        return result

    def list_contracts(self, selector: int | str | None = None) -> Any:
        summaries = self.contracts.summaries()
        if selector is None:
            return summaries
        handle = self.contracts.find(selector)
        if handle is None:
            return None
        return next((s for s in summaries if s.index == handle.index), None)

    def events(self, contract: str, receipt: Any) -> list[dict[str, Any]]:
        handle = self.contracts.get(contract)
        if handle is None:
            raise KeyError(f"Unknown contract '{contract}'")
        return handle.proxy.events(receipt)

    def config_info(self) -> dict[str, Any]:
        return self.config.to_dict()

    def compiler_options(
        self,
        optimizer: bool | None = None,
        optimizer_runs: int | None = None,
        via_ir: bool | None = None,
        version: str | None = None,
    ) -> dict[str, Any]:
        """Update persisted compiler options; unset arguments keep their value.

        A `version` is installed when missing and becomes the active solc.
        """

        changes: dict[str, Any] = {}
        if version is not None:
            changes["version"] = use_solc_version(version)
        if optimizer is not None:
            changes["optimizer"] = optimizer
        if optimizer_runs is not None:
            changes["optimizer_runs"] = optimizer_runs
        if via_ir is not None:
            changes["via_ir"] = via_ir
        if changes:
            self.config.compiler = replace(self.config.compiler, **changes)
            self.store.save_config(self.config)
        return self.config.compiler.to_dict()

    def compiler_version(self) -> str | None:
        return current_version()

    def compile(
        self,
        source_path: str | None = None,
        selected: str | list[str] | None = None,
        build_dir: str | None = None,
    ) -> list[str]:
        """Compile a .sol file or directory and index the artifacts for `deploy`."""

        if isinstance(selected, str):
            selected = [selected]
        output_dir = Path(build_dir or self.settings.build_dir)
        saved = compile_contracts(
            source_path or DEFAULT_CONTRACTS_DIR,
            output_dir,
            self.artifacts,
            self.config.compiler,
            selected,
        )
        if self.config.compiler.compile_path != str(output_dir):
            self.config.compiler = replace(self.config.compiler, compile_path=str(output_dir))
            self.store.save_config(self.config)
        return saved

    def clean(self, build_dir: str | None = None) -> bool:
        return clean_build_dir(build_dir or self.settings.build_dir)

    # ------------------------------------------------------------------
    # REPL namespace
    # ------------------------------------------------------------------
    def namespace(self) -> dict[str, Any]:
        """Commands exposed to the interactive console."""

        registry = self.registry
        commands: dict[str, Callable[..., Any]] = {
            # Network
            "chain": self.network.set_endpoint,
            "chain_info": self.network.info,
            "default_chain": self.network.default_endpoint,
            # Config
            "config_info": self.config_info,
            "compiler_options": self.compiler_options,
            "compiler_version": self.compiler_version,
            "compile": self.compile,
            "change_def_wallet": registry.set_default,
            "def_wallet": lambda: registry.default_snapshot,
            "clean": self.clean,
            # Wallets
            "add_wallet": registry.add_from_key,
            "add_hd_wallet": registry.add_from_mnemonic,
            "new_wallet": registry.create_random,
            "new_hd_wallet": registry.create_random_hd,
            "remove_wallet": registry.remove,
            "connect_wallet": registry.connect_node_accounts,
            "wallets": lambda: registry.accounts(AccountView.FLAT),
            "all_wallets": lambda: registry.accounts(AccountView.ALL),
            "hd_wallets": lambda: registry.accounts(AccountView.HD),
            "wallet_info": registry.info,
            # Contracts
            "deploy": self.deploy,
            "add_contract": self.attach,
            "contracts": self.list_contracts,
            "events": self.events,
        }
        self._namespace.update(commands)
        self._namespace["session"] = self
        for handle in self.contracts:
            self._namespace[handle.name] = handle.proxy
        return self._namespace

    def _publish(self, result: DeploymentResult) -> None:
        if not result.success:
            return
        handle = self.contracts.get(result.name)
        if handle is not None:
            self._namespace[result.name] = handle.proxy
