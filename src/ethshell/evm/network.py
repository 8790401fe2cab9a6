"""Provider management for the ethshell session."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from web3 import HTTPProvider, Web3

from ..accounts.store import RegistryStore
from ..config import ConfigDocument, ShellSettings
from ..constants import get_chain_name
from ..exceptions import NetworkError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NetworkManager:
    """Own the current JSON-RPC endpoint and its Web3 instance."""

    def __init__(
        self,
        settings: ShellSettings,
        config: ConfigDocument,
        store: RegistryStore,
    ) -> None:
        self.settings = settings
        self.config = config
        self.store = store
        self._web3: Web3 | None = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def url(self) -> str:
        return self.config.provider_endpoint

    @property
    def web3(self) -> Web3:
        if self._web3 is None:
            self._web3 = self.build_web3(self.url)
        return self._web3

    def web3_for(self, rpc_url: str | None) -> Web3:
        """Return the current Web3, or a fresh one for a per-command override."""

        if not rpc_url or rpc_url == self.url:
            return self.web3
        web3 = self.build_web3(rpc_url)
        self.ensure_reachable(web3, rpc_url)
        return web3

    def default_endpoint(self) -> dict[str, str]:
        return {"url": self.settings.default_rpc_url}

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def set_endpoint(self, url: str) -> dict[str, Any]:
        """Switch to a new endpoint, persist it and report the network."""

        web3 = self.build_web3(url)
        self.ensure_reachable(web3, url)
        info = self.describe(web3, endpoint=url)

        self._web3 = web3
        self.config.provider_endpoint = url
        self.store.save_config(self.config)
        logger.info("Switched provider to %s (chain id %s)", url, info["chainId"])
        return {"url": url, **info}

    def info(self) -> dict[str, Any]:
        return {"url": self.url, **self.describe(self.web3, endpoint=self.url)}

    def describe(self, web3: Web3, *, endpoint: str | None = None) -> dict[str, Any]:
        chain_id = self.rpc(lambda: web3.eth.chain_id, "eth_chainId", endpoint=endpoint)
        return {"name": get_chain_name(chain_id), "chainId": int(chain_id)}

    def rpc(self, call: Callable[[], T], method: str, *, endpoint: str | None = None) -> T:
        """Run a provider call, wrapping transport failures as NetworkError."""

        try:
            return call()
        except NetworkError:
            raise
        except Exception as exc:
            raise NetworkError(
                f"RPC call {method} failed",
                endpoint=endpoint or self.url,
                details={"error": str(exc)},
            ) from exc

    # ------------------------------------------------------------------
    # Internal wiring
    # ------------------------------------------------------------------
    def build_web3(self, rpc_url: str) -> Web3:
        provider = HTTPProvider(rpc_url, request_kwargs={"timeout": self.settings.request_timeout})
        return Web3(provider)

    def ensure_reachable(self, web3: Web3, rpc_url: str) -> None:
        if not web3.is_connected():
            raise NetworkError("Unable to connect to RPC endpoint", endpoint=rpc_url)
