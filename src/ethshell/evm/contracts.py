"""The contract table: deployed and attached contracts by name."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from web3 import Web3

from ..constants import DeployType
from ..types import ContractSummary
from ..utils import is_address, same_address
from .proxy import ContractProxy

logger = logging.getLogger(__name__)


@dataclass
class ContractHandle:
    """A registered contract and the proxy used to call it."""

    index: int
    name: str
    address: str
    chain: str
    chain_id: int
    deploy_type: DeployType
    provider_url: str
    proxy: ContractProxy
    web3: Web3

    def summary(self, balance: int | None = None) -> ContractSummary:
        return ContractSummary(
            index=self.index,
            name=self.name,
            address=self.address,
            chain=self.chain,
            chain_id=self.chain_id,
            deploy_type=self.deploy_type,
            balance=balance,
        )


class ContractTable:
    """Name -> handle mapping whose indices follow creation order and are never reused."""

    def __init__(self) -> None:
        self._handles: dict[str, ContractHandle] = {}
        self._next_index = 0

    def __contains__(self, name: object) -> bool:
        return name in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[ContractHandle]:
        return iter(sorted(self._handles.values(), key=lambda handle: handle.index))

    def next_index(self) -> int:
        index = self._next_index
        self._next_index += 1
        return index

    def register(self, handle: ContractHandle) -> None:
        if handle.name in self._handles:
            logger.warning("Contract name %s was already bound; overwriting", handle.name)
        self._handles[handle.name] = handle

    def get(self, name: str) -> ContractHandle | None:
        return self._handles.get(name)

    def find(self, selector: int | str) -> ContractHandle | None:
        """Look up by table index, address or name."""

        if isinstance(selector, int) and not isinstance(selector, bool):
            return next((h for h in self._handles.values() if h.index == selector), None)
        if is_address(selector):
            return next(
                (h for h in self._handles.values() if same_address(h.address, selector)), None
            )
        return self._handles.get(selector)

    def summaries(self) -> list[ContractSummary]:
        """List every contract with its live balance (None when unreachable)."""

        result = []
        for handle in self:
            try:
                balance: Any = handle.web3.eth.get_balance(handle.address)
            except Exception as exc:
                logger.error("Failed to fetch balance of %s: %s", handle.name, exc)
                balance = None
            result.append(handle.summary(balance))
        return result
