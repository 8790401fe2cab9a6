"""Type definitions and data models for ethshell."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .constants import DeployType


class AccountType(str, Enum):
    """Origin of an account record."""

    USER_IMPORTED = "user-imported"
    USER_GENERATED = "user-generated"
    NODE_MANAGED = "node-managed"


class AccountView(str, Enum):
    """Views over the account registry."""

    ALL = "all"
    FLAT = "flat"
    HD = "hd"


@dataclass
class ContractRef:
    """A contract deployed or attached by an account."""

    address: str
    deployed_on: str
    chain_id: int

    def to_dict(self) -> dict[str, Any]:
        return {"address": self.address, "deployedOn": self.deployed_on, "chainId": self.chain_id}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContractRef":
        return cls(
            address=data["address"],
            deployed_on=data.get("deployedOn", "unknown"),
            chain_id=int(data.get("chainId", 0)),
        )


@dataclass
class AccountRecord:
    """A managed signing identity plus bookkeeping metadata."""

    index: int
    address: str
    type: AccountType
    private_key: str | None = None
    phrase: str | None = None
    path: str | None = None
    depth: int | None = None
    contracts: list[ContractRef] = field(default_factory=list)
    nonce: int | None = None
    balance: int | None = None

    @property
    def is_hd(self) -> bool:
        return self.phrase is not None

    @property
    def is_node_managed(self) -> bool:
        return self.type is AccountType.NODE_MANAGED

    def to_dict(self) -> dict[str, Any]:
        """Return the record in its persisted (camelCase) layout."""

        data: dict[str, Any] = {"index": self.index, "address": self.address}
        if self.private_key is not None:
            data["privateKey"] = self.private_key
        data["type"] = self.type.value
        if self.phrase is not None:
            data["phrase"] = self.phrase
        if self.path is not None:
            data["path"] = self.path
        if self.depth is not None:
            data["depth"] = self.depth
        if self.nonce is not None:
            data["nonce"] = self.nonce
        if self.balance is not None:
            data["balance"] = self.balance
        data["contracts"] = [ref.to_dict() for ref in self.contracts]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AccountRecord":
        """Rebuild a record from its persisted layout."""

        balance = data.get("balance")
        nonce = data.get("nonce")
        depth = data.get("depth")
        return cls(
            index=int(data.get("index", 0)),
            address=data["address"],
            type=AccountType(data.get("type", AccountType.USER_IMPORTED.value)),
            private_key=data.get("privateKey"),
            phrase=data.get("phrase"),
            path=data.get("path"),
            depth=int(depth) if depth is not None else None,
            contracts=[ContractRef.from_dict(ref) for ref in data.get("contracts") or []],
            nonce=int(nonce) if nonce is not None else None,
            balance=int(balance) if balance is not None else None,
        )


@dataclass
class DeploymentResult:
    """Outcome of a deploy or attach command."""

    success: bool
    name: str
    deploy_type: DeployType
    index: int | None = None
    address: str | None = None
    chain: str | None = None
    chain_id: int | None = None
    transaction_hash: str | None = None
    transaction: dict[str, Any] | None = None
    error: str | None = None


@dataclass
class ContractSummary:
    """Listing entry for a registered contract."""

    index: int
    name: str
    address: str
    chain: str
    chain_id: int
    deploy_type: DeployType
    balance: int | None = None

