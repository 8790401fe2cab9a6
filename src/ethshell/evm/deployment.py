"""Deploy new contracts or attach to existing ones and register them by name."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from hexbytes import HexBytes
from web3 import Web3

from ..accounts.registry import AccountRegistry
from ..accounts.signers import Signer
from ..constants import DeployType
from ..exceptions import (
    EmptyNameError,
    MissingAbiError,
    MissingAddressError,
    NetworkError,
    ValidationError,
)
from ..types import AccountRecord, ContractRef, DeploymentResult
from ..utils import is_address, serialise_value
from .artifacts import ArtifactIndex, load_abi, load_bytecode
from .contracts import ContractHandle, ContractTable
from .network import NetworkManager
from .proxy import ContractProxy
from .transactions import wait_for_receipt

logger = logging.getLogger(__name__)


class DeploymentOrchestrator:
    """Create or wrap on-chain contracts and bind them into the contract table."""

    def __init__(
        self,
        registry: AccountRegistry,
        network: NetworkManager,
        artifacts: ArtifactIndex,
        contracts: ContractTable,
        *,
        receipt_timeout: float,
    ) -> None:
        self._registry = registry
        self._network = network
        self._artifacts = artifacts
        self._contracts = contracts
        self._receipt_timeout = receipt_timeout

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def deploy(
        self,
        name: str,
        args: Sequence[Any] | None = None,
        account: int | str | None = None,
        rpc_url: str | None = None,
        abi_path: str | None = None,
        bytecode_path: str | None = None,
    ) -> DeploymentResult:
        if not name:
            raise EmptyNameError()

        record = self._registry.resolve(account)
        abi = load_abi(self._abi_location(name, abi_path))
        bytecode = load_bytecode(self._bytecode_location(name, bytecode_path))
        constructor_args = list(args or [])

        try:
            web3 = self._network.web3_for(rpc_url)
            chain = self._network.describe(web3, endpoint=rpc_url)
            signer = self._registry.signer_for(record)
            factory = web3.eth.contract(abi=abi, bytecode=bytecode)

            try:
                tx_hash = signer.send(web3, factory.constructor(*constructor_args), {})
            except Exception as exc:
                raise NetworkError(
                    f"Failed to submit deployment of {name}",
                    endpoint=rpc_url or self._network.url,
                    details={"args": constructor_args, "error": str(exc)},
                ) from exc

            receipt = wait_for_receipt(
                web3, tx_hash, timeout=self._receipt_timeout, action=f"deploy {name}"
            )
            if receipt.get("status", 1) == 0:
                raise NetworkError(
                    f"Deployment of {name} reverted",
                    details={"tx_hash": HexBytes(tx_hash).to_0x_hex()},
                )
            address = Web3.to_checksum_address(receipt["contractAddress"])
            transaction = self._network.rpc(
                lambda: web3.eth.get_transaction(tx_hash), "eth_getTransactionByHash"
            )
        except NetworkError as exc:
            logger.error("Deployment of %s failed: %s", name, exc)
            return DeploymentResult(
                success=False, name=name, deploy_type=DeployType.DEPLOYED, error=str(exc)
            )

        handle = self._bind(
            name, address, abi, web3, signer, record, chain, DeployType.DEPLOYED, rpc_url
        )
        summary = {
            key: value
            for key, value in serialise_value(dict(transaction)).items()
            if key not in {"input", "data"}
        }
        logger.info("Deployed %s at %s on %s", name, address, handle.chain)
        return DeploymentResult(
            success=True,
            name=name,
            deploy_type=DeployType.DEPLOYED,
            index=handle.index,
            address=address,
            chain=handle.chain,
            chain_id=handle.chain_id,
            transaction_hash=HexBytes(tx_hash).to_0x_hex(),
            transaction=summary,
        )

    def attach(
        self,
        name: str,
        address: str,
        account: int | str | None = None,
        abi_path: str | None = None,
        rpc_url: str | None = None,
    ) -> DeploymentResult:
        if not name:
            raise EmptyNameError()
        if not address:
            raise MissingAddressError()
        if not is_address(address):
            raise ValidationError("Invalid contract address", field="address", value=address)

        record = self._registry.resolve(account)
        abi = load_abi(self._abi_location(name, abi_path))
        checksum = Web3.to_checksum_address(address)

        try:
            web3 = self._network.web3_for(rpc_url)
            chain = self._network.describe(web3, endpoint=rpc_url)
        except NetworkError as exc:
            logger.error("Attaching %s failed: %s", name, exc)
            return DeploymentResult(
                success=False, name=name, deploy_type=DeployType.PRE_DEPLOYED, error=str(exc)
            )

        signer = self._registry.signer_for(record)
        handle = self._bind(
            name, checksum, abi, web3, signer, record, chain, DeployType.PRE_DEPLOYED, rpc_url
        )
        logger.info("Attached %s at %s on %s", name, checksum, handle.chain)
        return DeploymentResult(
            success=True,
            name=name,
            deploy_type=DeployType.PRE_DEPLOYED,
            index=handle.index,
            address=checksum,
            chain=handle.chain,
            chain_id=handle.chain_id,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _bind(
        self,
        name: str,
        address: str,
        abi: list[dict[str, Any]],
        web3: Web3,
        signer: Signer,
        record: AccountRecord,
        chain: dict[str, Any],
        deploy_type: DeployType,
        rpc_url: str | None,
    ) -> ContractHandle:
        contract = web3.eth.contract(address=address, abi=abi)
        proxy = ContractProxy(
            contract, signer, self._registry, receipt_timeout=self._receipt_timeout
        )
        handle = ContractHandle(
            index=self._contracts.next_index(),
            name=name,
            address=address,
            chain=chain["name"],
            chain_id=chain["chainId"],
            deploy_type=deploy_type,
            provider_url=rpc_url or self._network.url,
            proxy=proxy,
            web3=web3,
        )
        self._contracts.register(handle)
        ref = ContractRef(address=address, deployed_on=chain["name"], chain_id=chain["chainId"])
        self._registry.record_contract(record, ref)
        return handle

    def _abi_location(self, name: str, abi_path: str | None) -> str:
        location = abi_path or self._artifacts.abi_path(name)
        if not location:
            raise MissingAbiError(name)
        return location

    def _bytecode_location(self, name: str, bytecode_path: str | None) -> str:
        location = bytecode_path or self._artifacts.bytecode_path(name)
        if not location:
            raise ValidationError(
                f"No bytecode available for contract '{name}'", field="bytecode_path", value=name
            )
        return location
