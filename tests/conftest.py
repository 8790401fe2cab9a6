from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import solcx
from eth_utils import keccak
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import TimeExhausted

from ethshell.accounts.registry import AccountRegistry
from ethshell.accounts.store import RegistryStore
from ethshell.config import ConfigDocument, ShellSettings
from ethshell.evm.network import NetworkManager

KEY_A = "0x" + "11" * 32
KEY_B = "0x" + "22" * 32
KEY_C = "0x" + "33" * 32
TEST_PHRASE = "test test test test test test test test test test test junk"
TEST_PHRASE_FIRST = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
DEPLOYED_ADDRESS = Web3.to_checksum_address("0x5fbdb2315678afecb367f032d93f642f64180aa3")

TOKEN_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "transfer",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint256"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "configure",
        "stateMutability": "nonpayable",
        "inputs": [
            {
                "name": "settings",
                "type": "tuple",
                "components": [
                    {"name": "value", "type": "uint256"},
                    {"name": "gas", "type": "uint256"},
                ],
            }
        ],
        "outputs": [],
    },
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
]


class DummyFunction:
    def __init__(self, contract: DummyContract, name: str, args: tuple[Any, ...]) -> None:
        self.contract = contract
        self.name = name
        self.args = args

    def build_transaction(self, params: dict[str, Any]) -> dict[str, Any]:
        self.contract.built.append((self.name, self.args, dict(params)))
        transaction = {
            "nonce": params["nonce"],
            "gas": params.get("gas", 100_000),
            "gasPrice": params.get("gasPrice", 1),
            "value": params.get("value", 0),
            "data": "0x",
            "chainId": 31337,
        }
        if self.contract.address is not None:
            transaction["to"] = self.contract.address
        return transaction

    def call(self, params: dict[str, Any]) -> Any:
        self.contract.calls.append((self.name, self.args, dict(params)))
        return self.contract.read_values.get(self.name)

    def transact(self, params: dict[str, Any]) -> HexBytes:
        self.contract.transacted.append((self.name, self.args, dict(params)))
        return self.contract.w3.eth.register_transaction(repr((self.name, self.args)).encode())


class DummyFunctions:
    def __init__(self, contract: DummyContract) -> None:
        self._contract = contract

    def __getattr__(self, name: str) -> Any:
        return lambda *args: DummyFunction(self._contract, name, args)


class DummyContract:
    def __init__(
        self,
        w3: DummyWeb3,
        abi: list[dict[str, Any]],
        address: str | None = None,
        bytecode: str | None = None,
    ) -> None:
        self.w3 = w3
        self.abi = abi
        self.address = address
        self.bytecode = bytecode
        self.functions = DummyFunctions(self)
        self.read_values: dict[str, Any] = {}
        self.built: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []
        self.transacted: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def constructor(self, *args: Any) -> DummyFunction:
        return DummyFunction(self, "constructor", args)


class DummyEth:
    def __init__(self, w3: DummyWeb3) -> None:
        self._w3 = w3
        self.chain_id = 31337
        self.accounts: list[str] = []
        self.balances: dict[str, int] = {}
        self.counts: dict[str, int] = {}
        self.raw_transactions: list[bytes] = []
        self.receipts: dict[bytes, dict[str, Any]] = {}
        self.mine = True
        self.status = 1
        self.contract_address = DEPLOYED_ADDRESS
        self.contracts: list[DummyContract] = []
        self.fail_rpc = False

    def _check(self) -> None:
        if self.fail_rpc:
            raise ConnectionError("node unreachable")

    def get_balance(self, address: str) -> int:
        self._check()
        return self.balances.get(address, 0)

    def get_transaction_count(self, address: str, block: str = "latest") -> int:
        self._check()
        return self.counts.get(address, 0)

    def register_transaction(self, payload: bytes) -> HexBytes:
        tx_hash = HexBytes(keccak(payload))
        self.receipts[bytes(tx_hash)] = {
            "transactionHash": tx_hash,
            "status": self.status,
            "blockNumber": len(self.receipts) + 1,
            "contractAddress": self.contract_address,
            "logs": [],
        }
        return tx_hash

    def send_raw_transaction(self, raw: bytes) -> HexBytes:
        self._check()
        self.raw_transactions.append(bytes(raw))
        return self.register_transaction(bytes(raw))

    def wait_for_transaction_receipt(self, tx_hash: HexBytes, timeout: float) -> dict[str, Any]:
        if not self.mine:
            raise TimeExhausted(f"not mined in {timeout}")
        return self.receipts[bytes(tx_hash)]

    def get_transaction(self, tx_hash: HexBytes) -> dict[str, Any]:
        return {"hash": HexBytes(tx_hash), "input": "0xdeadbeef", "value": 0, "blockNumber": 1}

    def contract(
        self,
        address: str | None = None,
        abi: list[dict[str, Any]] | None = None,
        bytecode: str | None = None,
    ) -> DummyContract:
        contract = DummyContract(self._w3, abi or [], address=address, bytecode=bytecode)
        self.contracts.append(contract)
        return contract


class DummyWeb3:
    def __init__(self) -> None:
        self.eth = DummyEth(self)
        self.connected = True

    def is_connected(self) -> bool:
        return self.connected


class DummySolcx:
    """Records py-solc-x calls and answers with canned standard-JSON output."""

    def __init__(self) -> None:
        self.installed: list[str] = []
        self.active: str | None = None
        self.inputs: list[dict[str, Any]] = []
        self.kwargs: list[dict[str, Any]] = []
        self.error: Exception | None = None

    def install_solc(self, version: str) -> str:
        self.installed.append(version)
        return version

    def set_solc_version(self, version: str) -> None:
        self.active = version

    def compile_standard(self, input_data: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        self.inputs.append(input_data)
        self.kwargs.append(kwargs)
        units = {
            "Token": {"abi": TOKEN_ABI, "evm": {"bytecode": {"object": "6080"}}, "metadata": "{}"},
            "Helper": {"abi": [], "evm": {"bytecode": {"object": "6001"}}, "metadata": "{}"},
        }
        return {
            "contracts": {source_key: units for source_key in input_data["sources"]},
            "errors": [{"severity": "warning", "formattedMessage": "Warning: unused variable"}],
        }


@pytest.fixture
def solc(monkeypatch: pytest.MonkeyPatch) -> DummySolcx:
    dummy = DummySolcx()
    monkeypatch.setattr(solcx, "install_solc", dummy.install_solc)
    monkeypatch.setattr(solcx, "set_solc_version", dummy.set_solc_version)
    monkeypatch.setattr(solcx, "compile_standard", dummy.compile_standard)
    return dummy


@pytest.fixture
def settings(tmp_path: Path) -> ShellSettings:
    return ShellSettings(
        data_dir=tmp_path / "ethshell",
        build_dir=tmp_path / "build",
        request_timeout=1.0,
        receipt_timeout=1.0,
    )


@pytest.fixture
def store(settings: ShellSettings) -> RegistryStore:
    return RegistryStore(settings.data_dir)


@pytest.fixture
def config() -> ConfigDocument:
    return ConfigDocument()


@pytest.fixture
def web3() -> DummyWeb3:
    return DummyWeb3()


@pytest.fixture
def network(
    settings: ShellSettings,
    config: ConfigDocument,
    store: RegistryStore,
    web3: DummyWeb3,
    monkeypatch: pytest.MonkeyPatch,
) -> NetworkManager:
    manager = NetworkManager(settings, config, store)
    monkeypatch.setattr(manager, "build_web3", lambda url: web3)
    return manager


@pytest.fixture
def registry(
    store: RegistryStore, config: ConfigDocument, network: NetworkManager
) -> AccountRegistry:
    registry = AccountRegistry(store, config, network=network)
    registry.load()
    return registry
