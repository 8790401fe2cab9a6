from __future__ import annotations

import logging

import pytest
from eth_account import Account

from ethshell.accounts.registry import AccountRegistry
from ethshell.accounts.signers import LocalSigner, NodeSigner
from ethshell.accounts.store import RegistryStore
from ethshell.config import ConfigDocument
from ethshell.constants import SAFETY_WARNING
from ethshell.evm.network import NetworkManager
from ethshell.exceptions import (
    DuplicateKeyError,
    DuplicatePhraseError,
    IndexOutOfRangeError,
    NotFoundError,
    SignerNotAvailableError,
    UnknownSignerError,
    ValidationError,
)
from ethshell.types import AccountRecord, AccountType, AccountView

from .conftest import KEY_A, KEY_B, KEY_C, TEST_PHRASE, TEST_PHRASE_FIRST, DummyWeb3

ADDRESS_A = Account.from_key(KEY_A).address
ADDRESS_B = Account.from_key(KEY_B).address
ADDRESS_C = Account.from_key(KEY_C).address
NODE_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


def _indices(records: tuple[AccountRecord, ...] | list[AccountRecord]) -> list[int]:
    return [record.index for record in records]


def _addresses(records: tuple[AccountRecord, ...] | list[AccountRecord]) -> list[str]:
    return [record.address for record in records]


# ----------------------------------------------------------------------
# Insertion
# ----------------------------------------------------------------------
def test_add_single_key_returns_record_and_sets_default(
    registry: AccountRegistry, store: RegistryStore
) -> None:
    record = registry.add_from_key(KEY_A)

    assert isinstance(record, AccountRecord)
    assert record.index == 0
    assert record.address == ADDRESS_A
    assert record.type is AccountType.USER_IMPORTED
    assert registry.default_snapshot["address"] == ADDRESS_A
    assert store.load_accounts()[0].address == ADDRESS_A
    assert store.load_config().default_wallet["address"] == ADDRESS_A


def test_add_key_list_assigns_dense_indices(registry: AccountRegistry) -> None:
    records = registry.add_from_key([KEY_A, KEY_B.removeprefix("0x").upper()])

    assert isinstance(records, list)
    assert _indices(records) == [0, 1]
    assert records[1].private_key == KEY_B


def test_duplicate_key_reports_existing_index(registry: AccountRegistry) -> None:
    registry.add_from_key([KEY_A, KEY_B])

    with pytest.raises(DuplicateKeyError) as excinfo:
        registry.add_from_key(KEY_B)
    assert excinfo.value.index == 1


def test_batch_with_duplicate_adds_nothing(registry: AccountRegistry) -> None:
    registry.add_from_key(KEY_A)

    with pytest.raises(DuplicateKeyError) as excinfo:
        registry.add_from_key([KEY_C, KEY_A])
    assert excinfo.value.index == 0

    with pytest.raises(DuplicateKeyError) as excinfo:
        registry.add_from_key([KEY_B, KEY_B])
    assert excinfo.value.index is None
    assert len(registry) == 1


@pytest.mark.parametrize("keys", ["", [], ["0x1234"], "not-a-key"])
def test_invalid_keys_are_rejected(registry: AccountRegistry, keys: object) -> None:
    with pytest.raises(ValidationError):
        registry.add_from_key(keys)  # type: ignore[arg-type]
    assert len(registry) == 0


def test_add_from_mnemonic_derives_standard_path(registry: AccountRegistry) -> None:
    records = registry.add_from_mnemonic(TEST_PHRASE, count=2)

    assert records[0].address == TEST_PHRASE_FIRST
    assert records[1].address == NODE_ADDRESS
    assert [r.path for r in records] == ["m/44'/60'/0'/0/0", "m/44'/60'/0'/0/1"]
    assert all(r.depth == 5 for r in records)
    assert registry.hd_accounts == tuple(records)
    assert registry.flat_accounts == ()


def test_duplicate_phrase_is_rejected(registry: AccountRegistry) -> None:
    registry.add_from_key(KEY_A)
    registry.add_from_mnemonic(TEST_PHRASE, count=1)

    with pytest.raises(DuplicatePhraseError) as excinfo:
        registry.add_from_mnemonic("  " + TEST_PHRASE.replace(" ", "   ") + "\n", count=1)
    assert excinfo.value.index == 1


def test_mnemonic_overlapping_an_imported_key_is_rejected(registry: AccountRegistry) -> None:
    first = Account.from_mnemonic(TEST_PHRASE, account_path="m/44'/60'/0'/0/0")
    registry.add_from_key(first.key.to_0x_hex())

    with pytest.raises(DuplicateKeyError):
        registry.add_from_mnemonic(TEST_PHRASE, count=2)
    assert len(registry) == 1


def test_invalid_mnemonic(registry: AccountRegistry) -> None:
    with pytest.raises(ValidationError):
        registry.add_from_mnemonic(
            "these words are definitely not a valid bip thirty nine phrase here"
        )


def test_create_random(registry: AccountRegistry, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        records = registry.create_random(2)

    assert _indices(records) == [0, 1]
    assert all(r.type is AccountType.USER_GENERATED for r in records)
    assert Account.from_key(records[0].private_key).address == records[0].address
    assert SAFETY_WARNING in caplog.text


def test_create_random_hd(registry: AccountRegistry) -> None:
    records = registry.create_random_hd(2)

    assert len({r.phrase for r in records}) == 1
    assert Account.from_mnemonic(records[0].phrase, account_path=records[1].path).address == (
        records[1].address
    )


@pytest.mark.parametrize("count", [0, -1, True])
def test_invalid_count(registry: AccountRegistry, count: int) -> None:
    with pytest.raises(ValidationError):
        registry.create_random(count)


def test_connect_node_accounts(registry: AccountRegistry, web3: DummyWeb3) -> None:
    registry.add_from_key(KEY_A)
    web3.eth.accounts = [ADDRESS_A, NODE_ADDRESS]

    records = registry.connect_node_accounts()

    assert _addresses(records) == [NODE_ADDRESS]
    assert records[0].type is AccountType.NODE_MANAGED
    assert records[0].private_key is None
    # Node-managed records are not HD, so they appear in the flat view.
    assert _addresses(registry.flat_accounts) == [ADDRESS_A, NODE_ADDRESS]


def test_connect_node_accounts_swallows_provider_errors(
    registry: AccountRegistry, web3: DummyWeb3, caplog: pytest.LogCaptureFixture
) -> None:
    class BrokenEth:
        @property
        def accounts(self) -> list[str]:
            raise ConnectionError("refused")

    web3.eth = BrokenEth()  # type: ignore[assignment]

    with caplog.at_level(logging.ERROR):
        assert registry.connect_node_accounts() == []
    assert "Failed to list node accounts" in caplog.text


# ----------------------------------------------------------------------
# Views
# ----------------------------------------------------------------------
def test_views_partition_the_registry(registry: AccountRegistry) -> None:
    registry.add_from_key(KEY_A)
    registry.add_from_mnemonic(TEST_PHRASE, count=2)
    registry.add_from_key(KEY_B)

    flat = registry.accounts(AccountView.FLAT)
    hd = registry.accounts("hd")

    assert _indices(flat) == [0, 3]
    assert _indices(hd) == [1, 2]
    assert _indices(registry.accounts()) == [0, 1, 2, 3]


# ----------------------------------------------------------------------
# Removal
# ----------------------------------------------------------------------
def test_remove_index_list_reindexes_and_clears_default(registry: AccountRegistry) -> None:
    registry.add_from_key([KEY_A, KEY_B, KEY_C])

    removed = registry.remove([0, 2])

    assert _addresses(removed) == [ADDRESS_A, ADDRESS_C]
    assert [(r.index, r.address) for r in registry.all_accounts] == [(0, ADDRESS_B)]
    assert registry.default_snapshot == {}
    assert registry.get_default() is None


def test_remove_keeps_default_snapshot_in_sync(registry: AccountRegistry) -> None:
    registry.add_from_key([KEY_A, KEY_B])
    registry.set_default(1)

    registry.remove(0)

    assert registry.default_snapshot["address"] == ADDRESS_B
    assert registry.default_snapshot["index"] == 0


def test_remove_by_mnemonic(registry: AccountRegistry) -> None:
    registry.add_from_key(KEY_A)
    registry.add_from_mnemonic(TEST_PHRASE, count=2)
    registry.add_from_key(KEY_B)

    removed = registry.remove(TEST_PHRASE)

    assert _indices(removed) == [1, 2]
    assert [(r.index, r.address) for r in registry.all_accounts] == [
        (0, ADDRESS_A),
        (1, ADDRESS_B),
    ]
    assert registry.hd_accounts == ()


def test_remove_by_address(registry: AccountRegistry) -> None:
    registry.add_from_key([KEY_A, KEY_B])

    removed = registry.remove(ADDRESS_B.lower())

    assert _addresses(removed) == [ADDRESS_B]
    assert len(registry) == 1


def test_remove_all(registry: AccountRegistry, store: RegistryStore) -> None:
    registry.add_from_key([KEY_A, KEY_B])

    removed = registry.remove()

    assert len(removed) == 2
    assert len(registry) == 0
    assert store.load_accounts() == []
    assert store.load_config().default_wallet == {}


def test_remove_unknown_selector_is_a_no_op(registry: AccountRegistry) -> None:
    registry.add_from_key(KEY_A)

    assert registry.remove(5) == []
    assert registry.remove(ADDRESS_B) == []
    assert len(registry) == 1


def test_strict_lookups_raise(
    store: RegistryStore, config: ConfigDocument, network: NetworkManager
) -> None:
    registry = AccountRegistry(store, config, network=network, strict=True)
    registry.load()
    registry.add_from_key(KEY_A)

    with pytest.raises(NotFoundError):
        registry.remove(5)
    with pytest.raises(NotFoundError):
        registry.set_default(ADDRESS_B)


# ----------------------------------------------------------------------
# Lookup and default account
# ----------------------------------------------------------------------
def test_info_refreshes_nonce_and_balance(
    registry: AccountRegistry, web3: DummyWeb3, store: RegistryStore
) -> None:
    registry.add_from_key([KEY_A, KEY_B])
    web3.eth.balances[ADDRESS_B] = 3 * 10**18
    web3.eth.counts[ADDRESS_B] = 4

    records = registry.info([1])

    assert records[0].balance == 3 * 10**18
    assert records[0].nonce == 4
    assert store.load_accounts()[1].balance == 3 * 10**18


def test_info_logs_provider_failures(
    registry: AccountRegistry, web3: DummyWeb3, caplog: pytest.LogCaptureFixture
) -> None:
    registry.add_from_key(KEY_A)
    web3.eth.fail_rpc = True

    with caplog.at_level(logging.ERROR):
        records = registry.info(0)

    assert records[0].balance is None
    assert "Failed to refresh account" in caplog.text


def test_info_by_mnemonic(registry: AccountRegistry, web3: DummyWeb3) -> None:
    registry.add_from_key(KEY_A)
    registry.add_from_mnemonic(TEST_PHRASE, count=2)
    web3.eth.balances[TEST_PHRASE_FIRST] = 7

    records = registry.info(TEST_PHRASE)

    assert _indices(records) == [1, 2]
    assert records[0].balance == 7


def test_info_rejects_empty_selector(registry: AccountRegistry) -> None:
    with pytest.raises(ValidationError):
        registry.info("")


def test_set_default_by_address_and_index(registry: AccountRegistry) -> None:
    registry.add_from_key([KEY_A, KEY_B])

    assert registry.set_default(ADDRESS_B.lower()).address == ADDRESS_B
    assert registry.get_default().address == ADDRESS_B
    assert registry.set_default(0).address == ADDRESS_A


def test_set_default_with_new_key_imports_it(registry: AccountRegistry) -> None:
    registry.add_from_key(KEY_A)

    record = registry.set_default(KEY_B)

    assert record.index == 1
    assert registry.default_snapshot["address"] == ADDRESS_B


def test_set_default_with_known_key_is_rejected(registry: AccountRegistry) -> None:
    registry.add_from_key([KEY_A, KEY_B])

    with pytest.raises(DuplicateKeyError) as excinfo:
        registry.set_default(KEY_B)
    assert excinfo.value.index == 1


def test_set_default_out_of_range_is_a_no_op(registry: AccountRegistry) -> None:
    registry.add_from_key(KEY_A)

    assert registry.set_default(3) is None
    assert registry.default_snapshot["address"] == ADDRESS_A


def test_resolve(registry: AccountRegistry) -> None:
    with pytest.raises(ValidationError):
        registry.resolve()

    registry.add_from_key([KEY_A, KEY_B])

    assert registry.resolve().address == ADDRESS_A
    assert registry.resolve(1).address == ADDRESS_B
    with pytest.raises(IndexOutOfRangeError):
        registry.resolve(2)
    with pytest.raises(UnknownSignerError):
        registry.resolve(ADDRESS_C)


def test_signers(registry: AccountRegistry, web3: DummyWeb3) -> None:
    registry.add_from_key(KEY_A)
    web3.eth.accounts = [NODE_ADDRESS]
    node = registry.connect_node_accounts()[0]

    assert isinstance(registry.signer_for(registry.resolve(0)), LocalSigner)
    assert isinstance(registry.signer_for(node), NodeSigner)
    assert registry.signer_for_address(ADDRESS_A.lower()).address == ADDRESS_A
    with pytest.raises(SignerNotAvailableError):
        registry.signer_for_address(NODE_ADDRESS)
    with pytest.raises(UnknownSignerError):
        registry.signer_for_address(ADDRESS_C)


def test_load_restores_persisted_state(
    registry: AccountRegistry, store: RegistryStore, network: NetworkManager
) -> None:
    registry.add_from_key([KEY_A, KEY_B])
    registry.set_default(1)

    reloaded = AccountRegistry(store, store.load_config(), network=network)
    reloaded.load()

    assert _addresses(reloaded.all_accounts) == [ADDRESS_A, ADDRESS_B]
    assert reloaded.get_default().address == ADDRESS_B
