from __future__ import annotations

import json

import pytest

from ethshell.accounts.store import RegistryStore
from ethshell.config import ConfigDocument
from ethshell.exceptions import ValidationError
from ethshell.types import AccountRecord, AccountType


def test_missing_files_load_empty(store: RegistryStore) -> None:
    assert store.load_accounts() == []
    config = store.load_config()
    assert config.provider_endpoint == "http://127.0.0.1:8545"
    assert config.default_wallet == {}


def test_accounts_round_trip_and_reindex(store: RegistryStore) -> None:
    records = [
        AccountRecord(index=7, address="0x" + "11" * 20, type=AccountType.NODE_MANAGED),
        AccountRecord(
            index=9,
            address="0x" + "22" * 20,
            type=AccountType.USER_IMPORTED,
            private_key="0x" + "ab" * 32,
            balance=10**20,
        ),
    ]
    store.save_accounts(records)

    stored = json.loads(store.wallets_path.read_text())
    assert stored[1]["balance"] == str(10**20)

    loaded = store.load_accounts()
    assert [record.index for record in loaded] == [0, 1]
    assert loaded[1].balance == 10**20
    assert loaded[1].private_key == "0x" + "ab" * 32


def test_config_round_trip(store: RegistryStore) -> None:
    config = ConfigDocument(
        provider_endpoint="http://node:8545", default_wallet={"address": "0x" + "11" * 20}
    )
    store.save_config(config)

    loaded = store.load_config()
    assert loaded.provider_endpoint == "http://node:8545"
    assert loaded.default_wallet == {"address": "0x" + "11" * 20}


def test_corrupt_wallet_file_is_reported(store: RegistryStore) -> None:
    store.wallets_path.parent.mkdir(parents=True, exist_ok=True)
    store.wallets_path.write_text("{not json")

    with pytest.raises(ValidationError) as excinfo:
        store.load_accounts()
    assert excinfo.value.field == "path"


def test_wallet_file_must_be_array(store: RegistryStore) -> None:
    store.wallets_path.parent.mkdir(parents=True, exist_ok=True)
    store.wallets_path.write_text('{"address": "0x00"}')

    with pytest.raises(ValidationError):
        store.load_accounts()
