"""In-memory account registry with persisted state and default-account semantics.

All accounts live in a single ordered list whose positions are the account
indices. The flat and HD views are derived from that list on demand, so every
record is always visible in exactly one of them and indices stay dense.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, cast

from eth_account import Account

from ..config import ConfigDocument
from ..constants import HD_BASE_PATH, HD_DEFAULT_COUNT, SAFETY_WARNING
from ..exceptions import (
    DuplicateKeyError,
    DuplicatePhraseError,
    IndexOutOfRangeError,
    NetworkError,
    NotFoundError,
    SignerNotAvailableError,
    UnknownSignerError,
    ValidationError,
)
from ..types import AccountRecord, AccountType, AccountView, ContractRef
from ..utils import (
    index_list,
    is_address,
    is_mnemonic,
    is_private_key,
    normalise_private_key,
    same_address,
    serialise_value,
)
from .signers import LocalSigner, NodeSigner, Signer
from .store import RegistryStore

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from ..evm.network import NetworkManager

# Required to use mnemonic derivation in eth-account
Account.enable_unaudited_hdwallet_features()

logger = logging.getLogger(__name__)

KeyInput = str | Sequence[str]
Selector = int | str | Sequence[int] | None


class AccountRegistry:
    """Source of truth for every signing identity known to the shell."""

    def __init__(
        self,
        store: RegistryStore,
        config: ConfigDocument,
        *,
        network: NetworkManager | None = None,
        strict: bool = False,
    ) -> None:
        self._store = store
        self._config = config
        self._network = network
        self._strict = strict
        self._accounts: list[AccountRecord] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def load(self) -> None:
        """Hydrate from the wallet store and reconcile the default pointer."""

        self._accounts = self._store.load_accounts()
        snapshot = self._config.default_wallet
        if snapshot.get("address"):
            record = self.find_by_address(snapshot["address"])
            if record is not None:
                self._config.default_wallet = self._snapshot(record)
        elif self._accounts:
            self._config.default_wallet = self._snapshot(self._accounts[0])
        self._store.save_config(self._config)

    def flush(self) -> None:
        self._store.save_accounts(self._accounts)
        self._store.save_config(self._config)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._accounts)

    @property
    def all_accounts(self) -> tuple[AccountRecord, ...]:
        return tuple(self._accounts)

    @property
    def flat_accounts(self) -> tuple[AccountRecord, ...]:
        return tuple(record for record in self._accounts if not record.is_hd)

    @property
    def hd_accounts(self) -> tuple[AccountRecord, ...]:
        return tuple(record for record in self._accounts if record.is_hd)

    def accounts(self, view: AccountView | str = AccountView.ALL) -> tuple[AccountRecord, ...]:
        """Return one of the registry views, with the development-safety warning."""

        view = AccountView(view)
        logger.warning(SAFETY_WARNING)
        if view is AccountView.FLAT:
            return self.flat_accounts
        if view is AccountView.HD:
            return self.hd_accounts
        return self.all_accounts

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------
    def add_from_key(self, keys: KeyInput) -> AccountRecord | list[AccountRecord]:
        """Import one private key (returns a record) or a list (returns a list)."""

        single = isinstance(keys, str)
        key_list = [keys] if single else list(keys or [])
        if not key_list or not all(key_list):
            raise ValidationError(
                "You need to add at least one private key; use create_random() to generate one",
                field="private_key",
            )
        for key in key_list:
            if not is_private_key(key):
                raise ValidationError("Invalid private key", field="private_key")

        normalised = [normalise_private_key(key) for key in key_list]
        self._ensure_unique_keys(normalised)

        records = [
            AccountRecord(
                index=-1,
                address=Account.from_key(key).address,
                type=AccountType.USER_IMPORTED,
                private_key=key,
            )
            for key in normalised
        ]
        self._commit(records)
        return records[0] if single else records

    def add_from_mnemonic(self, phrase: str, count: int = HD_DEFAULT_COUNT) -> list[AccountRecord]:
        """Derive `count` accounts from an existing mnemonic phrase."""

        if not isinstance(phrase, str) or not phrase.strip():
            raise ValidationError("Mnemonic phrase may not be empty", field="phrase")
        phrase = " ".join(phrase.split())

        existing = next((r for r in self._accounts if r.phrase == phrase), None)
        if existing is not None:
            raise DuplicatePhraseError(existing.index)

        records = self._derive(phrase, count, AccountType.USER_IMPORTED)
        self._ensure_unique_keys([record.private_key for record in records if record.private_key])
        self._commit(records)
        logger.warning(SAFETY_WARNING)
        return records

    def create_random(self, count: int = 1) -> list[AccountRecord]:
        """Generate `count` fresh key pairs."""

        self._check_count(count)
        records = []
        for _ in range(count):
            account = Account.create()
            records.append(
                AccountRecord(
                    index=-1,
                    address=account.address,
                    type=AccountType.USER_GENERATED,
                    private_key=account.key.to_0x_hex(),
                )
            )
        self._commit(records)
        logger.warning(SAFETY_WARNING)
        return records

    def create_random_hd(self, count: int = HD_DEFAULT_COUNT) -> list[AccountRecord]:
        """Generate a fresh mnemonic and derive `count` accounts from it."""

        self._check_count(count)
        _, phrase = Account.create_with_mnemonic()
        records = self._derive(phrase, count, AccountType.USER_GENERATED)
        self._commit(records)
        logger.warning(SAFETY_WARNING)
        return records

    def connect_node_accounts(self) -> list[AccountRecord]:
        """Register the accounts the RPC node manages (e.g. a local dev node)."""

        network = self._require_network()
        web3 = network.web3
        try:
            addresses = network.rpc(lambda: list(web3.eth.accounts), "eth_accounts")
        except NetworkError as exc:
            logger.error("Failed to list node accounts: %s", exc)
            return []

        records = [
            AccountRecord(index=-1, address=address, type=AccountType.NODE_MANAGED)
            for address in addresses
            if self.find_by_address(address) is None
        ]
        if records:
            self._commit(records)
        logger.info("Connected %d node-managed accounts", len(records))
        return records

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------
    def remove(self, selector: Selector = None) -> list[AccountRecord]:
        """Delete accounts by index, index list, address or mnemonic; None clears all."""

        if selector is None:
            removed = list(self._accounts)
            self._accounts.clear()
            self._config.default_wallet = {}
            self.flush()
            logger.info("Removed all %d accounts", len(removed))
            return removed

        return self._delete_indices(self._match(selector))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def info(self, selector: Selector) -> list[AccountRecord]:
        """Refresh nonce and balance of the selected accounts from the provider."""

        if selector is None or selector == "":
            raise ValidationError("Empty input is NOT valid", field="selector")

        indices = self._match(selector)
        records = [self._accounts[index] for index in sorted(set(indices))]
        if not records:
            return []

        network = self._require_network()
        web3 = network.web3
        for record in records:
            try:
                record.nonce = network.rpc(
                    lambda: web3.eth.get_transaction_count(record.address),
                    "eth_getTransactionCount",
                )
                record.balance = network.rpc(
                    lambda: web3.eth.get_balance(record.address), "eth_getBalance"
                )
            except NetworkError as exc:
                logger.error("Failed to refresh account %s: %s", record.address, exc)
        self.flush()
        return records

    def find_by_address(self, address: str) -> AccountRecord | None:
        return next((r for r in self._accounts if same_address(r.address, address)), None)

    def find_by_key(self, private_key: str) -> AccountRecord | None:
        key = normalise_private_key(private_key)
        return next(
            (
                r
                for r in self._accounts
                if r.private_key and normalise_private_key(r.private_key) == key
            ),
            None,
        )

    def resolve(self, selector: int | str | None = None) -> AccountRecord:
        """Resolve an index or address to a record; None means the default account."""

        if selector is None:
            record = self.get_default()
            if record is None:
                raise ValidationError("No default account is configured", field="account")
            return record

        if isinstance(selector, int) and not isinstance(selector, bool):
            if not 0 <= selector < len(self._accounts):
                raise IndexOutOfRangeError(selector, len(self._accounts))
            return self._accounts[selector]

        if is_address(selector):
            record = self.find_by_address(selector)
            if record is None:
                raise UnknownSignerError(selector)
            return record

        raise ValidationError("Account selector must be an index or address", field="account")

    # ------------------------------------------------------------------
    # Signers
    # ------------------------------------------------------------------
    def signer_for(self, record: AccountRecord) -> Signer:
        if record.private_key:
            return LocalSigner.from_key(record.private_key)
        return NodeSigner(record.address)

    def signer_for_address(self, address: str) -> LocalSigner:
        """Return a local signer for `address`, as required by per-call overrides."""

        record = self.find_by_address(address)
        if record is None:
            raise UnknownSignerError(address)
        if not record.private_key:
            raise SignerNotAvailableError(address)
        return LocalSigner.from_key(record.private_key)

    # ------------------------------------------------------------------
    # Default account
    # ------------------------------------------------------------------
    def set_default(self, selector: int | str) -> AccountRecord | None:
        """Point the default at an index, address or (new) private key."""

        if selector is None or selector == "":
            raise ValidationError("Empty input is NOT valid", field="selector")

        record: AccountRecord | None
        if isinstance(selector, int) and not isinstance(selector, bool):
            record = self._accounts[selector] if 0 <= selector < len(self._accounts) else None
        elif is_address(selector):
            record = self.find_by_address(selector)
        elif is_private_key(selector):
            existing = self.find_by_key(selector)
            if existing is not None:
                raise DuplicateKeyError(existing.index)
            record = cast(AccountRecord, self.add_from_key(selector))
        else:
            raise ValidationError(
                "Default account selector must be an index, address or private key",
                field="selector",
                value=selector,
            )

        if record is None:
            self._not_found(selector)
            return None

        self._config.default_wallet = self._snapshot(record)
        self._store.save_config(self._config)
        logger.info("Default account set to %s (index %d)", record.address, record.index)
        return record

    def get_default(self) -> AccountRecord | None:
        address = self._config.default_wallet.get("address")
        if not address:
            return None
        return self.find_by_address(address)

    @property
    def default_snapshot(self) -> dict[str, Any]:
        return dict(self._config.default_wallet)

    # ------------------------------------------------------------------
    # Contract bookkeeping
    # ------------------------------------------------------------------
    def record_contract(self, record: AccountRecord, ref: ContractRef) -> None:
        record.contracts.append(ref)
        self._refresh_default(record)
        self.flush()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _derive(self, phrase: str, count: int, account_type: AccountType) -> list[AccountRecord]:
        self._check_count(count)
        records = []
        for child in range(count):
            path = f"{HD_BASE_PATH}/{child}"
            try:
                account = Account.from_mnemonic(phrase, account_path=path)
            except Exception as exc:
                raise ValidationError(
                    "Invalid mnemonic phrase",
                    field="phrase",
                    details={"error": str(exc)},
                ) from exc
            records.append(
                AccountRecord(
                    index=-1,
                    address=account.address,
                    type=account_type,
                    private_key=account.key.to_0x_hex(),
                    phrase=phrase,
                    path=path,
                    depth=len(path.split("/")) - 1,
                )
            )
        return records

    def _ensure_unique_keys(self, keys: Sequence[str]) -> None:
        seen: set[str] = set()
        for key in keys:
            key = normalise_private_key(key)
            existing = self.find_by_key(key)
            if existing is not None:
                raise DuplicateKeyError(existing.index)
            if key in seen:
                raise DuplicateKeyError(None)
            seen.add(key)

    def _commit(self, records: list[AccountRecord]) -> None:
        self._accounts.extend(records)
        self._reindex()
        if not self._config.default_wallet.get("address") and self._accounts:
            self._config.default_wallet = self._snapshot(self._accounts[0])
        self.flush()
        logger.info("Added %d accounts (total %d)", len(records), len(self._accounts))

    def _match(self, selector: Selector) -> list[int]:
        if isinstance(selector, str) and is_mnemonic(selector):
            phrase = " ".join(selector.split())
            indices = [record.index for record in self._accounts if record.phrase == phrase]
            if not indices:
                self._not_found(selector)
            return indices
        return self._resolve_indices(selector)

    def _resolve_indices(self, selector: Selector) -> list[int]:
        if isinstance(selector, int) and not isinstance(selector, bool):
            if 0 <= selector < len(self._accounts):
                return [selector]
            self._not_found(selector)
            return []

        indices = index_list(selector)
        if indices is not None:
            if not indices:
                raise ValidationError("Empty input is NOT valid", field="selector")
            valid = [index for index in indices if 0 <= index < len(self._accounts)]
            if len(valid) != len(indices):
                self._not_found([index for index in indices if index not in valid])
            return valid

        if isinstance(selector, str):
            if not selector:
                raise ValidationError("Empty input is NOT valid", field="selector")
            if is_address(selector):
                record = self.find_by_address(selector)
                if record is None:
                    self._not_found(selector)
                    return []
                return [record.index]

        raise ValidationError(
            "Selector must be an index, list of indices, address or mnemonic",
            field="selector",
            value=selector,
        )

    def _delete_indices(self, indices: list[int]) -> list[AccountRecord]:
        removed: list[AccountRecord] = []
        default_address = self._config.default_wallet.get("address")
        # High to low so earlier positions stay valid while popping.
        for index in sorted(set(indices), reverse=True):
            record = self._accounts.pop(index)
            removed.append(record)
            if same_address(record.address, default_address):
                self._config.default_wallet = {}

        if removed:
            self._reindex()
            self.flush()
            logger.info("Removed %d accounts", len(removed))
        removed.reverse()
        return removed

    def _reindex(self) -> None:
        for position, record in enumerate(self._accounts):
            record.index = position
        default = self.get_default()
        if default is not None:
            self._refresh_default(default)

    def _refresh_default(self, record: AccountRecord) -> None:
        if same_address(record.address, self._config.default_wallet.get("address")):
            self._config.default_wallet = self._snapshot(record)

    def _snapshot(self, record: AccountRecord) -> dict[str, Any]:
        return serialise_value(record.to_dict())

    def _not_found(self, selector: Any) -> None:
        if self._strict:
            raise NotFoundError(selector)
        logger.info("No account matches %r; nothing to do", selector)

    def _check_count(self, count: int) -> None:
        if not isinstance(count, int) or isinstance(count, bool) or count < 1:
            raise ValidationError("Count must be a positive integer", field="count", value=count)

    def _require_network(self) -> NetworkManager:
        if self._network is None:
            raise NetworkError("Account registry has no provider attached")
        return self._network
