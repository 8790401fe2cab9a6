"""Signing capabilities handed out by the account registry."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from eth_account import Account
from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes
from web3 import Web3

logger = logging.getLogger(__name__)


class Signer(Protocol):
    """Something that can submit a built contract call or constructor."""

    address: str

    def send(self, web3: Web3, function: Any, tx_params: dict[str, Any]) -> HexBytes: ...


class LocalSigner:
    """Sign locally with a private key and submit the raw transaction."""

    def __init__(self, account: LocalAccount) -> None:
        self.account = account
        self.address = account.address

    @classmethod
    def from_key(cls, private_key: str) -> LocalSigner:
        return cls(Account.from_key(private_key))

    def send(self, web3: Web3, function: Any, tx_params: dict[str, Any]) -> HexBytes:
        params = {**tx_params, "from": self.address}
        if "nonce" not in params:
            params["nonce"] = web3.eth.get_transaction_count(self.address, "pending")

        transaction = function.build_transaction(params)
        signed = self.account.sign_transaction(transaction)
        logger.debug("Signed transaction from %s nonce=%s", self.address, params["nonce"])
        return HexBytes(web3.eth.send_raw_transaction(signed.raw_transaction))

    def __repr__(self) -> str:
        return f"LocalSigner({self.address})"


class NodeSigner:
    """Delegate signing to the RPC node that manages the account."""

    def __init__(self, address: str) -> None:
        self.address = Web3.to_checksum_address(address)

    def send(self, web3: Web3, function: Any, tx_params: dict[str, Any]) -> HexBytes:
        params = {**tx_params, "from": self.address}
        return HexBytes(function.transact(params))

    def __repr__(self) -> str:
        return f"NodeSigner({self.address})"
