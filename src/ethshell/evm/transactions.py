"""Transaction option handling and receipt waiting shared by the proxy and deployer."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import TimeExhausted

from ..exceptions import TransactionTimeoutError

logger = logging.getLogger(__name__)

# Options copied through unchanged into web3 transaction params.
_PASSTHROUGH_OPTIONS = (
    "value",
    "nonce",
    "gasPrice",
    "maxFeePerGas",
    "maxPriorityFeePerGas",
    "chainId",
    "accessList",
    "type",
)


def normalise_tx_options(options: Mapping[str, Any] | None) -> dict[str, Any]:
    """Map a per-call option bag onto web3 transaction params.

    `gasLimit` and `gas` both set the gas limit (web3's `gas` key); `gasLimit`
    wins when both are given. `from` is resolved by the caller and unknown keys
    are dropped.
    """
    if not options:
        return {}

    params: dict[str, Any] = {}
    for key in _PASSTHROUGH_OPTIONS:
        if options.get(key) is not None:
            params[key] = options[key]

    if options.get("gasLimit") is not None:
        params["gas"] = options["gasLimit"]
    elif options.get("gas") is not None:
        params["gas"] = options["gas"]

    if options.get("customData") is not None:
        logger.warning("'customData' is not supported by this provider and was dropped")

    return params


def wait_for_receipt(
    web3: Web3,
    tx_hash: HexBytes,
    *,
    timeout: float,
    action: str,
) -> Any:
    """Block until `tx_hash` is mined and return its receipt."""

    tx_hex = HexBytes(tx_hash).to_0x_hex()
    logger.info("Transaction sent for action=%s hash=%s", action, tx_hex)

    try:
        receipt = web3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    except TimeExhausted as exc:
        raise TransactionTimeoutError(tx_hex, timeout) from exc

    logger.info(
        "Transaction confirmed for action=%s hash=%s block=%s",
        action,
        tx_hex,
        receipt.get("blockNumber") if isinstance(receipt, Mapping) else None,
    )
    return receipt
