"""Utility functions for ethshell."""

from collections.abc import Mapping, Sequence
from typing import Any

from eth_utils import is_hex
from hexbytes import HexBytes
from web3 import Web3

from .constants import MAX_SAFE_INTEGER, MNEMONIC_WORD_COUNTS


def serialise_value(value: Any) -> Any:
    """Convert nested structures into JSON-friendly values.

    Wide integers become decimal strings, byte strings become 0x-prefixed hex,
    mappings and sequences are converted recursively.
    """
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value) if abs(value) > MAX_SAFE_INTEGER else value
    if isinstance(value, Mapping):
        return {key: serialise_value(item) for key, item in value.items()}
    if isinstance(value, bytes | bytearray | HexBytes):
        return HexBytes(value).to_0x_hex()
    if isinstance(value, Sequence) and not isinstance(value, str):
        return [serialise_value(item) for item in value]
    return value


def is_address(value: Any) -> bool:
    """Return True for 20-byte hex addresses in any valid casing."""
    return isinstance(value, str) and Web3.is_address(value)


def is_private_key(value: Any) -> bool:
    """Return True for 32-byte hex strings (with or without 0x prefix)."""
    if not isinstance(value, str):
        return False
    stripped = value[2:] if value.lower().startswith("0x") else value
    return len(stripped) == 64 and is_hex(stripped)


def is_mnemonic(value: Any) -> bool:
    """Return True when the value is shaped like a BIP-39 phrase."""
    if not isinstance(value, str):
        return False
    words = value.split()
    return len(words) in MNEMONIC_WORD_COUNTS and all(word.isalpha() for word in words)


def normalise_private_key(value: str) -> str:
    """Return the key as lowercase 0x-prefixed hex."""
    stripped = value[2:] if value.lower().startswith("0x") else value
    return "0x" + stripped.lower()


def same_address(left: str | None, right: str | None) -> bool:
    if left is None or right is None:
        return False
    return left.lower() == right.lower()


def index_list(value: Any) -> list[int] | None:
    """Return the value as a list of ints, or None if it is not an index list."""
    if not isinstance(value, list | tuple):
        return None
    if not all(isinstance(item, int) and not isinstance(item, bool) for item in value):
        return None
    return list(value)
