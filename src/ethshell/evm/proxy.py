"""ABI-driven dispatch proxy for contract handles.

Method lookup is resolved once from the ABI into a table of typed call
descriptors. Every invocation goes through the same pipeline: split off the
option bag, pick the signer, normalise options, then either `call()` a read
method or submit a write and wait for its receipt.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any

from eth_abi import is_encodable
from web3.contract import Contract
from web3.logs import DISCARD

from ..accounts.signers import Signer
from ..constants import TX_OPTION_KEYS
from ..exceptions import ValidationError
from .transactions import normalise_tx_options, wait_for_receipt

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from ..accounts.registry import AccountRegistry

logger = logging.getLogger(__name__)

_READ_MUTABILITIES = frozenset({"view", "pure"})


def canonical_type(param: Mapping[str, Any]) -> str:
    """Return the ABI type string, expanding tuples into `(t1,t2)[]` form."""

    abi_type = param["type"]
    if not abi_type.startswith("tuple"):
        return abi_type
    components = ",".join(canonical_type(c) for c in param.get("components", []))
    return f"({components}){abi_type[len('tuple'):]}"


@dataclass(frozen=True)
class MethodDescriptor:
    """Typed description of one ABI function (one entry per overload)."""

    name: str
    inputs: tuple[str, ...]
    outputs: tuple[str, ...]
    state_mutability: str

    @property
    def is_read(self) -> bool:
        return self.state_mutability in _READ_MUTABILITIES

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    def accepts(self, args: Sequence[Any]) -> bool:
        if len(args) != len(self.inputs):
            return False
        try:
            return all(is_encodable(typ, arg) for typ, arg in zip(self.inputs, args))
        except Exception:  # pragma: no cover
            return False

    @classmethod
    def from_abi(cls, entry: Mapping[str, Any]) -> MethodDescriptor:
        mutability = entry.get("stateMutability")
        if mutability is None:
            # Pre-0.4.16 ABIs only carry `constant` / `payable`.
            if entry.get("constant"):
                mutability = "view"
            else:
                mutability = "payable" if entry.get("payable") else "nonpayable"
        return cls(
            name=entry["name"],
            inputs=tuple(canonical_type(p) for p in entry.get("inputs", [])),
            outputs=tuple(canonical_type(p) for p in entry.get("outputs", [])),
            state_mutability=mutability,
        )


def build_method_table(abi: Sequence[Mapping[str, Any]]) -> dict[str, list[MethodDescriptor]]:
    table: dict[str, list[MethodDescriptor]] = {}
    for entry in abi:
        if entry.get("type", "function") != "function" or "name" not in entry:
            continue
        descriptor = MethodDescriptor.from_abi(entry)
        table.setdefault(descriptor.name, []).append(descriptor)
    return table


class ContractProxy:
    """Wrap a web3 contract so every ABI method dispatches through one pipeline."""

    def __init__(
        self,
        contract: Contract,
        signer: Signer,
        registry: AccountRegistry,
        *,
        receipt_timeout: float,
    ) -> None:
        self._contract = contract
        self._signer = signer
        self._registry = registry
        self._receipt_timeout = receipt_timeout
        self._methods = build_method_table(contract.abi)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def address(self) -> str:
        return self._contract.address

    @property
    def abi(self) -> list[dict[str, Any]]:
        return list(self._contract.abi)

    @property
    def signer(self) -> Signer:
        return self._signer

    @property
    def methods(self) -> Mapping[str, list[MethodDescriptor]]:
        return self._methods

    @property
    def contract(self) -> Contract:
        return self._contract

    def __getattr__(self, name: str) -> Any:
        methods = self.__dict__.get("_methods") or {}
        if name in methods:
            return partial(self.invoke, name)
        raise AttributeError(f"Contract has no method or attribute '{name}'")

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._methods))

    def __repr__(self) -> str:
        return f"<ContractProxy {self.address} methods={len(self._methods)}>"

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def invoke(self, method: str, *args: Any) -> Any:
        """Call `method`; reads return the raw value, writes return the receipt."""

        descriptors = self._methods.get(method)
        if not descriptors:
            raise AttributeError(f"Contract has no method '{method}'")

        call_args = list(args)
        options = self._pop_options(call_args, descriptors)
        signer = self._signer
        if options and options.get("from"):
            signer = self._registry.signer_for_address(options["from"])
        tx_params = normalise_tx_options(options)

        descriptor = self._select(method, descriptors, call_args)
        function = getattr(self._contract.functions, method)(*call_args)

        if descriptor.is_read:
            return function.call({"from": signer.address, **tx_params})

        web3 = self._contract.w3
        logger.info("Dispatching %s from %s", descriptor.signature, signer.address)
        tx_hash = signer.send(web3, function, tx_params)
        return wait_for_receipt(web3, tx_hash, timeout=self._receipt_timeout, action=method)

    def events(self, receipt: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Decode this contract's events out of a transaction receipt."""

        decoded: list[dict[str, Any]] = []
        names = {e["name"] for e in self._contract.abi if e.get("type") == "event"}
        for name in sorted(names):
            event = getattr(self._contract.events, name)()
            for log in event.process_receipt(receipt, errors=DISCARD):
                decoded.append(
                    {
                        "name": log["event"],
                        "values": dict(log["args"]),
                        "logIndex": log.get("logIndex"),
                    }
                )
        decoded.sort(key=lambda entry: entry["logIndex"] or 0)
        return decoded

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _pop_options(
        self, args: list[Any], descriptors: Sequence[MethodDescriptor]
    ) -> dict[str, Any] | None:
        if not args or not isinstance(args[-1], dict):
            return None

        last = args[-1]
        if "data" in last:
            logger.warning(
                "'data' option is ignored; calldata is encoded from the method and arguments"
            )
        if not any(key in TX_OPTION_KEYS for key in last):
            return None

        # A trailing dict that completes an overload's arity is a struct argument.
        arities = {len(d.inputs) for d in descriptors}
        if len(args) in arities and len(args) - 1 not in arities:
            return None
        return args.pop()

    def _select(
        self, method: str, descriptors: Sequence[MethodDescriptor], args: Sequence[Any]
    ) -> MethodDescriptor:
        candidates = [d for d in descriptors if len(d.inputs) == len(args)]
        if not candidates:
            expected = sorted({len(d.inputs) for d in descriptors})
            raise ValidationError(
                f"{method} expects {expected} arguments, got {len(args)}",
                field="args",
                value=list(args),
            )
        if len(candidates) > 1:
            encodable = [d for d in candidates if d.accepts(args)]
            if encodable:
                return encodable[0]
        return candidates[0]
