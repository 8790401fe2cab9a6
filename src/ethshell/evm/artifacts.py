"""Name-indexed compiler artifacts (ABI and bytecode files)."""

from __future__ import annotations

import json
import logging
import shutil
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from ..constants import ARTIFACT_INDEX_FILE
from ..exceptions import ValidationError

logger = logging.getLogger(__name__)

ARTIFACT_SUBDIRS = ("artifacts", "abis", "bytecode", "metadata")


class ArtifactIndex:
    """Persisted mapping of contract name to its ABI and bytecode paths."""

    def __init__(self, data_dir: Path | str) -> None:
        self.path = Path(data_dir) / ARTIFACT_INDEX_FILE
        self._entries: dict[str, dict[str, str]] = {}
        if self.path.exists():
            try:
                self._entries = json.loads(self.path.read_text(encoding="utf-8") or "{}")
            except json.JSONDecodeError as exc:
                raise ValidationError(
                    f"Corrupt JSON document at {self.path}",
                    field="path",
                    value=str(self.path),
                    details={"error": str(exc)},
                ) from exc

    def register(self, name: str, *, abi_path: Path | str, bytecode_path: Path | str) -> None:
        self._entries[name] = {"abi": str(abi_path), "bytecode": str(bytecode_path)}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._entries, indent=2) + "\n", encoding="utf-8")

    def abi_path(self, name: str) -> str | None:
        return self._entries.get(name, {}).get("abi")

    def bytecode_path(self, name: str) -> str | None:
        return self._entries.get(name, {}).get("bytecode")

    def names(self) -> list[str]:
        return sorted(self._entries)


def save_compiler_output(
    contracts: Mapping[str, Mapping[str, Any]],
    build_dir: Path | str,
    index: ArtifactIndex,
    selected: Iterable[str] | None = None,
) -> list[str]:
    """Write one source unit's compiler output and index the ABI/bytecode paths.

    `contracts` is the per-file `contracts` mapping of solc standard-JSON output
    (contract name -> {abi, evm, metadata}).
    """
    build_dir = Path(build_dir)
    for subdir in ARTIFACT_SUBDIRS:
        (build_dir / subdir).mkdir(parents=True, exist_ok=True)

    wanted = set(selected or [])
    saved = []
    for name, data in contracts.items():
        if wanted and name not in wanted:
            continue
        abi_path = build_dir / "abis" / f"{name}.abi.json"
        bytecode_path = build_dir / "bytecode" / f"{name}.bin"

        _dump(build_dir / "artifacts" / f"{name}.json", data)
        _dump(abi_path, data.get("abi", []))
        _dump(bytecode_path, data.get("evm", {}).get("bytecode", {}))
        _dump(build_dir / "metadata" / f"{name}.metadata.json", data.get("metadata"))

        index.register(name, abi_path=abi_path, bytecode_path=bytecode_path)
        saved.append(name)

    logger.info("Saved artifacts for %s in %s", ", ".join(saved) or "nothing", build_dir)
    return saved


def load_abi(path: Path | str) -> list[dict[str, Any]]:
    payload = _load(path)
    # Full artifacts nest the ABI under "abi".
    if isinstance(payload, dict) and "abi" in payload:
        payload = payload["abi"]
    if not isinstance(payload, list):
        raise ValidationError("ABI file must hold a JSON array", field="abi_path", value=str(path))
    return payload


def load_bytecode(path: Path | str) -> str:
    """Read bytecode stored as a solc bytecode object, a JSON string or raw hex."""

    text = Path(path).read_text(encoding="utf-8").strip()
    try:
        payload: Any = json.loads(text)
    except json.JSONDecodeError:
        payload = text

    if isinstance(payload, dict):
        payload = payload.get("object") or payload.get("bytecode")
    elif not isinstance(payload, str):
        # Raw hex with only digits parses as a JSON number.
        payload = text
    if not isinstance(payload, str) or not payload:
        raise ValidationError(
            "Bytecode file does not contain bytecode", field="bytecode_path", value=str(path)
        )
    return payload if payload.startswith("0x") else "0x" + payload


def clean_build_dir(build_dir: Path | str) -> bool:
    """Delete the build directory; returns False when there was nothing to delete."""

    build_dir = Path(build_dir)
    if not build_dir.is_dir():
        logger.info("Path %s is not a directory", build_dir)
        return False
    shutil.rmtree(build_dir)
    logger.info("Deleted build directory %s", build_dir)
    return True


def _load(path: Path | str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValidationError("Artifact file not found", field="path", value=str(path)) from exc
    except json.JSONDecodeError as exc:
        raise ValidationError(
            "Artifact file is not valid JSON",
            field="path",
            value=str(path),
            details={"error": str(exc)},
        ) from exc


def _dump(path: Path, payload: Any) -> None:
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
