"""Solidity compilation through py-solc-x, feeding the artifact store."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import solcx
from solcx.exceptions import DownloadError, SolcError, SolcInstallationError, SolcNotInstalled

from ..config import CompilerSettings
from ..exceptions import CompilationError, ValidationError
from .artifacts import ArtifactIndex, save_compiler_output

logger = logging.getLogger(__name__)

OUTPUT_SELECTION = ["abi", "evm.bytecode", "metadata"]


def use_solc_version(version: str) -> str:
    """Install `version` when missing and make it the active compiler."""

    try:
        installed = solcx.install_solc(version)
        solcx.set_solc_version(version)
    except (DownloadError, SolcInstallationError, SolcNotInstalled, ValueError) as exc:
        raise CompilationError(
            f"Unable to load solc {version}", details={"version": version, "error": str(exc)}
        ) from exc
    logger.info("Loaded solc version %s", installed)
    return str(installed)


def current_version() -> str | None:
    try:
        return str(solcx.get_solc_version(with_commit_hash=True))
    except SolcNotInstalled:
        return None


def standard_input(source_key: str, source: str, settings: CompilerSettings) -> dict[str, Any]:
    """Build a solc standard-JSON input for one source unit."""

    compiler_settings: dict[str, Any] = {
        "outputSelection": {"*": {"*": list(OUTPUT_SELECTION)}},
    }
    if settings.optimizer:
        compiler_settings["optimizer"] = {"enabled": True, "runs": settings.optimizer_runs}
    if settings.via_ir:
        compiler_settings["viaIR"] = True
    return {
        "language": "Solidity",
        "sources": {source_key: {"content": source}},
        "settings": compiler_settings,
    }


def collect_sources(source_path: Path | str) -> list[Path]:
    source_path = Path(source_path)
    if source_path.is_file():
        return [source_path]
    if source_path.is_dir():
        sources = sorted(source_path.rglob("*.sol"))
        if sources:
            return sources
        raise ValidationError(
            "There is no smart contract in the directory",
            field="source_path",
            value=str(source_path),
        )
    raise ValidationError("Source path not found", field="source_path", value=str(source_path))


def compile_contracts(
    source_path: Path | str,
    build_dir: Path | str,
    index: ArtifactIndex,
    settings: CompilerSettings,
    selected: Iterable[str] | None = None,
) -> list[str]:
    """Compile a .sol file (or every .sol file under a directory) into `build_dir`.

    The persisted compiler settings pick the solc version and the optimizer
    and viaIR flags. Returns the names of the contracts whose artifacts were
    written and indexed.
    """
    if settings.version:
        use_solc_version(settings.version)

    wanted = list(selected or [])
    saved: list[str] = []
    for path in collect_sources(source_path):
        saved.extend(_compile_file(path, build_dir, index, settings, wanted))

    missing = [name for name in wanted if name not in saved]
    if missing:
        logger.warning("Selected contracts not found in sources: %s", ", ".join(missing))
    logger.info("Compiled %d contracts into %s", len(saved), Path(build_dir).resolve())
    return saved


def _compile_file(
    path: Path,
    build_dir: Path | str,
    index: ArtifactIndex,
    settings: CompilerSettings,
    selected: list[str],
) -> list[str]:
    source_key = path.name
    input_data = standard_input(source_key, path.read_text(encoding="utf-8"), settings)
    try:
        output = solcx.compile_standard(
            input_data,
            base_path=str(path.parent),
            allow_paths=[str(path.parent)],
            solc_version=settings.version,
        )
    except SolcNotInstalled as exc:
        raise CompilationError(
            "No solc compiler is installed; set one with compiler_options(version=...)",
            details={"source": str(path)},
        ) from exc
    except SolcError as exc:
        raise CompilationError(
            f"Compilation of {path} failed", details={"source": str(path), "error": str(exc)}
        ) from exc

    for entry in output.get("errors", []):
        logger.warning("%s", entry.get("formattedMessage") or entry.get("message"))

    contracts = output.get("contracts", {}).get(source_key, {})
    return save_compiler_output(contracts, build_dir, index, selected=selected)
