"""Durable JSON storage for wallets and the shell config document."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ..config import ConfigDocument
from ..constants import CONFIG_FILE, DEFAULT_RPC_URL, WALLETS_FILE
from ..exceptions import ValidationError
from ..types import AccountRecord
from ..utils import serialise_value

logger = logging.getLogger(__name__)


class RegistryStore:
    """Load and save the account list and the config document."""

    def __init__(self, data_dir: Path | str, *, default_rpc_url: str = DEFAULT_RPC_URL) -> None:
        self.data_dir = Path(data_dir)
        self.wallets_path = self.data_dir / WALLETS_FILE
        self.config_path = self.data_dir / CONFIG_FILE
        self._default_rpc_url = default_rpc_url

    # ------------------------------------------------------------------
    # Wallets
    # ------------------------------------------------------------------
    def load_accounts(self) -> list[AccountRecord]:
        payload = self._read_json(self.wallets_path)
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise ValidationError(
                "Wallet store must hold a JSON array",
                field="wallets",
                value=str(self.wallets_path),
            )
        records = [AccountRecord.from_dict(entry) for entry in payload]
        # Stored indices are advisory; position defines the index.
        for position, record in enumerate(records):
            record.index = position
        logger.debug("Loaded %d accounts from %s", len(records), self.wallets_path)
        return records

    def save_accounts(self, records: Sequence[AccountRecord]) -> None:
        self._write_json(self.wallets_path, [record.to_dict() for record in records])

    # ------------------------------------------------------------------
    # Config document
    # ------------------------------------------------------------------
    def load_config(self) -> ConfigDocument:
        payload = self._read_json(self.config_path)
        if payload is not None and not isinstance(payload, dict):
            raise ValidationError(
                "Config store must hold a JSON object",
                field="config",
                value=str(self.config_path),
            )
        return ConfigDocument.from_dict(payload, default_rpc_url=self._default_rpc_url)

    def save_config(self, config: ConfigDocument) -> None:
        self._write_json(self.config_path, config.to_dict())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _read_json(self, path: Path) -> Any:
        if not path.exists():
            return None
        text = path.read_text(encoding="utf-8")
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValidationError(
                f"Corrupt JSON document at {path}",
                field="path",
                value=str(path),
                details={"error": str(exc)},
            ) from exc

    def _write_json(self, path: Path, payload: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(serialise_value(payload), indent=2) + "\n", encoding="utf-8")
