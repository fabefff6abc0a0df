"""File-based credential storage, one JSON file per key."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .base import StorageInterface

_LOGGER = logging.getLogger(__name__)

MACHINE_ID_KEY = "machine_id"
PASSWORD_KEY = "password"
TOKEN_KEY = "token"
SCENARIOS_KEY = "scenarios"


class FileStorage(StorageInterface):
    """Store each value as ``{"<key>": value}`` in ``<directory>/<key>.json``."""

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def _read(self, key: str) -> Any:
        path = self._path(key)
        try:
            content = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as err:
            _LOGGER.debug("Ignoring unreadable %s: %s", path, err)
            return None
        if not isinstance(content, dict):
            return None
        return content.get(key) or None

    def _write(self, key: str, value: Any) -> bool:
        """Replace the key file atomically; a failed write keeps the old one."""
        path = self._path(key)
        tmp_name = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._directory,
                prefix=f".{key}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                json.dump({key: value}, tmp)
            os.replace(tmp_name, path)
        except OSError as err:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            _LOGGER.debug("Could not write %s: %s", path, err)
            return False
        return True

    def retrieve_machine_id(self) -> str | None:
        return self._read(MACHINE_ID_KEY)

    def retrieve_password(self) -> str | None:
        return self._read(PASSWORD_KEY)

    def retrieve_token(self) -> str | None:
        return self._read(TOKEN_KEY)

    def retrieve_scenarios(self) -> list[str] | None:
        scenarios = self._read(SCENARIOS_KEY)
        return list(scenarios) if isinstance(scenarios, list) else None

    def store_machine_id(self, machine_id: str) -> bool:
        return self._write(MACHINE_ID_KEY, machine_id)

    def store_password(self, password: str) -> bool:
        return self._write(PASSWORD_KEY, password)

    def store_token(self, token: str) -> bool:
        return self._write(TOKEN_KEY, token)

    def store_scenarios(self, scenarios: list[str]) -> bool:
        return self._write(SCENARIOS_KEY, list(scenarios))
