"""In-process credential storage."""

from __future__ import annotations

from .base import StorageInterface


class MemoryStorage(StorageInterface):
    """Keep credentials in a dict for the lifetime of the process."""

    def __init__(
        self,
        *,
        machine_id: str | None = None,
        password: str | None = None,
        token: str | None = None,
        scenarios: list[str] | None = None,
    ) -> None:
        self._values: dict[str, str | list[str] | None] = {
            "machine_id": machine_id,
            "password": password,
            "token": token,
            "scenarios": list(scenarios) if scenarios is not None else None,
        }

    def _get_str(self, key: str) -> str | None:
        value = self._values[key]
        return value if isinstance(value, str) and value else None

    def retrieve_machine_id(self) -> str | None:
        return self._get_str("machine_id")

    def retrieve_password(self) -> str | None:
        return self._get_str("password")

    def retrieve_token(self) -> str | None:
        return self._get_str("token")

    def retrieve_scenarios(self) -> list[str] | None:
        value = self._values["scenarios"]
        return list(value) if isinstance(value, list) else None

    def store_machine_id(self, machine_id: str) -> bool:
        self._values["machine_id"] = machine_id
        return True

    def store_password(self, password: str) -> bool:
        self._values["password"] = password
        return True

    def store_token(self, token: str) -> bool:
        self._values["token"] = token
        return True

    def store_scenarios(self, scenarios: list[str]) -> bool:
        self._values["scenarios"] = list(scenarios)
        return True
