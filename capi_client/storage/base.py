"""Credential storage interface used by the Watcher."""

from __future__ import annotations

from abc import ABC, abstractmethod


class StorageInterface(ABC):
    """Persist the watcher identity across process restarts.

    Retrieval returns None until a value has been stored. Store methods
    return False instead of raising when the value could not be persisted.
    """

    @abstractmethod
    def retrieve_machine_id(self) -> str | None:
        """Return the stored machine id."""

    @abstractmethod
    def retrieve_password(self) -> str | None:
        """Return the stored password."""

    @abstractmethod
    def retrieve_token(self) -> str | None:
        """Return the stored bearer token."""

    @abstractmethod
    def retrieve_scenarios(self) -> list[str] | None:
        """Return the scenarios the stored token was issued for."""

    @abstractmethod
    def store_machine_id(self, machine_id: str) -> bool:
        """Persist the machine id."""

    @abstractmethod
    def store_password(self, password: str) -> bool:
        """Persist the password."""

    @abstractmethod
    def store_token(self, token: str) -> bool:
        """Persist the bearer token. An empty string clears it."""

    @abstractmethod
    def store_scenarios(self, scenarios: list[str]) -> bool:
        """Persist the scenarios used for the last login."""
