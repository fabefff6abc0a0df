"""Watcher client: credential lifecycle and authenticated CAPI calls.

The Watcher keeps the machine identity usable without caller involvement:
- credentials are generated and registered on first use, or when the stored
  machine id no longer carries the configured prefix
- a bearer token is obtained by login and reused while it was issued for the
  requested scenario set
- a 500 on registration is retried once with fresh credentials
- a 401 on an authenticated call is retried once after a fresh login

Every credential change is written to the storage right away. The storage,
not the in-memory copy, is authoritative across restarts. A value whose last
write failed is used from memory until a later write succeeds.
"""

from __future__ import annotations

import logging
import secrets
import string
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from .client import CapiBaseClient
from .config import WatcherConfig, build_config, validate_scenarios
from .constants import MACHINE_ID_LENGTH, PASSWORD_LENGTH, USER_AGENT_PREFIX
from .errors import (
    CapiAuthRequired,
    CapiAuthRetryExhausted,
    CapiHttpError,
    CapiInvalidLength,
    CapiRegistrationFailed,
)
from .retry import retry_async
from .storage.base import StorageInterface
from .transport.base import METHOD_GET, METHOD_POST, RequestHandler
from .transport.pooled import PooledHttpHandler

_LOGGER = logging.getLogger(__name__)

RANDOM_ALPHABET = string.ascii_letters + string.digits


def generate_random_string(length: int) -> str:
    """Return a cryptographically secure alphanumeric string."""
    if length <= 0:
        raise CapiInvalidLength("Length must be greater than zero.")
    return "".join(secrets.choice(RANDOM_ALPHABET) for _ in range(length))


def generate_machine_id(prefix: str = "") -> str:
    """Return a machine id of MACHINE_ID_LENGTH chars starting with prefix."""
    return prefix + generate_random_string(MACHINE_ID_LENGTH - len(prefix))


def generate_password() -> str:
    return generate_random_string(PASSWORD_LENGTH)


def are_equals(first: Iterable[str], second: Iterable[str]) -> bool:
    """Compare two scenario lists as sets of the same size."""
    first_list, second_list = list(first), list(second)
    return len(first_list) == len(second_list) and set(first_list) == set(second_list)


def should_refresh_credentials(
    machine_id: str | None, password: str | None, machine_id_prefix: str = ""
) -> bool:
    """Return True when stored credentials cannot be used as they are."""
    if not machine_id or not password:
        return True
    return bool(machine_id_prefix) and not machine_id.startswith(machine_id_prefix)


def _has_status(status: int) -> Callable[[Exception], bool]:
    def check(err: Exception) -> bool:
        return isinstance(err, CapiHttpError) and err.status == status

    return check


class Watcher(CapiBaseClient):
    """CAPI watcher with automatic registration and token refresh.

    Usage:
        async with Watcher({"scenarios": ["crowdsecurity/http-probing"]}, FileStorage(path)) as watcher:
            await watcher.push_signals([signal])
            decisions = await watcher.get_stream_decisions()
    """

    REGISTER_ENDPOINT = "/watchers"
    LOGIN_ENDPOINT = "/watchers/login"
    ENROLL_ENDPOINT = "/watchers/enroll"
    SIGNALS_ENDPOINT = "/signals"
    DECISIONS_STREAM_ENDPOINT = "/decisions/stream"

    REGISTER_RETRY = 1
    LOGIN_RETRY = 1

    def __init__(
        self,
        configs: Mapping[str, Any] | WatcherConfig,
        storage: StorageInterface,
        request_handler: RequestHandler | None = None,
    ) -> None:
        """Initialize the watcher.

        Args:
            configs: Raw options or a built WatcherConfig; validated before
                anything else happens.
            storage: Credential storage.
            request_handler: Transport; a PooledHttpHandler by default.

        Raises:
            ConfigValidationError: If configs are invalid.
        """
        self.configs = build_config(configs)
        super().__init__(
            self.configs.api_url,
            request_handler or PooledHttpHandler(timeout=self.configs.api_timeout),
        )
        self._storage = storage
        self._user_agent = self._format_user_agent()

        self._machine_id: str | None = None
        self._password: str | None = None
        self._token: str | None = None
        self._scenarios: list[str] | None = None
        # Names of values whose last write to the storage failed.
        self._unsaved: set[str] = set()

    async def __aenter__(self) -> Watcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def user_agent(self) -> str:
        return self._user_agent

    @property
    def machine_id(self) -> str | None:
        return self._machine_id

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def register(self) -> dict[str, Any]:
        """Register the current credentials as a new watcher.

        A 500 answer is retried once with regenerated credentials.

        Raises:
            CapiRegistrationFailed: If the retry failed with a 500 as well.
        """
        if not self._machine_id or not self._password:
            self._sync_credentials()

        async def attempt() -> dict[str, Any]:
            return await self.request(
                METHOD_POST,
                self.REGISTER_ENDPOINT,
                {"password": self._password, "machine_id": self._machine_id},
                self._headers(),
            )

        async def regenerate(err: Exception) -> None:
            _LOGGER.warning("Registration failed (%s), retrying with new credentials", err)
            self._refresh_credentials()

        response = await retry_async(
            attempt,
            is_retryable=_has_status(500),
            retries=self.REGISTER_RETRY,
            on_retry=regenerate,
            exhausted=CapiRegistrationFailed,
        )
        _LOGGER.info("Registered watcher %s", self._machine_id)
        return response

    async def login(self, scenarios: Sequence[str] | None = None) -> dict[str, Any]:
        """Log in and store the returned token for these scenarios.

        Raises:
            CapiAuthRequired: If the response carries no token.
        """
        scenario_list = self._resolve_scenarios(scenarios)
        if not self._machine_id or not self._password:
            await self.ensure_register()

        response = await self.request(
            METHOD_POST,
            self.LOGIN_ENDPOINT,
            {
                "password": self._password,
                "machine_id": self._machine_id,
                "scenarios": scenario_list,
            },
            self._headers(),
        )
        token = response.get("token")
        if not token:
            raise CapiAuthRequired("Login response does not contain required token.")

        self._token = token
        self._scenarios = scenario_list
        self._persist(self._storage.store_token, token, "token")
        self._persist(self._storage.store_scenarios, scenario_list, "scenarios")
        _LOGGER.info("Logged in watcher %s", self._machine_id)
        return response

    async def enroll(
        self,
        name: str,
        overwrite: bool,
        enroll_key: str,
        tags: list[str] | None = None,
        scenarios: Sequence[str] | None = None,
    ) -> dict[str, Any]:
        """Attach the watcher to a console account."""
        params = {
            "name": name,
            "overwrite": overwrite,
            "attachment_key": enroll_key,
            "tags": list(tags or []),
        }
        await self.ensure_auth(scenarios)
        return await self.manage_request(
            METHOD_POST, self.ENROLL_ENDPOINT, params, scenarios
        )

    async def push_signals(
        self, signals: list[dict[str, Any]], scenarios: Sequence[str] | None = None
    ) -> dict[str, Any]:
        """Push a batch of signals (see ``build_signal``)."""
        await self.ensure_auth(scenarios)
        return await self.manage_request(
            METHOD_POST, self.SIGNALS_ENDPOINT, signals, scenarios
        )

    async def get_stream_decisions(
        self, scenarios: Sequence[str] | None = None
    ) -> dict[str, Any]:
        """Pull new and deleted decisions."""
        await self.ensure_auth(scenarios)
        return await self.manage_request(
            METHOD_GET, self.DECISIONS_STREAM_ENDPOINT, {}, scenarios
        )

    async def get_list_decisions(self, url: str) -> str:
        """Download a blocklist linked from the decisions stream.

        Blocklist links are pre-signed, so no bearer token is sent.
        """
        return await self.request_handler.get_list_decisions(url, self._headers())

    # -------------------------------------------------------------------------
    # Credential and token management
    # -------------------------------------------------------------------------

    async def ensure_register(self) -> None:
        """Load credentials from storage, registering new ones if unusable."""
        if self._sync_credentials():
            await self.register()

    async def ensure_auth(self, scenarios: Sequence[str] | None = None) -> None:
        """Make sure a token valid for these scenarios is available."""
        scenario_list = self._resolve_scenarios(scenarios)
        await self.ensure_register()
        self._token = self._retrieve(
            "token", self._storage.retrieve_token, self._token
        )
        if self._should_login(scenario_list):
            await self.login(scenario_list)

    async def manage_request(
        self,
        method: str,
        endpoint: str,
        params: Mapping[str, Any] | list[Any],
        scenarios: Sequence[str] | None = None,
    ) -> dict[str, Any]:
        """Send an authenticated request, logging in again once on 401.

        Raises:
            CapiAuthRetryExhausted: If the request is still unauthorized
                after a fresh login.
        """

        async def attempt() -> dict[str, Any]:
            return await self.request(method, endpoint, params, self._auth_headers())

        async def relogin(err: Exception) -> None:
            _LOGGER.warning("%s %s unauthorized, logging in again", method, endpoint)
            self._invalidate_token()
            await self.login(scenarios)

        return await retry_async(
            attempt,
            is_retryable=_has_status(401),
            retries=self.LOGIN_RETRY,
            on_retry=relogin,
            exhausted=CapiAuthRetryExhausted,
        )

    def _sync_credentials(self) -> bool:
        """Reload credentials from storage; return True if regenerated."""
        self._machine_id = self._retrieve(
            "machine_id", self._storage.retrieve_machine_id, self._machine_id
        )
        self._password = self._retrieve(
            "password", self._storage.retrieve_password, self._password
        )
        if should_refresh_credentials(
            self._machine_id, self._password, self.configs.machine_id_prefix
        ):
            _LOGGER.info("No usable watcher credentials stored, generating new ones")
            self._refresh_credentials()
            return True
        return False

    def _refresh_credentials(self) -> None:
        self._machine_id = generate_machine_id(self.configs.machine_id_prefix)
        self._password = generate_password()
        self._persist(self._storage.store_machine_id, self._machine_id, "machine_id")
        self._persist(self._storage.store_password, self._password, "password")
        # Tokens are bound to the machine id.
        self._invalidate_token()

    def _invalidate_token(self) -> None:
        self._token = None
        self._persist(self._storage.store_token, "", "token")

    def _should_login(self, scenarios: list[str]) -> bool:
        if not self._token:
            return True
        stored = self._retrieve(
            "scenarios", self._storage.retrieve_scenarios, self._scenarios
        )
        return not are_equals(scenarios, stored or [])

    def _retrieve(self, name: str, retrieve: Callable[[], Any], in_memory: Any) -> Any:
        """Read a value from storage unless its last write there failed."""
        if name in self._unsaved:
            return in_memory
        return retrieve()

    def _persist(self, store: Callable[[Any], bool], value: Any, name: str) -> None:
        if store(value):
            self._unsaved.discard(name)
        else:
            self._unsaved.add(name)
            _LOGGER.warning("Could not persist watcher %s, keeping it in memory only", name)

    # -------------------------------------------------------------------------
    # Headers
    # -------------------------------------------------------------------------

    def _format_user_agent(self) -> str:
        user_agent = USER_AGENT_PREFIX + self.configs.user_agent_version
        if self.configs.user_agent_suffix:
            user_agent += "/" + self.configs.user_agent_suffix
        return user_agent

    def _headers(self) -> dict[str, str]:
        return {"User-Agent": self._user_agent}

    def _auth_headers(self) -> dict[str, str]:
        if not self._token:
            raise CapiAuthRequired("Token is required.")
        return {**self._headers(), "Authorization": f"Bearer {self._token}"}

    def _resolve_scenarios(self, scenarios: Sequence[str] | None) -> list[str]:
        if scenarios is None:
            return list(self.configs.scenarios)
        return list(validate_scenarios(scenarios))
