"""Watcher configuration loading and validation.

Configuration is read once, checked against a fixed schema and frozen.
Nothing downstream reads the raw mapping.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .constants import API_TIMEOUT, ENV_DEV, URL_BY_ENV, VERSION
from .errors import ConfigValidationError

MACHINE_ID_PREFIX_REGEX = re.compile(r"^[a-z0-9]{0,16}$")
USER_AGENT_SUFFIX_REGEX = re.compile(r"^[A-Za-z0-9]{0,16}$")
USER_AGENT_VERSION_REGEX = re.compile(r"^v\d{1,4}(\.\d{1,4}){2}$")
SCENARIO_REGEX = re.compile(r"^[A-Za-z0-9]{0,16}/[A-Za-z0-9_-]{0,32}$")

CONFIG_KEYS = frozenset(
    {
        "env",
        "machine_id_prefix",
        "user_agent_suffix",
        "user_agent_version",
        "scenarios",
        "api_timeout",
    }
)


@dataclass(frozen=True)
class WatcherConfig:
    """Validated watcher configuration.

    Attributes:
        scenarios: Unique scenario names, in the order first given.
        env: "dev" or "prod"; selects the API base URL.
        machine_id_prefix: Prefix for generated machine ids.
        user_agent_suffix: Appended to the User-Agent after a slash.
        user_agent_version: Version part of the User-Agent.
        api_timeout: Per-request timeout in seconds.
    """

    scenarios: tuple[str, ...]
    env: str = ENV_DEV
    machine_id_prefix: str = ""
    user_agent_suffix: str = ""
    user_agent_version: str = VERSION
    api_timeout: int = API_TIMEOUT

    @property
    def api_url(self) -> str:
        return URL_BY_ENV[self.env]


def _check_string(configs: Mapping[str, Any], key: str, default: str) -> str:
    value = configs.get(key, default)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ConfigValidationError(f"Invalid {key}: expected a string")
    return value


def validate_scenarios(raw: Any) -> tuple[str, ...]:
    """Check scenario names and drop duplicates, keeping first-seen order."""
    if raw is None:
        raise ConfigValidationError("The scenarios option is required")
    if isinstance(raw, Mapping):
        raw = list(raw.values())
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
        raise ConfigValidationError("Invalid scenarios: expected a list")

    scenarios = list(raw)
    if not scenarios:
        raise ConfigValidationError("The scenarios option should have at least 1 element")
    for scenario in scenarios:
        if not isinstance(scenario, str) or not scenario:
            raise ConfigValidationError("The scenarios option cannot contain an empty value")
        if not SCENARIO_REGEX.match(scenario):
            raise ConfigValidationError(
                f"Each scenario must match {SCENARIO_REGEX.pattern} regex: {scenario!r}"
            )
    return tuple(dict.fromkeys(scenarios))


def build_config(configs: Mapping[str, Any] | WatcherConfig) -> WatcherConfig:
    """Validate a raw configuration mapping.

    Args:
        configs: Mapping with the watcher options. An already built
            WatcherConfig is returned unchanged.

    Returns:
        Frozen WatcherConfig with defaults applied.

    Raises:
        ConfigValidationError: On unknown keys or invalid values.
    """
    if isinstance(configs, WatcherConfig):
        return configs

    unknown = set(configs) - CONFIG_KEYS
    if unknown:
        raise ConfigValidationError(
            f"Unrecognized options: {', '.join(sorted(unknown))}"
        )

    env = _check_string(configs, "env", ENV_DEV)
    if env not in URL_BY_ENV:
        raise ConfigValidationError(
            f"Invalid env {env!r}. Permissible values: {', '.join(URL_BY_ENV)}"
        )

    prefix = _check_string(configs, "machine_id_prefix", "")
    if not MACHINE_ID_PREFIX_REGEX.match(prefix):
        raise ConfigValidationError(
            "Invalid machine id prefix. Length must be <= 16. Allowed chars are a-z0-9"
        )

    suffix = _check_string(configs, "user_agent_suffix", "")
    if not USER_AGENT_SUFFIX_REGEX.match(suffix):
        raise ConfigValidationError(
            "Invalid user agent suffix. Length must be <= 16. Allowed chars are A-Za-z0-9"
        )

    version = _check_string(configs, "user_agent_version", VERSION)
    if not USER_AGENT_VERSION_REGEX.match(version):
        raise ConfigValidationError("Invalid user agent version. Must match vX.Y.Z format")

    api_timeout = configs.get("api_timeout", API_TIMEOUT)
    if isinstance(api_timeout, bool) or not isinstance(api_timeout, int) or api_timeout <= 0:
        raise ConfigValidationError("Invalid api_timeout: expected a positive integer")

    return WatcherConfig(
        scenarios=validate_scenarios(configs.get("scenarios")),
        env=env,
        machine_id_prefix=prefix,
        user_agent_suffix=suffix,
        user_agent_version=version,
        api_timeout=api_timeout,
    )


def load_config(path: Path) -> WatcherConfig:
    """Load and validate a watcher configuration from a YAML file."""
    if not path.exists():
        raise ConfigValidationError(f"File not found: {path}")
    with path.open() as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, Mapping):
        raise ConfigValidationError(f"Expected a mapping in {path}")
    return build_config(data)
