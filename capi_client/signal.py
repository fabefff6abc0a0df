"""Signal payload builder for the /signals endpoint."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from .errors import CapiSignalValidationError

SCENARIO_REGEX = re.compile(r"^([a-zA-Z0-9_-]+)/([a-zA-Z0-9_-]+)$")
ISO8601_REGEX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(.\d{6})?Z$")

TRUST_MANUAL = "manual"

_SOURCE_FLOATS = ("latitude", "longitude")
_SOURCE_STRINGS = ("cn", "as_name", "as_number")


def format_date(value: datetime) -> str:
    """Format a datetime as the ISO8601 flavour CAPI expects."""
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _required_date(properties: Mapping[str, Any], key: str) -> str:
    value = properties.get(key)
    if isinstance(value, datetime):
        return format_date(value)
    if not value:
        raise CapiSignalValidationError(f"The {key} property is required")
    if not isinstance(value, str) or not ISO8601_REGEX.match(value):
        raise CapiSignalValidationError(
            f"Invalid {key}. Must match with {ISO8601_REGEX.pattern} regex"
        )
    return value


def _build_properties(properties: Mapping[str, Any]) -> dict[str, Any]:
    scenario = properties.get("scenario")
    if not scenario:
        raise CapiSignalValidationError("The scenario property is required")
    if not isinstance(scenario, str) or not SCENARIO_REGEX.match(scenario):
        raise CapiSignalValidationError(
            f"Invalid scenario. Must match with {SCENARIO_REGEX.pattern} regex"
        )

    result: dict[str, Any] = {
        "scenario_trust": properties.get("scenario_trust", TRUST_MANUAL),
        "scenario_hash": properties.get("scenario_hash", ""),
        "scenario": scenario,
        "scenario_version": properties.get("scenario_version", ""),
        "message": properties.get("message", ""),
        "start_at": _required_date(properties, "start_at"),
        "stop_at": _required_date(properties, "stop_at"),
    }

    created_at = properties.get("created_at") or datetime.now(UTC)
    result["created_at"] = _required_date({"created_at": created_at}, "created_at")

    if "alert_id" in properties:
        alert_id = properties["alert_id"]
        if isinstance(alert_id, bool) or not isinstance(alert_id, int) or alert_id < 0:
            raise CapiSignalValidationError("Invalid alert_id. Must be an integer >= 0")
        result["alert_id"] = alert_id

    if properties.get("machine_id"):
        result["machine_id"] = properties["machine_id"]

    return result


def _build_source(source: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key in ("scope", "value"):
        if not source.get(key):
            raise CapiSignalValidationError(f"The source {key} is required")
        result[key] = source[key]

    for key in _SOURCE_FLOATS:
        if source.get(key) is not None:
            try:
                result[key] = float(source[key])
            except (TypeError, ValueError) as err:
                raise CapiSignalValidationError(
                    f"Invalid source {key}. Must be a number"
                ) from err

    for key in _SOURCE_STRINGS:
        if source.get(key) is not None:
            result[key] = str(source[key])

    return result


def build_signal(
    properties: Mapping[str, Any],
    source: Mapping[str, Any],
    decisions: Sequence[Mapping[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build one signal for ``Watcher.push_signals``.

    Args:
        properties: Alert properties. ``scenario``, ``start_at`` and
            ``stop_at`` are required; dates may be datetimes or ISO8601
            strings ending with ``Z``.
        source: Offending source; ``scope`` and ``value`` are required.
        decisions: Optional decisions taken for this alert.

    Returns:
        JSON-serializable signal dict.

    Raises:
        CapiSignalValidationError: If a property or the source is invalid.
    """
    signal = _build_properties(properties)
    signal["source"] = _build_source(source)
    signal["decisions"] = [dict(decision) for decision in decisions or []]
    return signal
