"""HTTP message value objects exchanged with request handlers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

DEFAULT_HEADERS: Mapping[str, str] = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


@dataclass(frozen=True)
class Request:
    """Outgoing HTTP request.

    Attributes:
        uri: Absolute URL.
        method: "GET" or "POST".
        headers: Caller headers, merged over the JSON defaults.
        params: JSON body for POST, query parameters for GET. Signal
            batches are sent as a list.
    """

    uri: str
    method: str
    headers: Mapping[str, str] = field(default_factory=lambda: {})
    params: Mapping[str, Any] | list[Any] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", {**DEFAULT_HEADERS, **self.headers})


@dataclass(frozen=True)
class Response:
    """HTTP response as returned by a request handler."""

    status_code: int
    body: str
    headers: Mapping[str, str] = field(default_factory=lambda: {})
