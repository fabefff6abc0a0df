"""Request handler interface shared by the HTTP transports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from ..errors import CapiClientError
from ..message import Request, Response

# Allowed HTTP methods
METHOD_GET = "GET"
METHOD_POST = "POST"


class RequestHandler(ABC):
    """Send one HTTP request and return its status, body and headers."""

    @abstractmethod
    async def send(self, request: Request) -> Response:
        """Send the request.

        Raises:
            CapiTimeout: If the request times out.
            CapiTransportError: If the connection fails.
        """

    @abstractmethod
    async def get_list_decisions(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> str:
        """Download a plain-text blocklist; empty string unless status is 200."""

    async def close(self) -> None:
        """Release network resources held by the handler."""


def check_user_agent(request: Request) -> None:
    """Reject requests that do not identify the client."""
    if not request.headers.get("User-Agent"):
        raise CapiClientError("User agent is required")


def request_kwargs(request: Request) -> dict[str, Any]:
    """Map request params onto aiohttp keyword arguments.

    POST params travel as a JSON body, GET params as a query string.
    """
    if request.method == METHOD_POST:
        return {"json": request.params}
    if request.params and isinstance(request.params, Mapping):
        return {"params": dict(request.params)}
    return {}
