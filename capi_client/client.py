"""Low-level REST client for CAPI endpoints."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from .errors import (
    CapiHttpError,
    CapiInvalidBody,
    CapiInvalidMethod,
    CapiTransportError,
)
from .message import Request, Response
from .transport.base import METHOD_GET, METHOD_POST, RequestHandler

_LOGGER = logging.getLogger(__name__)

ALLOWED_METHODS: tuple[str, ...] = (METHOD_POST, METHOD_GET)


def format_response_body(response: Response) -> dict[str, Any]:
    """Decode a response body and check its status code.

    An empty body decodes to ``{"message": ""}``. A JSON value that is not
    an object is wrapped under ``"message"``.

    Raises:
        CapiInvalidBody: If the body is not valid JSON.
        CapiHttpError: If the status is outside [200, 300).
    """
    status = response.status_code
    body = response.body
    decoded: Any = {"message": ""}
    if body:
        try:
            decoded = json.loads(body)
        except ValueError as err:
            raise CapiInvalidBody("Body response is not a valid json") from err
        if not isinstance(decoded, dict):
            decoded = {"message": decoded}

    if status < 200 or status >= 300:
        flat_body = body.replace("\n", "")
        raise CapiHttpError(
            status,
            f"Unexpected response status code: {status}. Body was: {flat_body}",
        )

    return decoded


class CapiBaseClient:
    """Turn (method, endpoint, params, headers) into JSON API calls."""

    def __init__(self, url: str, request_handler: RequestHandler) -> None:
        self._url = url
        self._request_handler = request_handler

    @property
    def url(self) -> str:
        return self._url

    @property
    def request_handler(self) -> RequestHandler:
        return self._request_handler

    def _full_url(self, endpoint: str) -> str:
        return self._url + endpoint.lstrip("/")

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Mapping[str, Any] | list[Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """Perform a request and return its decoded JSON body.

        Raises:
            CapiInvalidMethod: If method is not GET or POST.
            CapiTransportError: On connection failure or empty status.
            CapiInvalidBody: If the response is not valid JSON.
            CapiHttpError: If the response status is not 2xx.
        """
        method = method.upper()
        if method not in ALLOWED_METHODS:
            raise CapiInvalidMethod(f"Method ({method}) is not allowed.")

        request = Request(
            self._full_url(endpoint),
            method,
            headers=dict(headers or {}),
            params=params if params is not None else {},
        )
        response = await self.send_request(request)
        if not response.status_code:
            raise CapiTransportError("Unexpected empty response http code")

        _LOGGER.debug("%s %s -> %s", method, endpoint, response.status_code)
        return format_response_body(response)

    async def send_request(self, request: Request) -> Response:
        return await self._request_handler.send(request)

    async def close(self) -> None:
        await self._request_handler.close()
