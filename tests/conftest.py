"""Pytest configuration and fixtures for capi_client tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from capi_client.constants import DEV_URL
from capi_client.message import Request, Response
from capi_client.storage import MemoryStorage
from capi_client.transport.base import RequestHandler

MACHINE_ID_PREFIX = "capiclienttest"
USER_AGENT_SUFFIX = "CapiClientTest"
SCENARIOS = ["crowdsecurity/http-backdoors-attempts", "crowdsecurity/http-bad-user-agent"]
MACHINE_ID = MACHINE_ID_PREFIX + "a" * 34
PASSWORD = "b" * 32
TOKEN = "this-is-a-token"

LOGIN_SUCCESS = '{"code": 200, "token": "this-is-a-token", "expire": "2026-10-20T10:00:00Z"}'
REGISTER_ALREADY = '{\n  "message": "User already registered."\n}'
SUCCESS = '{"message":"OK"}'
UNAUTHORIZED = '{"message":"Unauthorized"}'
DECISIONS_STREAM_LIST = '{"new": [], "deleted": []}'


@pytest.fixture
def configs() -> dict[str, Any]:
    return {
        "machine_id_prefix": MACHINE_ID_PREFIX,
        "user_agent_suffix": USER_AGENT_SUFFIX,
        "scenarios": list(SCENARIOS),
    }


@pytest.fixture
def registered_storage() -> MemoryStorage:
    """Storage holding valid credentials and a token for SCENARIOS."""
    return MemoryStorage(
        machine_id=MACHINE_ID,
        password=PASSWORD,
        token=TOKEN,
        scenarios=list(SCENARIOS),
    )


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


async def _iter_chunks(chunks: list[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk


def create_mock_response(
    status: int = 200,
    text_data: str = "",
    headers: dict[str, str] | None = None,
    chunks: list[bytes] | None = None,
    charset: str | None = None,
) -> AsyncMock:
    """Create a configured mock response.

    Args:
        status: HTTP status code
        text_data: Data to return from text() call
        headers: Response headers
        chunks: Body chunks yielded by content.iter_chunked(); defaults to
            text_data encoded as a single chunk
        charset: Declared response charset

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status
    response.text.return_value = text_data
    response.headers = headers or {}
    response.charset = charset

    body_chunks = chunks if chunks is not None else [text_data.encode()]
    response.content = MagicMock()
    response.content.iter_chunked = lambda size: _iter_chunks(body_chunks)

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response


class ScriptedHandler(RequestHandler):
    """Request handler replaying canned responses in order."""

    def __init__(self, *responses: Response | Exception, blocklist: str = "") -> None:
        self._responses = list(responses)
        self._blocklist = blocklist
        self.requests: list[Request] = []
        self.closed = False

    async def send(self, request: Request) -> Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"Unexpected request {request.method} {request.uri}")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def get_list_decisions(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> str:
        self.requests.append(Request(url, "GET", headers=dict(headers or {})))
        return self._blocklist

    async def close(self) -> None:
        self.closed = True

    @property
    def endpoints(self) -> list[str]:
        """Request paths relative to the dev API URL, in call order."""
        return ["/" + request.uri.removeprefix(DEV_URL) for request in self.requests]
