"""Single-shot request handler that streams each response body."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import aiohttp

from ..constants import API_TIMEOUT
from ..errors import CapiInvalidBody, CapiTimeout, CapiTransportError
from ..message import Request, Response
from .base import RequestHandler, check_user_agent, request_kwargs

CHUNK_SIZE = 8192


class StreamingHttpHandler(RequestHandler):
    """Open a fresh session per call and read the body chunk by chunk.

    Nothing is kept between calls, so there is nothing to close.
    """

    def __init__(self, *, timeout: int = API_TIMEOUT) -> None:
        self._timeout = timeout

    async def _fetch(
        self, method: str, url: str, headers: Mapping[str, str], **kwargs: Any
    ) -> Response:
        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self._timeout)
        ) as session:
            async with session.request(
                method,
                url,
                headers={**headers, "Connection": "close"},
                **kwargs,
            ) as resp:
                chunks = [chunk async for chunk in resp.content.iter_chunked(CHUNK_SIZE)]
                body = b"".join(chunks).decode(resp.charset or "utf-8")
                return Response(resp.status, body, dict(resp.headers))

    async def send(self, request: Request) -> Response:
        """Send the request on a one-off session."""
        check_user_agent(request)
        try:
            return await self._fetch(
                request.method, request.uri, request.headers, **request_kwargs(request)
            )
        except TimeoutError as err:
            raise CapiTimeout(f"{request.method} {request.uri} timed out") from err
        except aiohttp.ClientError as err:
            raise CapiTransportError(
                f"{request.method} {request.uri} failed: {err}"
            ) from err
        except (UnicodeDecodeError, LookupError) as err:
            raise CapiInvalidBody(
                f"{request.method} {request.uri} returned an undecodable body"
            ) from err

    async def get_list_decisions(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> str:
        """Download a linked blocklist on a one-off session."""
        try:
            response = await self._fetch("GET", url, headers or {})
        except TimeoutError as err:
            raise CapiTimeout("Blocklist request timed out") from err
        except aiohttp.ClientError as err:
            raise CapiTransportError("Blocklist request failed") from err
        except (UnicodeDecodeError, LookupError) as err:
            raise CapiInvalidBody("Blocklist body could not be decoded") from err
        return response.body if response.status_code == 200 else ""
