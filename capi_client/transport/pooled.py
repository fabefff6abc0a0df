"""Pooled-connection request handler on a shared aiohttp session."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import aiohttp

from ..constants import API_TIMEOUT
from ..errors import CapiInvalidBody, CapiTimeout, CapiTransportError
from ..message import Request, Response
from .base import RequestHandler, check_user_agent, request_kwargs

_LOGGER = logging.getLogger(__name__)


class PooledHttpHandler(RequestHandler):
    """Request handler reusing the connections of one aiohttp ClientSession.

    The session is created lazily and closed by ``close()`` unless it was
    injected by the caller, in which case the caller owns it.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        *,
        timeout: int = API_TIMEOUT,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self._timeout = timeout

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    async def send(self, request: Request) -> Response:
        """Send the request on the pooled session."""
        check_user_agent(request)
        session = self._get_session()
        _LOGGER.debug("%s %s", request.method, request.uri)
        try:
            async with session.request(
                request.method,
                request.uri,
                headers=dict(request.headers),
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                **request_kwargs(request),
            ) as resp:
                body = await resp.text()
                return Response(resp.status, body, dict(resp.headers))
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
        """Download a linked blocklist on the pooled session."""
        session = self._get_session()
        try:
            async with session.get(
                url,
                headers=dict(headers or {}),
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                if resp.status != 200:
                    _LOGGER.debug("Blocklist download returned %s", resp.status)
                    return ""
                return await resp.text()
        except TimeoutError as err:
            raise CapiTimeout("Blocklist request timed out") from err
        except aiohttp.ClientError as err:
            raise CapiTransportError("Blocklist request failed") from err
        except (UnicodeDecodeError, LookupError) as err:
            raise CapiInvalidBody("Blocklist body could not be decoded") from err

    async def close(self) -> None:
        """Close the session if this handler created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None
