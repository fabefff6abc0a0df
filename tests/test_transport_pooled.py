"""Test the pooled aiohttp request handler."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import aiohttp
import pytest

from capi_client.errors import (
    CapiClientError,
    CapiInvalidBody,
    CapiTimeout,
    CapiTransportError,
)
from capi_client.message import Request
from capi_client.transport import PooledHttpHandler

from .conftest import create_mock_response

URL = "https://api.dev.crowdsec.net/v2/signals"
HEADERS = {"User-Agent": "Python CrowdSec CAPI client/v0.1.0"}


class TestPooledSend:
    """Tests for PooledHttpHandler.send()."""

    async def test_post_sends_json_body(self, mock_session: MagicMock) -> None:
        handler = PooledHttpHandler(mock_session)
        mock_session.request.return_value = create_mock_response(
            status=200,
            text_data='{"message":"OK"}',
            headers={"Content-Type": "application/json"},
        )

        response = await handler.send(
            Request(URL, "POST", headers=HEADERS, params=[{"scenario": "a/b"}])
        )

        assert response.status_code == 200
        assert response.body == '{"message":"OK"}'
        assert response.headers == {"Content-Type": "application/json"}

        call_args = mock_session.request.call_args
        assert call_args.args == ("POST", URL)
        assert call_args.kwargs["json"] == [{"scenario": "a/b"}]
        assert call_args.kwargs["headers"]["User-Agent"] == HEADERS["User-Agent"]
        assert call_args.kwargs["headers"]["Accept"] == "application/json"

    async def test_get_sends_query_params(self, mock_session: MagicMock) -> None:
        handler = PooledHttpHandler(mock_session)
        mock_session.request.return_value = create_mock_response(text_data="{}")

        await handler.send(
            Request(URL, "GET", headers=HEADERS, params={"startup": "true"})
        )

        call_kwargs = mock_session.request.call_args.kwargs
        assert call_kwargs["params"] == {"startup": "true"}
        assert "json" not in call_kwargs

    async def test_get_without_params_sends_none(self, mock_session: MagicMock) -> None:
        handler = PooledHttpHandler(mock_session)
        mock_session.request.return_value = create_mock_response(text_data="{}")

        await handler.send(Request(URL, "GET", headers=HEADERS))

        call_kwargs = mock_session.request.call_args.kwargs
        assert "params" not in call_kwargs
        assert "json" not in call_kwargs

    async def test_uses_configured_timeout(self, mock_session: MagicMock) -> None:
        handler = PooledHttpHandler(mock_session, timeout=7)
        mock_session.request.return_value = create_mock_response()

        await handler.send(Request(URL, "GET", headers=HEADERS))

        timeout = mock_session.request.call_args.kwargs["timeout"]
        assert timeout.total == 7

    async def test_error_status_is_returned_not_raised(
        self, mock_session: MagicMock
    ) -> None:
        handler = PooledHttpHandler(mock_session)
        mock_session.request.return_value = create_mock_response(
            status=401, text_data='{"message":"Unauthorized"}'
        )

        response = await handler.send(Request(URL, "GET", headers=HEADERS))

        assert response.status_code == 401

    async def test_user_agent_is_required(self, mock_session: MagicMock) -> None:
        handler = PooledHttpHandler(mock_session)

        with pytest.raises(CapiClientError, match="User agent is required"):
            await handler.send(Request(URL, "GET"))

        mock_session.request.assert_not_called()

    async def test_timeout_raises_capi_timeout(self, mock_session: MagicMock) -> None:
        handler = PooledHttpHandler(mock_session)
        mock_session.request.side_effect = TimeoutError("Request timed out")

        with pytest.raises(CapiTimeout, match="timed out"):
            await handler.send(Request(URL, "GET", headers=HEADERS))

    async def test_client_error_raises_transport_error(
        self, mock_session: MagicMock
    ) -> None:
        handler = PooledHttpHandler(mock_session)
        mock_session.request.side_effect = aiohttp.ClientError("Connection refused")

        with pytest.raises(CapiTransportError, match="Connection refused"):
            await handler.send(Request(URL, "GET", headers=HEADERS))

    async def test_undecodable_body_raises_invalid_body(
        self, mock_session: MagicMock
    ) -> None:
        handler = PooledHttpHandler(mock_session)
        response = create_mock_response(status=200)
        response.text.side_effect = UnicodeDecodeError(
            "utf-8", b"\xff\xfe{", 0, 1, "invalid start byte"
        )
        mock_session.request.return_value = response

        with pytest.raises(CapiInvalidBody, match="undecodable body"):
            await handler.send(Request(URL, "GET", headers=HEADERS))

    async def test_unknown_charset_raises_invalid_body(
        self, mock_session: MagicMock
    ) -> None:
        handler = PooledHttpHandler(mock_session)
        response = create_mock_response(status=200)
        response.text.side_effect = LookupError("unknown encoding: x-unknown")
        mock_session.request.return_value = response

        with pytest.raises(CapiInvalidBody):
            await handler.send(Request(URL, "GET", headers=HEADERS))


class TestPooledListDecisions:
    """Tests for PooledHttpHandler.get_list_decisions()."""

    async def test_returns_body_on_200(self, mock_session: MagicMock) -> None:
        handler = PooledHttpHandler(mock_session)
        mock_session.get.return_value = create_mock_response(
            status=200, text_data="1.2.3.4\n5.6.7.8\n"
        )

        body = await handler.get_list_decisions(
            "https://blocklists.test/list.txt", HEADERS
        )

        assert body == "1.2.3.4\n5.6.7.8\n"
        assert mock_session.get.call_args.args[0] == "https://blocklists.test/list.txt"
        assert mock_session.get.call_args.kwargs["headers"] == HEADERS

    async def test_returns_empty_string_on_error_status(
        self, mock_session: MagicMock
    ) -> None:
        handler = PooledHttpHandler(mock_session)
        mock_session.get.return_value = create_mock_response(
            status=403, text_data="AccessDenied"
        )

        assert await handler.get_list_decisions("https://blocklists.test/x") == ""

    async def test_client_error_raises_transport_error(
        self, mock_session: MagicMock
    ) -> None:
        handler = PooledHttpHandler(mock_session)
        mock_session.get.side_effect = aiohttp.ClientError("boom")

        with pytest.raises(CapiTransportError, match="Blocklist request failed"):
            await handler.get_list_decisions("https://blocklists.test/x")

    async def test_undecodable_body_raises_invalid_body(
        self, mock_session: MagicMock
    ) -> None:
        handler = PooledHttpHandler(mock_session)
        response = create_mock_response(status=200)
        response.text.side_effect = UnicodeDecodeError(
            "utf-8", b"\xff\xfe", 0, 1, "invalid start byte"
        )
        mock_session.get.return_value = response

        with pytest.raises(CapiInvalidBody, match="could not be decoded"):
            await handler.get_list_decisions("https://blocklists.test/x")


class TestPooledSessionOwnership:
    """Tests for PooledHttpHandler.close()."""

    async def test_injected_session_is_left_open(self, mock_session: MagicMock) -> None:
        handler = PooledHttpHandler(mock_session)

        await handler.close()

        mock_session.close.assert_not_called()

    async def test_owned_session_is_created_lazily_and_closed(
        self, mock_session: MagicMock
    ) -> None:
        mock_session.request.return_value = create_mock_response(text_data="{}")

        with patch("aiohttp.ClientSession", return_value=mock_session) as session_cls:
            handler = PooledHttpHandler()
            session_cls.assert_not_called()

            await handler.send(Request(URL, "GET", headers=HEADERS))
            await handler.send(Request(URL, "GET", headers=HEADERS))

            session_cls.assert_called_once()

        await handler.close()

        mock_session.close.assert_awaited_once()
