"""Tests for the shared backend HTTP client."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from pikup.core.exceptions import NetworkError
from pikup.services.api.client import ApiResponse, PikupApiClient


def _mock_session(status=200, json_data=None, json_error=None, text=""):
    """aiohttp session whose request() yields one canned response."""
    response = MagicMock()
    response.status = status
    if json_error is not None:
        response.json = AsyncMock(side_effect=json_error)
    else:
        response.json = AsyncMock(return_value=json_data)
    response.text = AsyncMock(return_value=text)

    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=response)
    ctx.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.request = MagicMock(return_value=ctx)
    session.close = AsyncMock()
    return session


class TestApiResponse:
    """Tests for response classification."""

    def test_success(self):
        assert ApiResponse(200, {"prices": {}}).success

    def test_success_false_in_body(self):
        response = ApiResponse(200, {"success": False, "error": "nope", "code": "X"})
        assert response.ok
        assert not response.success
        assert response.error_code == "X"
        assert response.error_message == "nope"

    def test_error_status(self):
        response = ApiResponse(502)
        assert not response.success
        assert response.error_code is None
        assert response.error_message == "HTTP 502"


class TestPikupApiClient:
    """Tests for request_json."""

    @pytest.fixture
    def client(self):
        return PikupApiClient("https://test-api.pikup.local/", timeout=5)

    def test_url_join(self, client):
        assert client.url("/calculate-price") == "https://test-api.pikup.local/calculate-price"
        assert client.url("https://other.local/x") == "https://other.local/x"

    @pytest.mark.asyncio
    async def test_decodes_json(self, client):
        session = _mock_session(json_data={"success": True, "distance": 12.4})
        client._http_session = session

        response = await client.post_json("/calculate-price", {"a": 1})

        assert response.status == 200
        assert response.data["distance"] == 12.4
        session.request.assert_called_once_with(
            "POST", "https://test-api.pikup.local/calculate-price", json={"a": 1}
        )

    @pytest.mark.asyncio
    async def test_non_json_body_keeps_status(self, client):
        client._http_session = _mock_session(
            status=502, json_error=ValueError("not json"), text="<html>Bad Gateway</html>"
        )

        response = await client.get_json("/pickupRequests/abc")

        assert response.status == 502
        assert response.data == {}
        assert not response.success

    @pytest.mark.asyncio
    async def test_list_body_wrapped(self, client):
        client._http_session = _mock_session(json_data=[1, 2])
        response = await client.get_json("/things")
        assert response.data == {"items": [1, 2]}

    @pytest.mark.asyncio
    async def test_connection_error_becomes_network_error(self, client):
        session = _mock_session()
        session.request = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))
        client._http_session = session

        with pytest.raises(NetworkError):
            await client.post_json("/create-payment", {})

    @pytest.mark.asyncio
    async def test_timeout_becomes_network_error(self, client):
        session = _mock_session()
        session.request = MagicMock(side_effect=asyncio.TimeoutError())
        client._http_session = session

        with pytest.raises(NetworkError) as exc_info:
            await client.post_json("/calculate-price", {})
        assert "timed out" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_context_manager_sets_bearer_header(self):
        async with PikupApiClient("https://test-api.pikup.local", api_token="tok_123") as client:
            assert client._session.headers["Authorization"] == "Bearer tok_123"
        assert client._http_session is None

    def test_session_required(self, client):
        with pytest.raises(RuntimeError):
            client._session
