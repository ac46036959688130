"""
Unit tests for livecaption.provisioning.client module.

Tests the KeyProvisioningClient class with mocked HTTP responses.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from livecaption.core.exceptions import ProvisioningError


class TestKeyProvisioningClient:
    """Tests for KeyProvisioningClient class."""

    @pytest.fixture
    def client(self):
        """Create a KeyProvisioningClient pointed at a test URL."""
        from .client import KeyProvisioningClient

        return KeyProvisioningClient(url="http://localhost:3000/api", timeout=5.0)

    def mock_http(self, status_code=200, body=None, json_error=None):
        response = MagicMock()
        response.status_code = status_code
        if json_error is not None:
            response.json.side_effect = json_error
        else:
            response.json.return_value = body

        http = AsyncMock()
        http.get = AsyncMock(return_value=response)
        return http

    def test_initialization(self, client):
        assert client.url == "http://localhost:3000/api"
        assert client.timeout == 5.0

    def test_initialization_defaults(self):
        with patch("livecaption.provisioning.client.KEY_SERVICE_URL", "http://keys/api"):
            from .client import KeyProvisioningClient

            client = KeyProvisioningClient()
        assert client.url == "http://keys/api"

    @pytest.mark.asyncio
    async def test_fetch_key_success(self, client):
        http = self.mock_http(body={"key": "abc123", "scopes": ["usage:write"]})

        with patch.object(client, "_get_http", return_value=http):
            key = await client.fetch_key()

        assert key == "abc123"
        http.get.assert_called_once_with("http://localhost:3000/api", headers={"Cache-Control": "no-store"})

    @pytest.mark.asyncio
    async def test_fetch_key_missing_key(self, client):
        http = self.mock_http(body={"error": "quota exceeded"})

        with patch.object(client, "_get_http", return_value=http):
            with pytest.raises(ProvisioningError, match="No api key returned: quota exceeded"):
                await client.fetch_key()

    @pytest.mark.asyncio
    async def test_fetch_key_empty_key(self, client):
        http = self.mock_http(body={"key": ""})

        with patch.object(client, "_get_http", return_value=http):
            with pytest.raises(ProvisioningError):
                await client.fetch_key()

    @pytest.mark.asyncio
    async def test_fetch_key_non_object_body(self, client):
        http = self.mock_http(body=["abc123"])

        with patch.object(client, "_get_http", return_value=http):
            with pytest.raises(ProvisioningError, match="No api key returned"):
                await client.fetch_key()

    @pytest.mark.asyncio
    async def test_fetch_key_http_error_status(self, client):
        http = self.mock_http(status_code=500, body={"key": "ignored"})

        with patch.object(client, "_get_http", return_value=http):
            with pytest.raises(ProvisioningError, match="500"):
                await client.fetch_key()

    @pytest.mark.asyncio
    async def test_fetch_key_invalid_json(self, client):
        http = self.mock_http(json_error=ValueError("Expecting value"))

        with patch.object(client, "_get_http", return_value=http):
            with pytest.raises(ProvisioningError, match="invalid JSON"):
                await client.fetch_key()

    @pytest.mark.asyncio
    async def test_fetch_key_connection_failure(self, client):
        http = AsyncMock()
        http.get = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))

        with patch.object(client, "_get_http", return_value=http):
            with pytest.raises(ProvisioningError) as exc_info:
                await client.fetch_key()

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_fetch_key_with_mock_transport(self):
        """End-to-end through a real httpx client and a mock transport."""
        from .client import KeyProvisioningClient

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["cache-control"] == "no-store"
            return httpx.Response(200, json={"key": "from-transport"})

        client = KeyProvisioningClient(url="http://keys.test/api")
        client._http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        try:
            assert await client.fetch_key() == "from-transport"
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_close(self, client):
        """Close properly closes HTTP client."""
        mock_http = AsyncMock()
        mock_http.aclose = AsyncMock()
        client._http = mock_http

        await client.close()

        mock_http.aclose.assert_called_once()
        assert client._http is None
