"""Async HTTP client for the API key provisioning endpoint."""

import logging
from typing import Optional

import httpx

from livecaption.config import KEY_SERVICE_TIMEOUT, KEY_SERVICE_URL
from livecaption.core.exceptions import ProvisioningError

logger = logging.getLogger(__name__)


class KeyProvisioningClient:
    """Fetches a short-lived transcription API key: GET <url> -> {"key": "..."}"""

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None):
        self.url = url or KEY_SERVICE_URL
        self.timeout = timeout if timeout is not None else KEY_SERVICE_TIMEOUT
        self._http: Optional[httpx.AsyncClient] = None

    async def _get_http(self) -> httpx.AsyncClient:
        """Lazy-init HTTP client with connection pooling."""
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.timeout)
        return self._http

    async def fetch_key(self) -> str:
        """
        Request a new API key. No retries.

        Raises:
            ProvisioningError: On transport failure, non-2xx status,
                non-JSON body or a body without a "key" field
        """
        http = await self._get_http()
        try:
            response = await http.get(self.url, headers={"Cache-Control": "no-store"})
        except httpx.HTTPError as e:
            raise ProvisioningError(f"Key request to {self.url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise ProvisioningError(f"Key service returned {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise ProvisioningError("Key service returned invalid JSON") from e

        if not isinstance(body, dict) or "key" not in body:
            error = body.get("error") if isinstance(body, dict) else None
            raise ProvisioningError(f"No api key returned{f': {error}' if error else ''}")

        key = body["key"]
        if not isinstance(key, str) or not key:
            raise ProvisioningError("Key service returned an empty key")

        logger.info("API key provisioned")
        return key

    async def close(self):
        """Close HTTP client."""
        if self._http:
            await self._http.aclose()
            self._http = None
