"""
Key Provisioning

Fetches the API key a session needs to open its transcription connection.

Usage:
    from livecaption.provisioning import fetch_api_key

    key = await fetch_api_key()  # raises ProvisioningError on failure
    await close_client()
"""

from .client import KeyProvisioningClient

# Singleton instance
_client: KeyProvisioningClient | None = None


def get_client() -> KeyProvisioningClient:
    """Get singleton KeyProvisioningClient instance."""
    global _client
    if _client is None:
        _client = KeyProvisioningClient()
    return _client


async def fetch_api_key() -> str:
    """Fetch an API key from the configured provisioning endpoint."""
    return await get_client().fetch_key()


async def close_client() -> None:
    """Close the singleton client and forget it."""
    global _client
    if _client is not None:
        await _client.close()
        _client = None


__all__ = [
    "KeyProvisioningClient",
    "close_client",
    "fetch_api_key",
    "get_client",
]
