"""
HTTP Client for CLI.

Provides async HTTP client for communicating with the QuickNote backend.
All requests include X-Frontend-ID: cli header for log routing. Only
ciphertext and public metadata cross this boundary.
"""

from typing import Any

import httpx

from quicknote.backend.core.config import get_app_config, get_server_base_url
from quicknote.backend.core.exceptions import (
    ApplicationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from quicknote.backend.core.logging import get_logger, log_with_source

logger = get_logger(__name__)


def _error_message(response: httpx.Response, default: str) -> str:
    """Pull the message out of an ErrorResponse envelope."""
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return default


class APIClient:
    """
    HTTP client for the notes API.

    Usage:
        client = APIClient()
        note_id = await client.create_note({"ciphertext": ..., "iv": ...})
        note = await client.get_note(note_id)
        await client.confirm_view(note_id)
        await client.close()
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Backend API base URL. If None, reads from config/settings/application.yaml.
            timeout: Request timeout in seconds. If None, reads from config/settings/application.yaml.
            transport: Optional httpx transport (tests pass an ASGITransport)
        """
        if base_url is None or timeout is None:
            config_base_url, config_timeout = get_server_base_url()
            base_url = base_url or config_base_url
            timeout = timeout if timeout is not None else config_timeout

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.api_prefix = get_app_config().application.api_prefix
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"X-Frontend-ID": "cli"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Make an HTTP request to the backend.

        Raises:
            httpx.HTTPError: On transport failure
        """
        client = await self._get_client()
        log_with_source(logger, "cli", "debug", "API request", method=method, path=path)

        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            log_with_source(
                logger, "cli", "error", "API request failed",
                method=method, path=path, error_type=type(e).__name__,
            )
            raise

        log_with_source(
            logger, "cli", "debug", "API response",
            method=method, path=path, status_code=response.status_code,
        )
        return response

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Map error responses back onto application exceptions."""
        status = response.status_code
        if status < 400:
            return
        if status == 404:
            raise NotFoundError(_error_message(response, "Note unavailable"))
        if status in (400, 422):
            raise ValidationError(_error_message(response, "Invalid request"))
        if status == 503:
            raise PersistenceError(_error_message(response, "Could not save the note."))
        raise ApplicationError(_error_message(response, f"Unexpected response: {status}"))

    async def create_note(self, payload: dict[str, Any]) -> str:
        """Submit an encrypted note. Returns its id."""
        response = await self.request("POST", f"{self.api_prefix}/notes", json=payload)
        self._raise_for_status(response)
        return response.json()["data"]["id"]

    async def get_note(self, note_id: str) -> dict[str, Any]:
        """Fetch ciphertext and metadata. Does not count a view."""
        response = await self.request("GET", f"{self.api_prefix}/notes/{note_id}")
        self._raise_for_status(response)
        return response.json()["data"]

    async def confirm_view(self, note_id: str) -> None:
        """Report that the note was decrypted and shown."""
        response = await self.request("POST", f"{self.api_prefix}/notes/{note_id}/views")
        self._raise_for_status(response)

    async def health(self) -> httpx.Response:
        """Readiness of the backend."""
        return await self.request("GET", "/health/ready")
