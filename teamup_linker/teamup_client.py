"""HTTP client for the Teamup calendar REST API."""

from typing import Any

import httpx

from .config import Settings, get_settings
from .exceptions import (
    TeamupAuthError,
    TeamupError,
    TeamupNetworkError,
    TeamupNotFoundError,
    TeamupOverlapError,
    TeamupServerError,
    TeamupValidationError,
)

OVERLAP_MARKERS = ("overlap",)


def _error_details(response: httpx.Response) -> tuple[str | None, str]:
    """Extract (error id, message) from a Teamup error body."""
    try:
        data = response.json()
    except ValueError:
        return None, response.text or response.reason_phrase
    error = data.get("error", data) if isinstance(data, dict) else {}
    if not isinstance(error, dict):
        return None, str(error)
    message = error.get("message") or error.get("title") or response.reason_phrase
    return error.get("id"), str(message)


def classify_error(response: httpx.Response) -> TeamupError:
    """Map an error response to the exception that drives the fallback chain."""
    status = response.status_code
    error_id, message = _error_details(response)
    text = f"{error_id or ''} {message}".lower()

    if status in (401, 403):
        return TeamupAuthError(message, status, error_id)
    if status == 404:
        return TeamupNotFoundError(message, status, error_id)
    if status >= 500:
        return TeamupServerError(f"Teamup server error: {message}", status, error_id)
    if status < 400:
        # Redirects are not followed, so nothing was written.
        return TeamupError(f"Unexpected Teamup response ({status}): {message}", status, error_id)
    if any(marker in text for marker in OVERLAP_MARKERS):
        return TeamupOverlapError(message, status, error_id)
    return TeamupValidationError(f"Teamup error ({status}): {message}", status, error_id)


class TeamupClient:
    """Client for authenticated event writes against one Teamup calendar."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.base_url = settings.api_url.rstrip("/")

    def _get_headers(self) -> dict[str, str]:
        """Return headers for Teamup requests."""
        return {
            "Teamup-Token": self.settings.api_key,
            "Content-Type": "application/json",
        }

    def event_url(self, event_id: str) -> str:
        return f"{self.base_url}/{self.settings.calendar_id}/events/{event_id}"

    def _handle_response(self, response: httpx.Response) -> dict[str, Any]:
        """Return the decoded body of a 2xx response, raise otherwise."""
        if not response.is_success:
            raise classify_error(response)
        try:
            return response.json()
        except ValueError:
            # Some 2xx answers carry no body
            return {}

    async def _send(
        self, method: str, event_id: str, event_data: dict[str, Any]
    ) -> dict[str, Any]:
        self.settings.require_credentials()
        try:
            async with httpx.AsyncClient(timeout=self.settings.request_timeout) as client:
                response = await client.request(
                    method,
                    self.event_url(event_id),
                    headers=self._get_headers(),
                    json=event_data,
                )
        except httpx.RequestError as e:
            raise TeamupNetworkError(f"Teamup request failed: {e}") from e
        return self._handle_response(response)

    async def update_event(
        self, event_id: str, event_data: dict[str, Any]
    ) -> dict[str, Any]:
        """Update an event (full replacement)."""
        return await self._send("PUT", event_id, event_data)

    async def patch_event(
        self, event_id: str, event_data: dict[str, Any]
    ) -> dict[str, Any]:
        """Partially update an event."""
        return await self._send("PATCH", event_id, event_data)


# Singleton pattern for easy access
_client: TeamupClient | None = None


def get_teamup_client() -> TeamupClient:
    """Get or create the singleton TeamupClient instance."""
    global _client
    if _client is None:
        _client = TeamupClient(get_settings())
    return _client
