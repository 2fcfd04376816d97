"""Content service HTTP client with MSAL authentication."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any
from urllib import request as urllib_request
from urllib.error import HTTPError

import msal

if TYPE_CHECKING:
    from content_navigator.config import AppConfig

logger = logging.getLogger(__name__)

AUTHORITY_BASE_URL = "https://login.microsoftonline.com"
DEFAULT_TIMEOUT = 30.0


class ContentAuthError(Exception):
    """Raised when MSAL token acquisition fails."""


class ContentApiError(Exception):
    """Raised when the content service returns a non-2xx response."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"Content API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class ContentClient:
    """Authenticated client for the content service REST API."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        tenant_id: str,
        scopes: list[str],
        base_url: str = "",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialise the MSAL confidential client application.

        Args:
            client_id: Azure AD application (client) ID.
            client_secret: Azure AD application client secret.
            tenant_id: Azure AD tenant ID.
            scopes: OAuth scopes requested for the content service.
            base_url: Base URL of the content service; may be set later by ``connect``.
            timeout: Per-request timeout in seconds.
        """
        authority = f"{AUTHORITY_BASE_URL}/{tenant_id}"
        self._app = msal.ConfidentialClientApplication(
            client_id=client_id,
            client_credential=client_secret,
            authority=authority,
        )
        self._scopes = scopes
        self._timeout = timeout
        self.base_url = base_url.rstrip("/")

    def _acquire_token(self) -> str:
        """Acquire a Bearer token using client credentials flow.

        Returns:
            Access token string.

        Raises:
            ContentAuthError: If MSAL cannot acquire a token.
        """
        result: dict[str, Any] = self._app.acquire_token_for_client(scopes=self._scopes) or {}
        if "access_token" not in result:
            error = result.get("error", "unknown_error")
            description = result.get("error_description", "No description provided")
            logger.error("[_acquire_token] MSAL token acquisition failed; error:%s", error)
            raise ContentAuthError(f"Token acquisition failed: {error}: {description}")
        return str(result["access_token"])

    def _request(
        self,
        method: str,
        path: str,
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> bytes:
        """Send an authenticated request and return the raw response body.

        Raises:
            ContentAuthError: If token acquisition fails.
            ContentApiError: If the API returns a non-2xx status code.
        """
        token = self._acquire_token()
        req = urllib_request.Request(
            f"{self.base_url}{path}",
            data=data,
            headers={"Authorization": f"Bearer {token}", **(headers or {})},
            method=method,
        )
        try:
            with urllib_request.urlopen(req, timeout=self._timeout) as resp:
                return resp.read()  # type: ignore[no-any-return]
        except HTTPError as exc:
            raw = exc.read()
            try:
                detail = json.loads(raw).get("message", exc.reason)
            except (ValueError, AttributeError):
                detail = exc.reason
            raise ContentApiError(exc.code, detail) from exc

    def get(self, path: str) -> dict[str, Any]:
        """Perform an authenticated GET request and parse the JSON body.

        Args:
            path: URL path relative to the base URL (must start with '/').

        Returns:
            Parsed JSON response body as a dict.
        """
        body = self._request("GET", path, headers={"Accept": "application/json"})
        return json.loads(body)  # type: ignore[no-any-return]

    def get_content(self, path: str) -> bytes:
        """Download raw content bytes from the given path."""
        return self._request("GET", path)

    def post(self, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        """POST a JSON payload and return the parsed JSON response (empty dict if none)."""
        body = self._request(
            "POST",
            path,
            data=json.dumps(payload or {}).encode("utf-8"),
            headers={"Accept": "application/json", "Content-Type": "application/json"},
        )
        return json.loads(body) if body else {}

    def post_content(
        self,
        path: str,
        content: bytes,
        filename: str,
        content_type: str = "application/octet-stream",
    ) -> dict[str, Any]:
        """Upload raw bytes as a new file and return the created item.

        Args:
            path: URL path relative to the base URL (must start with '/').
            content: Raw bytes to upload.
            filename: Name sent in the Content-Disposition header.
            content_type: MIME type for the Content-Type header.
        """
        body = self._request(
            "POST",
            path,
            data=content,
            headers={
                "Accept": "application/json",
                "Content-Type": content_type,
                "Content-Disposition": f'attachment; filename="{filename}"',
            },
        )
        return json.loads(body) if body else {}

    def put_content(
        self,
        path: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> None:
        """Replace the content stored at the given path."""
        self._request("PUT", path, data=content, headers={"Content-Type": content_type})

    def patch(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """PATCH a JSON payload and return the parsed JSON response (empty dict if none)."""
        body = self._request(
            "PATCH",
            path,
            data=json.dumps(payload).encode("utf-8"),
            headers={"Accept": "application/json", "Content-Type": "application/json"},
        )
        return json.loads(body) if body else {}

    def delete(self, path: str) -> None:
        """Perform an authenticated DELETE request."""
        self._request("DELETE", path)


def content_client_from_config(config: AppConfig) -> ContentClient:
    """Construct a ContentClient from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured ContentClient instance.
    """
    return ContentClient(
        client_id=config.client_id,
        client_secret=config.client_secret,
        tenant_id=config.tenant_id,
        scopes=config.scopes,
        base_url=config.endpoint,
        timeout=config.request_timeout,
    )
