"""Shared HTTP plumbing for the catalog and scraping API clients.

Both backends answer with JSON envelopes of the form
``{"success": bool, "message": str, "data": ...}``. Every failure, whether a
transport problem or an error status, is raised as ``ApiError`` carrying the
server's message when there is one and a per-operation fallback otherwise.
"""

from typing import Any, Optional

import httpx
from loguru import logger


class ApiError(Exception):
    """Raised when a remote API call fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    @property
    def is_method_not_allowed(self) -> bool:
        """True when the server rejected the HTTP verb rather than the request."""
        if self.status_code == 405:
            return True
        # Express answers an unrouted verb with 404 "Cannot PATCH /path"
        return self.status_code == 404 and "Cannot PATCH" in self.message


class ApiClient:
    """Thin JSON client around ``httpx.Client``.

    Subclasses add one method per remote endpoint and pass a human readable
    fallback message for each, e.g. ``"Failed to fetch categories."``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize client.

        Args:
            base_url: API root, e.g. ``https://api.example.com/api``
            timeout: Request timeout in seconds
            headers: Extra default headers
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json", **(headers or {})},
            transport=transport,
        )

    def request(
        self,
        method: str,
        path: str,
        fallback_message: str,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
        files: Any = None,
    ) -> dict[str, Any]:
        """Send one request and return the decoded JSON body.

        Args:
            method: HTTP verb
            path: Path relative to ``base_url``
            fallback_message: Error message used when the server gives none
            json: JSON body
            params: Query parameters; ``None`` and empty values are dropped
            files: Multipart files (switches the body to multipart/form-data)

        Returns:
            Decoded JSON response body

        Raises:
            ApiError: On transport errors, error statuses or undecodable bodies
        """
        query = {
            key: value
            for key, value in (params or {}).items()
            if value is not None and value != ""
        }
        logger.debug(f"{method} {self.base_url}{path}")

        try:
            response = self.client.request(
                method,
                path,
                json=json,
                params=query or None,
                files=files,
            )
        except httpx.TimeoutException as e:
            raise ApiError(f"{fallback_message} Request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ApiError(str(e) or fallback_message) from e

        body = self._decode(response)

        if response.is_error:
            self.on_error_status(response)
            message = _server_message(body) or fallback_message
            raise ApiError(message, status_code=response.status_code, payload=body)

        if body is None:
            raise ApiError(fallback_message, status_code=response.status_code)

        return body

    def request_data(
        self,
        method: str,
        path: str,
        fallback_message: str,
        **kwargs: Any,
    ) -> Any:
        """Like ``request`` but unwrap ``data`` and honour ``success: false``."""
        body = self.request(method, path, fallback_message, **kwargs)
        if body.get("success") is False:
            raise ApiError(_server_message(body) or fallback_message, payload=body)
        return body.get("data")

    def on_error_status(self, response: httpx.Response) -> None:
        """Hook for subclasses reacting to specific error statuses."""

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @staticmethod
    def _decode(response: httpx.Response) -> Optional[dict[str, Any]]:
        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else {"data": body}


def _server_message(body: Optional[dict[str, Any]]) -> Optional[str]:
    if not body:
        return None
    message = body.get("message") or body.get("error")
    return str(message) if message else None
