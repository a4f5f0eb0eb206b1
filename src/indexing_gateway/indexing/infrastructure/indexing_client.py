"""Authenticated client for the Google Indexing API v3.

Access tokens come from google-auth service account credentials; every HTTP
exchange (token endpoint included) goes through a single ``httpx.Client`` so
tests can swap the transport and the pool is reused across calls. A client is
safe to share between threads: token refresh is serialized and httpx clients
are thread safe.
"""

import threading
from typing import Any, Mapping, Optional

import httpx
from google.auth import exceptions as google_auth_exceptions
from google.auth import transport
from google.oauth2 import service_account as google_service_account

from indexing_gateway.indexing.domain.results import URL_UPDATED
from indexing_gateway.main.exceptions import RemoteIndexingError
from indexing_gateway.main.logging import get_logger

logger = get_logger(__name__)

DEFAULT_API_BASE_URL = "https://indexing.googleapis.com/v3"
INDEXING_SCOPE = "https://www.googleapis.com/auth/indexing"

PUBLISH_PATH = "/urlNotifications:publish"
METADATA_PATH = "/urlNotifications/metadata"


class _HttpxResponse(transport.Response):
    def __init__(self, response: httpx.Response):
        self._response = response

    @property
    def status(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> Mapping[str, str]:
        return self._response.headers

    @property
    def data(self) -> bytes:
        return self._response.content


class HttpxAuthRequest(transport.Request):
    """google-auth transport adapter backed by an ``httpx.Client``.

    ``timeout`` is the fallback used when google-auth does not pass one itself
    (it does not for token refreshes).
    """

    def __init__(self, http_client: httpx.Client, timeout: Optional[float] = None):
        self._http = http_client
        self._timeout = timeout

    def __call__(
        self,
        url,
        method="GET",
        body=None,
        headers=None,
        timeout=None,
        **kwargs,
    ):
        if timeout is None:
            timeout = self._timeout
        try:
            response = self._http.request(
                method,
                url,
                content=body,
                headers=headers,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except httpx.HTTPError as e:
            raise google_auth_exceptions.TransportError(str(e)) from e

        return _HttpxResponse(response)


def _error_message(response: httpx.Response) -> str:
    """Pull the human readable message out of a Google API error body."""
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        body = response.text.strip()
        if body:
            return f"HTTP {response.status_code}: {body[:200]}"
        return f"HTTP {response.status_code}"


class IndexingClient:
    def __init__(
        self,
        credentials: google_service_account.Credentials,
        http_client: httpx.Client,
        api_base_url: str = DEFAULT_API_BASE_URL,
    ):
        self._credentials = credentials
        self._http = http_client
        self._api_base_url = api_base_url.rstrip("/")
        self._token_lock = threading.Lock()

    @property
    def identity(self) -> str:
        return self._credentials.service_account_email

    def ensure_token(self, timeout: Optional[float] = None) -> None:
        """Fetch an access token unless a valid one is already held.

        Raises:
            google.auth.exceptions.RefreshError: The token endpoint rejected the credential.
            google.auth.exceptions.TransportError: The token endpoint was unreachable.
        """
        with self._token_lock:
            self._refresh_if_needed(timeout)

    def _refresh_if_needed(self, timeout: Optional[float]) -> None:
        # Caller holds _token_lock
        if not self._credentials.valid:
            self._credentials.refresh(HttpxAuthRequest(self._http, timeout=timeout))

    def _authorization_headers(self, timeout: Optional[float]) -> dict[str, str]:
        headers: dict[str, str] = {}
        with self._token_lock:
            self._refresh_if_needed(timeout)
            self._credentials.apply(headers)
        return headers

    def _send(
        self,
        method: str,
        path: str,
        *,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        try:
            headers = self._authorization_headers(timeout)
        except (
            google_auth_exceptions.RefreshError,
            google_auth_exceptions.TransportError,
        ) as e:
            raise RemoteIndexingError(f"Failed to refresh access token: {e}") from e

        try:
            response = self._http.request(
                method,
                f"{self._api_base_url}{path}",
                headers=headers,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
                **kwargs,
            )
        except httpx.TimeoutException as e:
            raise RemoteIndexingError(
                f"Request to Google Indexing API timed out: {e}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteIndexingError(f"Request to Google Indexing API failed: {e}") from e

        if response.is_error:
            logger.debug(
                f"Indexing API returned {response.status_code} for {method} {path}",
                extra={"status_code": response.status_code},
            )
            raise RemoteIndexingError(_error_message(response), response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise RemoteIndexingError(
                "Google Indexing API returned a malformed response",
                response.status_code,
            ) from e

    def notify(
        self,
        url: str,
        change_type: str = URL_UPDATED,
        *,
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        """Publish a URL notification.

        Returns:
            The ``urlNotificationMetadata`` document echoed back by the API.

        Raises:
            RemoteIndexingError: The call failed or was rejected.
        """
        return self._send(
            "POST",
            PUBLISH_PATH,
            json={"url": url, "type": change_type},
            timeout=timeout,
        )

    def read_metadata(
        self, url: str, *, timeout: Optional[float] = None
    ) -> dict[str, Any]:
        return self._send("GET", METADATA_PATH, params={"url": url}, timeout=timeout)

    def close(self) -> None:
        self._http.close()
