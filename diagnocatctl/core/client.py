"""HTTP client for the Diagnocat partner API.

Wraps httpx with bearer authentication from a CredentialCache and maps
transport failures and non-success statuses onto the diagnocatctl
exception hierarchy. Nothing is retried here.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import httpx

from diagnocatctl.core.auth import AUTH_MODE_SESSION, CredentialCache, TokenGrant
from diagnocatctl.core.config import DEFAULT_CLIENT_HOST_ID, DEFAULT_URL, Profile, get_credentials
from diagnocatctl.core.exceptions import (
    AuthenticationError,
    DecodeError,
    NetworkError,
    RemoteError,
)
from diagnocatctl.core.timeouts import DEFAULT_HTTP_TIMEOUT_SECONDS
from diagnocatctl.core.validation import validate_server_url

# =============================================================================
# Constants
# =============================================================================

DEFAULT_TIMEOUT = DEFAULT_HTTP_TIMEOUT_SECONDS
AUTH_TOKEN_PATH = "/v2/auth/token"
PING_PATH = "/v2/participants"
ERROR_BODY_LIMIT = 64 * 1024


# =============================================================================
# DiagnocatClient
# =============================================================================


@dataclass
class DiagnocatClient:
    """HTTP client for the Diagnocat partner API."""

    base_url: str = DEFAULT_URL
    api_key: str | None = field(default=None, repr=False)
    email: str | None = None
    password: str | None = field(default=None, repr=False)
    client_host_id: str = DEFAULT_CLIENT_HOST_ID
    timeout: int = DEFAULT_TIMEOUT
    verify_ssl: bool = True
    transport: httpx.BaseTransport | None = field(default=None, repr=False)
    credentials: CredentialCache | None = field(default=None, repr=False)
    _client: httpx.Client | None = field(init=False, default=None, repr=False)
    _client_lock: threading.Lock = field(init=False, default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        """Validate URL and wire up the credential cache."""
        self.base_url = validate_server_url(self.base_url)
        if self.credentials is None:
            self.credentials = CredentialCache(
                api_key=self.api_key,
                email=self.email,
                password=self.password,
                fetch_token=self._fetch_token,
            )

    @classmethod
    def from_profile(
        cls,
        profile: Profile,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> DiagnocatClient:
        """Build a client from a config profile and environment credentials."""
        api_key, email, password = get_credentials(profile)
        return cls(
            base_url=profile.url,
            api_key=api_key,
            email=email,
            password=password,
            client_host_id=profile.client_host_id,
            timeout=profile.timeout,
            verify_ssl=profile.verify_ssl,
            transport=transport,
        )

    # =========================================================================
    # Client Management
    # =========================================================================

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        with self._client_lock:
            if self._client is None:
                self._client = httpx.Client(
                    base_url=self.base_url,
                    timeout=self.timeout,
                    verify=self.verify_ssl,
                    follow_redirects=True,
                    transport=self.transport,
                )
            return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        with self._client_lock:
            if self._client is not None:
                self._client.close()
                self._client = None

    def __enter__(self) -> DiagnocatClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # =========================================================================
    # Authentication
    # =========================================================================

    @property
    def auth_mode(self) -> str:
        """Credential source in use: api_key, session or none."""
        assert self.credentials is not None
        return self.credentials.auth_mode

    def auth_headers(self) -> dict[str, str]:
        """Authorization headers for the next request.

        Raises:
            AuthenticationError: If no credential can be obtained.
        """
        assert self.credentials is not None
        return self.credentials.get_auth_headers()

    def _fetch_token(self, email: str, password: str) -> TokenGrant:
        """Exchange email/password for a session token.

        Raises:
            AuthenticationError: On non-200 status or missing token.
            NetworkError: On transport failure.
            DecodeError: On malformed response body.
        """
        client = self._get_client()
        try:
            resp = client.post(
                AUTH_TOKEN_PATH,
                json={
                    "client_host_id": self.client_host_id,
                    "email": email,
                    "password": password,
                },
            )
        except httpx.TimeoutException as e:
            raise NetworkError(self.base_url, f"Timeout: {e}") from e
        except httpx.TransportError as e:
            raise NetworkError(self.base_url, str(e)) from e

        if resp.status_code != 200:
            raise AuthenticationError(
                self.base_url,
                f"HTTP {resp.status_code}: {resp.text[:500]}",
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise DecodeError("authentication", str(e)) from e
        if not isinstance(data, dict):
            raise DecodeError("authentication", "expected a JSON object")

        token = data.get("token")
        if not token or not isinstance(token, str):
            raise AuthenticationError(self.base_url, "No token in response")

        expires_in = data.get("expires_in")
        if not isinstance(expires_in, (int, float)) or isinstance(expires_in, bool):
            expires_in = None

        return TokenGrant(token=token, expires_in=expires_in)

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    def _build_headers(self, headers: dict[str, str] | None) -> dict[str, str]:
        merged = {"Accept": "application/json"}
        merged.update(self.auth_headers())
        if headers:
            merged.update(headers)
        return merged

    def _handle_status(
        self,
        resp: httpx.Response,
        operation: str,
        expected_status: tuple[int, ...],
        body: str,
        sent_headers: dict[str, str],
    ) -> None:
        if resp.status_code in expected_status:
            return

        # A rejected session token is dropped so the next call re-authenticates
        if resp.status_code == 401 and self.auth_mode == AUTH_MODE_SESSION:
            assert self.credentials is not None
            token = sent_headers.get("Authorization", "").removeprefix("Bearer ")
            self.credentials.invalidate(token or None)

        raise RemoteError(operation, resp.status_code, body)

    def request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        expected_status: tuple[int, ...] = (200,),
    ) -> httpx.Response:
        """Execute one authenticated request.

        Args:
            method: HTTP method.
            path: API path relative to the base URL.
            operation: Operation name used in error messages.
            params: Query parameters.
            json: JSON body.
            headers: Additional headers.
            timeout: Request timeout override.
            expected_status: Statuses treated as success.

        Returns:
            HTTP response with a success status.

        Raises:
            AuthenticationError: If no credential can be obtained.
            NetworkError: On transport failure or timeout.
            RemoteError: On any other status.
        """
        client = self._get_client()
        request_headers = self._build_headers(headers)
        request_timeout = timeout or self.timeout

        try:
            resp = client.request(
                method,
                path,
                params=params,
                json=json,
                headers=request_headers,
                timeout=request_timeout,
            )
        except httpx.TimeoutException as e:
            raise NetworkError(self.base_url, f"Timeout after {request_timeout}s") from e
        except httpx.TransportError as e:
            raise NetworkError(self.base_url, str(e)) from e

        self._handle_status(resp, operation, expected_status, resp.text, request_headers)
        return resp

    def get(self, path: str, *, operation: str, **kwargs: Any) -> httpx.Response:
        """GET request."""
        return self.request("GET", path, operation=operation, **kwargs)

    def post(self, path: str, *, operation: str, **kwargs: Any) -> httpx.Response:
        """POST request."""
        return self.request("POST", path, operation=operation, **kwargs)

    @contextmanager
    def stream(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Iterator[httpx.Response]:
        """Open a streamed authenticated response.

        The status is checked before yielding; error bodies are read up to
        64 KiB.

        Raises:
            AuthenticationError: If no credential can be obtained.
            NetworkError: On transport failure or timeout.
            RemoteError: On a non-200 status.
        """
        client = self._get_client()
        request_headers = self._build_headers(headers)
        request_timeout = timeout or self.timeout

        try:
            with client.stream(
                method,
                path,
                params=params,
                headers=request_headers,
                timeout=request_timeout,
            ) as resp:
                if resp.status_code != 200:
                    body = b""
                    for chunk in resp.iter_bytes():
                        body += chunk
                        if len(body) >= ERROR_BODY_LIMIT:
                            break
                    self._handle_status(
                        resp,
                        operation,
                        (200,),
                        body[:ERROR_BODY_LIMIT].decode("utf-8", errors="replace"),
                        request_headers,
                    )
                yield resp
        except httpx.TimeoutException as e:
            raise NetworkError(self.base_url, f"Timeout after {request_timeout}s") from e
        except httpx.TransportError as e:
            raise NetworkError(self.base_url, str(e)) from e

    # =========================================================================
    # Convenience Methods
    # =========================================================================

    def ping(self) -> dict[str, Any]:
        """Check connectivity and credentials against the participants endpoint.

        Returns:
            Dict with server info.

        Raises:
            AuthenticationError: If credentials are missing or rejected.
            NetworkError: If server is unreachable.
            RemoteError: On a non-200 status.
        """
        start = time.time()
        self.get(PING_PATH, operation="ping")
        latency = int((time.time() - start) * 1000)

        return {
            "url": self.base_url,
            "status": "ok",
            "auth_mode": self.auth_mode,
            "latency_ms": latency,
        }
