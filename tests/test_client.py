"""Tests for diagnocatctl.core.client module."""

from __future__ import annotations

import httpx
import pytest
from conftest import BASE_URL, Recorder, json_body

from diagnocatctl.core.client import DiagnocatClient
from diagnocatctl.core.config import Profile
from diagnocatctl.core.exceptions import (
    AuthenticationError,
    DecodeError,
    InvalidURLError,
    NetworkError,
    RemoteError,
)


class TestClientConstruction:
    """Tests for building clients."""

    def test_trailing_slash_stripped(self):
        client = DiagnocatClient(base_url="https://diagnocat.example.org/partner-api/")
        assert client.base_url == "https://diagnocat.example.org/partner-api"

    def test_invalid_url_rejected(self):
        with pytest.raises(InvalidURLError):
            DiagnocatClient(base_url="ftp://diagnocat.example.org")

    def test_from_profile_prefers_env_credentials(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("DIAGNOCAT_API_KEY", "env-key")
        profile = Profile(url=BASE_URL, api_key="profile-key", timeout=45, verify_ssl=False)

        client = DiagnocatClient.from_profile(profile)

        assert client.api_key == "env-key"
        assert client.timeout == 45
        assert client.verify_ssl is False
        assert client.auth_mode == "api_key"

    def test_repr_hides_secrets(self):
        client = DiagnocatClient(base_url=BASE_URL, api_key="secret-key", password="hunter2")
        assert "secret-key" not in repr(client)
        assert "hunter2" not in repr(client)


class TestClientRequests:
    """Tests for authenticated requests through MockTransport."""

    def test_api_key_bearer_header(self, make_client, recorder: Recorder):
        recorder.on("GET", "/v2/participants", {"participants": []})
        client = make_client(api_key="static-key")

        client.get("/v2/participants", operation="ping")

        request = recorder.requests[0]
        assert request.headers["Authorization"] == "Bearer static-key"
        assert request.headers["Accept"] == "application/json"

    def test_session_token_fetched_once(self, make_client, recorder: Recorder):
        recorder.on("POST", "/v2/auth/token", {"token": "sess-token"})
        recorder.on("GET", "/v2/participants", {})
        client = make_client(api_key=None, email="a@example.org", password="pw", client_host_id="host-1")

        client.get("/v2/participants", operation="ping")
        client.get("/v2/participants", operation="ping")

        auth_calls = recorder.calls("POST", "/v2/auth/token")
        assert len(auth_calls) == 1
        assert json_body(auth_calls[0]) == {
            "client_host_id": "host-1",
            "email": "a@example.org",
            "password": "pw",
        }
        for request in recorder.calls("GET", "/v2/participants"):
            assert request.headers["Authorization"] == "Bearer sess-token"

    def test_auth_rejection(self, make_client, recorder: Recorder):
        recorder.on("POST", "/v2/auth/token", lambda r: httpx.Response(403, text="bad credentials"))
        client = make_client(api_key=None, email="a@example.org", password="wrong")

        with pytest.raises(AuthenticationError):
            client.get("/v2/participants", operation="ping")
        assert recorder.calls("GET", "/v2/participants") == []

    def test_auth_response_without_token(self, make_client, recorder: Recorder):
        recorder.on("POST", "/v2/auth/token", {"expires_in": 3600})
        client = make_client(api_key=None, email="a@example.org", password="pw")

        with pytest.raises(AuthenticationError):
            client.auth_headers()

    def test_no_credentials(self, make_client, recorder: Recorder):
        client = make_client(api_key=None)
        with pytest.raises(AuthenticationError):
            client.get("/v2/participants", operation="ping")
        assert recorder.requests == []

    def test_non_success_status_is_remote_error(self, make_client, recorder: Recorder):
        recorder.on("GET", "/v2/analyses/an-1", lambda r: httpx.Response(500, text="boom"))
        client = make_client()

        with pytest.raises(RemoteError) as exc_info:
            client.get("/v2/analyses/an-1", operation="get analysis")

        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "boom"
        assert exc_info.value.operation == "get analysis"

    def test_transport_error_is_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = DiagnocatClient(base_url=BASE_URL, api_key="k", transport=httpx.MockTransport(handler))
        with pytest.raises(NetworkError):
            client.get("/v2/participants", operation="ping")
        client.close()

    def test_timeout_is_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = DiagnocatClient(base_url=BASE_URL, api_key="k", transport=httpx.MockTransport(handler))
        with pytest.raises(NetworkError, match="Timeout"):
            client.get("/v2/participants", operation="ping")
        client.close()

    def test_401_invalidates_session_token(self, make_client, recorder: Recorder):
        tokens = iter(["first", "second"])
        recorder.on("POST", "/v2/auth/token", lambda r: httpx.Response(200, json={"token": next(tokens)}))

        def participants(request: httpx.Request) -> httpx.Response:
            if request.headers["Authorization"] == "Bearer first":
                return httpx.Response(401, text="expired")
            return httpx.Response(200, json={})

        recorder.on("GET", "/v2/participants", participants)
        client = make_client(api_key=None, email="a@example.org", password="pw")

        with pytest.raises(RemoteError) as exc_info:
            client.get("/v2/participants", operation="ping")
        assert exc_info.value.status_code == 401

        client.get("/v2/participants", operation="ping")
        assert len(recorder.calls("POST", "/v2/auth/token")) == 2

    def test_auth_decode_error(self, make_client, recorder: Recorder):
        recorder.on("POST", "/v2/auth/token", lambda r: httpx.Response(200, text="<html>"))
        client = make_client(api_key=None, email="a@example.org", password="pw")

        with pytest.raises(AuthenticationError) as exc_info:
            client.auth_headers()
        assert isinstance(exc_info.value.__cause__, DecodeError)


class TestClientStream:
    """Tests for streamed responses."""

    def test_stream_yields_body(self, make_client, recorder: Recorder):
        recorder.on("GET", "/v2/analyses/an-1/pdf", lambda r: httpx.Response(200, content=b"%PDF-1.7"))
        client = make_client()

        with client.stream("GET", "/v2/analyses/an-1/pdf", operation="pdf") as resp:
            assert resp.read() == b"%PDF-1.7"

    def test_stream_error_body_truncated(self, make_client, recorder: Recorder):
        recorder.on(
            "GET",
            "/v2/analyses/an-1/pdf",
            lambda r: httpx.Response(404, content=b"x" * (200 * 1024)),
        )
        client = make_client()

        with pytest.raises(RemoteError) as exc_info:
            with client.stream("GET", "/v2/analyses/an-1/pdf", operation="pdf"):
                pass
        assert exc_info.value.status_code == 404
        assert exc_info.value.body is not None
        assert len(exc_info.value.body) <= 64 * 1024


class TestPing:
    """Tests for ping."""

    def test_ping(self, make_client, recorder: Recorder):
        recorder.on("GET", "/v2/participants", {})
        client = make_client()

        result = client.ping()

        assert result["status"] == "ok"
        assert result["url"] == BASE_URL
        assert result["auth_mode"] == "api_key"
        assert isinstance(result["latency_ms"], int)


def test_context_manager_closes():
    with DiagnocatClient(base_url=BASE_URL, api_key="k") as client:
        client._get_client()
        assert client._client is not None
    assert client._client is None
