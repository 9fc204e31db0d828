"""Pytest configuration and fixtures for diagnocatctl tests."""

from __future__ import annotations

import json
import tempfile
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generator, Optional

import httpx
import pytest

from diagnocatctl.core.client import DiagnocatClient

BASE_URL = "https://diagnocat.example.org"
STORAGE_URL = "https://storage.example.org/bucket/scan.zip?sig=abc"


@pytest.fixture(autouse=True)
def _clear_diagnocat_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host environment credentials out of tests."""
    for name in (
        "DIAGNOCAT_API_URL",
        "DIAGNOCAT_API_KEY",
        "DIAGNOCAT_EMAIL",
        "DIAGNOCAT_PASSWORD",
        "DIAGNOCAT_PROFILE",
        "DIAGNOCAT_TIMEOUT",
        "DIAGNOCAT_VERIFY_SSL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config_yaml() -> str:
    """Sample config YAML content."""
    return """
default_profile: test
output_format: table

profiles:
  test:
    url: https://diagnocat-test.example.org/partner-api
    verify_ssl: false
    timeout: 30
    analysis_type: GP

  production:
    url: https://app2.diagnocat.ru/partner-api
    verify_ssl: true
    timeout: 60
    study_type: PANORAMA
"""


@pytest.fixture
def sample_config_with_credentials_yaml() -> str:
    """Sample config YAML with credentials."""
    return """
default_profile: test

profiles:
  test:
    url: https://diagnocat-test.example.org/partner-api
    email: clinic@example.org
    password: testpass
    verify_ssl: false
"""


@pytest.fixture
def scan_file(temp_dir: Path) -> Path:
    """A small imaging archive on disk."""
    path = temp_dir / "scan.zip"
    path.write_bytes(b"\x50\x4b\x03\x04" + b"x" * 4096)
    return path


@pytest.fixture
def opened_files(monkeypatch: pytest.MonkeyPatch) -> list[Any]:
    """Record every file handle opened for reading through Path.open."""
    handles: list[Any] = []
    original_open = Path.open

    def recording_open(self: Path, *args: Any, **kwargs: Any) -> Any:
        f = original_open(self, *args, **kwargs)
        if "r" in getattr(f, "mode", ""):
            handles.append(f)
        return f

    monkeypatch.setattr(Path, "open", recording_open)
    return handles


class FakeEvent:
    """threading.Event stand-in that records waits and never blocks."""

    def __init__(self, cancel_after_waits: Optional[int] = None) -> None:
        self.waits: list[float] = []
        self._set = False
        self.cancel_after_waits = cancel_after_waits

    def is_set(self) -> bool:
        return self._set

    def set(self) -> None:
        self._set = True

    def wait(self, timeout: Optional[float] = None) -> bool:
        self.waits.append(timeout or 0.0)
        if self.cancel_after_waits is not None and len(self.waits) >= self.cancel_after_waits:
            self._set = True
        return self._set


@pytest.fixture
def fake_event() -> FakeEvent:
    return FakeEvent()


class Recorder:
    """Routes MockTransport requests to per-endpoint handlers and records them."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self._lock = threading.Lock()

    def on(self, method: str, path: str, handler: Any) -> None:
        """Register a handler; a dict/list is returned as a 200 JSON body."""
        if callable(handler):
            self.routes[(method, path)] = handler
        else:
            payload = handler
            self.routes[(method, path)] = lambda request: httpx.Response(200, json=payload)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": f"no route {request.method} {request.url.path}"})
        return handler(request)


def json_body(request: httpx.Request) -> Any:
    return json.loads(request.content)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def make_client(recorder: Recorder) -> Generator[Callable[..., DiagnocatClient], None, None]:
    """Build a DiagnocatClient wired to the recorder through MockTransport."""
    clients: list[DiagnocatClient] = []

    def factory(**kwargs: Any) -> DiagnocatClient:
        kwargs.setdefault("base_url", BASE_URL)
        kwargs.setdefault("api_key", "test-key")
        client = DiagnocatClient(transport=httpx.MockTransport(recorder), **kwargs)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()
