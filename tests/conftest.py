"""Shared pytest fixtures and test helpers for bmcapture tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
from click.testing import CliRunner

from bmcapture.infrastructure import http as http_module
from bmcapture.infrastructure.store import SettingsStore
from bmcapture.services.api_client import APIClient

API_URL = "https://bookmarks.example.com"
API_KEY = "bm_test1234"

CATEGORIES: list[dict[str, Any]] = [
    {"id": 1, "name": "Work", "depth": 0},
    {"id": 2, "name": "Dev", "depth": 1},
    {"id": 3, "name": "Python", "depth": 2},
    {"id": 4, "name": "Personal", "depth": 0},
]


class FakeServer:
    """Scripted bookmark server behind an ``httpx.MockTransport``.

    Records every request. Tests override ``categories_response``,
    ``save_response`` or ``error`` to script failures.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.categories: list[dict[str, Any]] = list(CATEGORIES)
        self.categories_response: httpx.Response | None = None
        self.save_response: httpx.Response | None = None
        self.error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if request.url.path == "/api/categories.php":
            if self.categories_response is not None:
                return self.categories_response
            return httpx.Response(200, json={"success": True, "data": self.categories})
        if request.url.path == "/api/external.php":
            if self.save_response is not None:
                return self.save_response
            body = json.loads(request.content)
            return httpx.Response(
                201,
                json={"success": True, "data": {"id": 42, "url": body["url"]}},
            )
        return httpx.Response(404, json={"success": False, "error": "Not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if r.method == "POST"]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def api_client(server: FakeServer) -> APIClient:
    """API client wired to the fake server."""
    return APIClient(transport=server.transport)


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "profile" / "settings.json"


@pytest.fixture
def store(store_path: Path) -> SettingsStore:
    """Empty settings store (file not yet created)."""
    return SettingsStore(store_path)


@pytest.fixture
def write_settings(store_path: Path) -> Callable[..., None]:
    """Write raw values straight to the settings file."""

    def _write(**values: Any) -> None:
        store_path.parent.mkdir(parents=True, exist_ok=True)
        store_path.write_text(json.dumps(values), encoding="utf-8")

    return _write


@pytest.fixture
def configured_store(store: SettingsStore, write_settings: Callable[..., None]) -> SettingsStore:
    """Settings store holding valid credentials."""
    write_settings(apiUrl=API_URL, apiKey=API_KEY)
    return store


@pytest.fixture
def cli_env(
    tmp_path: Path,
    store_path: Path,
    server: FakeServer,
    monkeypatch: pytest.MonkeyPatch,
) -> FakeServer:
    """Isolate CLI runs: temp cwd, temp settings store, fake server.

    Every client the commands build is routed to *server*.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("BMCAPTURE_CONFIG", raising=False)
    monkeypatch.setenv("BMCAPTURE_STORE__PATH", str(store_path))

    real_build = http_module.build_async_client

    def _build(config: Any = None, *, extra_headers: Any = None, transport: Any = None) -> Any:
        return real_build(config, extra_headers=extra_headers, transport=server.transport)

    monkeypatch.setattr("bmcapture.services.api_client.build_async_client", _build)
    return server


@pytest.fixture
def read_store(store_path: Path) -> Callable[[], dict[str, Any]]:
    """Current contents of the settings file ({} when absent)."""

    def _read() -> dict[str, Any]:
        if not store_path.is_file():
            return {}
        return json.loads(store_path.read_text(encoding="utf-8"))

    return _read
