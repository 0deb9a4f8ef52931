"""Shared test fixtures for the Zuper dispatch test suite."""

from __future__ import annotations

import json
import os
from typing import Any

import httpx
import pytest

from zuper_dispatch.config import Settings
from zuper_dispatch.services.zuper_client import ZuperClient

BASE_URL = "https://zuper.test"


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    This runs before any imports, so module-level settings (server.py)
    pick up predictable values.
    """
    os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key-123")
    os.environ.setdefault("ZUPER_API_KEY", "env-zuper-key")
    os.environ.setdefault("ZUPER_BASE_URL", BASE_URL)


class FakeZuper:
    """In-memory Zuper API served through ``httpx.MockTransport``.

    Routes are keyed by ``(method, path)``; unknown routes answer 404.
    Every request is recorded for assertions.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], tuple[int, Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, body: Any = None, status: int = 200) -> None:
        self.routes[(method.upper(), path)] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, text=f"no route for {key[0]} {key[1]}")
        status, body = self.routes[key]
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def last(self, method: str, path: str) -> httpx.Request:
        for request in reversed(self.requests):
            if request.method == method and request.url.path == path:
                return request
        raise AssertionError(f"no {method} {path} request recorded")

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None


@pytest.fixture
def settings() -> Settings:
    return Settings(
        zuper_api_key="test-key",
        zuper_base_url=BASE_URL,
        anthropic_api_key="test-anthropic-key",
    )


@pytest.fixture
def fake_zuper() -> FakeZuper:
    return FakeZuper()


@pytest.fixture
def zuper_client(settings, fake_zuper, monkeypatch) -> ZuperClient:
    """A ZuperClient backed by :class:`FakeZuper`, installed as the singleton."""
    client = ZuperClient(settings, transport=httpx.MockTransport(fake_zuper.handler))
    monkeypatch.setattr("zuper_dispatch.services.zuper_client._client", client)
    return client


@pytest.fixture(autouse=True)
def _fresh_zuper_client(monkeypatch):
    """Start every test without a shared client (agent and app factories install one)."""
    monkeypatch.setattr("zuper_dispatch.services.zuper_client._client", None)
