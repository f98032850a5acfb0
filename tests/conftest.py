"""Shared fixtures: a fake Runway backend served through httpx.MockTransport."""

import json
import os
import sys
from typing import Any, Callable, Optional

import httpx
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Config, ProxyConfig, RunwayAPIConfig
from services.runway import RunwayClient, ServiceCredential, StaticFingerprint

API_KEY = "rw-test-key-0001"
TEAM_ID = 16213517


class FakeRunway:
    """Routes requests by (method, path) and records everything it receives."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], Any]] = {}

    def on(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Optional[Any] = None,
        headers: Optional[dict] = None,
        content: Optional[bytes] = None,
    ):
        def respond(request: httpx.Request) -> httpx.Response:
            if json is not None:
                return httpx.Response(status, json=json, headers=headers)
            return httpx.Response(status, content=content or b"", headers=headers)

        self.routes[(method, path)] = respond

    def handle(self, method: str, path: str, handler: Callable[[httpx.Request], Any]):
        self.routes[(method, path)] = handler

    def calls(self, method: str, path: Optional[str] = None) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and (path is None or r.url.path == path)
        ]

    def body(self, request: httpx.Request) -> Any:
        return json.loads(request.content)

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": "Not found"})
        return handler(request)


@pytest.fixture
def config():
    return Config(
        runway=RunwayAPIConfig(
            base_url="https://api.runwayml.com",
            origin="https://app.runwayml.com",
            api_keys=[API_KEY],
            pinned_api_key=None,
        ),
        proxy=ProxyConfig(api_key="proxy-secret", servers=[]),
        log_level="DEBUG",
    )


@pytest.fixture
def fake_runway():
    runway = FakeRunway()
    runway.on("GET", "/v1/profile", json={"user": {"id": TEAM_ID, "gpuCredits": 1250}})
    return runway


@pytest.fixture
def credential():
    return ServiceCredential(api_key=API_KEY)


@pytest.fixture
def make_client(config, fake_runway, credential):
    """Factory for clients wired to the fake backend."""

    def factory(proxies=()):
        return RunwayClient(
            credential,
            proxies,
            config=config,
            fingerprint=StaticFingerprint(),
            transport=httpx.MockTransport(fake_runway),
        )

    return factory
