# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

os.environ.setdefault("ADMIN_PASSWORD", "correct-horse")
os.environ.setdefault("AUTH_SECRET", "test-auth-secret")
os.environ.setdefault("FORTRESS_API_KEY", "test-fortress-key")
os.environ.setdefault("FORTRESS_API_URL", "http://fortress.test")

from fortress_gate.api.dependencies import get_session_codec, get_tracker_dep, get_upstream_dep
from fortress_gate.core.security import SessionTokenCodec
from fortress_gate.core.settings import settings
from fortress_gate.main import app as fastapi_app
from fortress_gate.services.login_attempts import LoginAttemptTracker
from fortress_gate.services.upstream import UpstreamClient, UpstreamConfig

START_TIME = 1_700_000_000.0
UPSTREAM_BASE_URL = "http://fortress.test"

UpstreamHandler = Callable[[httpx.Request], httpx.Response]


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingUpstream:
    """Mock transport handler that records requests and replies with a canned response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: UpstreamHandler = lambda request: httpx.Response(
            200,
            json={"ok": True},
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        return self.handler(request)

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "upstream was never called"
        return self.requests[-1]


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def tracker(clock: FakeClock) -> LoginAttemptTracker:
    """Tracker with default policy on the fake clock."""
    return LoginAttemptTracker(clock=clock)


@pytest.fixture()
def codec(clock: FakeClock) -> SessionTokenCodec:
    """Codec sharing the application's secret and the fake clock."""
    return SessionTokenCodec(
        settings.auth_secret,
        max_age_seconds=settings.session_max_age_seconds,
        clock=clock,
    )


@pytest.fixture()
def upstream_config() -> UpstreamConfig:
    return UpstreamConfig(
        base_url=UPSTREAM_BASE_URL,
        path_prefix="/api/fortress",
        shared_secret="test-fortress-key",
        secret_header="X-Fortress-Key",
        timeout_seconds=5.0,
    )


@pytest.fixture()
def recording_upstream() -> RecordingUpstream:
    return RecordingUpstream()


@pytest.fixture()
def upstream(
    upstream_config: UpstreamConfig,
    recording_upstream: RecordingUpstream,
) -> UpstreamClient:
    """Upstream client whose network is an in-process mock transport."""
    return UpstreamClient(upstream_config, transport=httpx.MockTransport(recording_upstream))


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_service_dependencies(
    app: FastAPI,
    tracker: LoginAttemptTracker,
    codec: SessionTokenCodec,
    upstream: UpstreamClient,
) -> Iterator[None]:
    overrides: dict[Callable[..., Any], Callable[[], Any]] = {
        get_tracker_dep: lambda: tracker,
        get_session_codec: lambda: codec,
        get_upstream_dep: lambda: upstream,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def session_cookie(codec: SessionTokenCodec) -> dict[str, str]:
    """Cookie mapping holding a freshly issued session token."""
    return {settings.session_cookie_name: codec.issue()}


@pytest.fixture()
def authed_client(client: TestClient, session_cookie: dict[str, str]) -> TestClient:
    """Client whose cookie jar already holds a valid session."""
    for name, value in session_cookie.items():
        client.cookies.set(name, value)
    return client
