"""Shared test fixtures and configuration."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.config import RelayConfig
from app.main import app
from app.routers.relay import get_relay, get_stream_format
from app.services.relay import StreamRelay
from tests.helpers import FakeUpstream


@pytest.fixture
def relay_config() -> RelayConfig:
    return RelayConfig(
        api_key="sk-test",
        assistant_id="asst_123",
        base_url="https://upstream.test/v1",
    )


@pytest.fixture
def make_relay(relay_config):
    def _make(upstream: FakeUpstream, config: RelayConfig | None = None) -> StreamRelay:
        return StreamRelay(config or relay_config, transport=httpx.MockTransport(upstream))
    return _make


@pytest.fixture
def client_for(make_relay):
    """TestClient whose /message route talks to the given fake upstream."""

    def _client(upstream: FakeUpstream, config: RelayConfig | None = None, fmt: str = "legacy") -> TestClient:
        relay = make_relay(upstream, config)
        app.dependency_overrides[get_relay] = lambda: relay
        app.dependency_overrides[get_stream_format] = lambda: fmt
        return TestClient(app, raise_server_exceptions=False)

    yield _client
    app.dependency_overrides.clear()
