"""Fixtures for HTTP API tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from textforensics.api.app import create_app
from textforensics.config.runtime import RuntimeConfig, RuntimeMode, get_runtime_config
from textforensics.core.capabilities import Capabilities
from textforensics.utils.config_schema import AnalyzerFileConfig


@pytest.fixture
def runtime_config() -> RuntimeConfig:
    """Dev-mode runtime config; tests may mutate it before building the app."""
    return get_runtime_config(RuntimeMode.DEV)


@pytest.fixture
def make_client(
    runtime_config: RuntimeConfig, full_caps: Capabilities
) -> Iterator[Callable[..., TestClient]]:
    clients: list[TestClient] = []

    def _make(
        capabilities: Capabilities | None = None,
        analyzer_config: AnalyzerFileConfig | None = None,
        **client_kwargs,
    ) -> TestClient:
        app = create_app(
            config=runtime_config,
            capabilities=capabilities or full_caps,
            analyzer_config=analyzer_config or AnalyzerFileConfig(),
        )
        client = TestClient(app, **client_kwargs)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client: Callable[..., TestClient]) -> TestClient:
    return make_client()
