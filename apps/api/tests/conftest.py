"""Shared fixtures: explicit settings and a stubbed upstream for the API tests."""
from __future__ import annotations

from typing import Callable

import httpx
import pytest

from chatkit_api.core.config import Settings, get_settings
from chatkit_api.core.http import get_http_client
from chatkit_api.main import app

Handler = Callable[[httpx.Request], httpx.Response]


def make_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "app_env": "development",
        "enable_debug_logs": False,
        "openai_api_key": "sk-test",
        "openai_api_base": "https://api.openai.com",
        "chatkit_api_base": "",
        "chatkit_workflow_id": "",
        "chatkit_metadata": "",
        "gemini_api_key": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class UpstreamStub:
    """Record outbound requests and answer them with a canned handler."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []
        self._handler = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)


@pytest.fixture
def configure_app():
    """Install settings and an optional upstream stub as dependency overrides."""

    def _configure(settings: Settings, handler: Handler | None = None) -> UpstreamStub | None:
        app.dependency_overrides[get_settings] = lambda: settings
        if handler is None:
            return None

        stub = UpstreamStub(handler)

        async def _client():
            async with httpx.AsyncClient(transport=httpx.MockTransport(stub)) as client:
                yield client

        app.dependency_overrides[get_http_client] = _client
        return stub

    yield _configure
    app.dependency_overrides.clear()


@pytest.fixture
def api_client():
    """Factory for an ASGI-backed client; use as ``async with api_client() as client``."""

    def _factory(**kwargs: object) -> httpx.AsyncClient:
        transport = httpx.ASGITransport(app=app)
        return httpx.AsyncClient(transport=transport, base_url="http://testserver", **kwargs)

    return _factory


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return make_settings
