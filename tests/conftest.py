"""Shared fixtures: test settings and a fake upstream behind httpx.MockTransport."""
import pytest
import httpx
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import app
from app.api.routes.instagram import get_instagram_client
from app.services.instagram_api import InstagramApiClient


@pytest.fixture
def settings():
    """Settings with a fake credential and short timeouts."""
    return Settings(
        instagram_api_key="test-key",
        instagram_api_host="instagram120.p.rapidapi.com",
        instagram_api_base_url="https://instagram120.p.rapidapi.com",
        instagram_api_provider="instagram120",
        upstream_timeout=5.0,
        image_fetch_timeout=0.2,
    )


class FakeUpstream:
    """Records outbound requests and answers them with a configurable handler."""

    def __init__(self):
        self.requests = []
        self.handler = lambda request: httpx.Response(200, json={})

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.handler(request)
        if not isinstance(result, httpx.Response):
            result = await result
        return result


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def api_client(settings, upstream):
    return InstagramApiClient(settings, transport=httpx.MockTransport(upstream))


@pytest.fixture
def test_client(api_client):
    app.dependency_overrides[get_instagram_client] = lambda: api_client
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
