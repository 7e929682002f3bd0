"""
Shared pytest fixtures for contiguity_base tests.

HTTP is mocked at the httpx.Client / httpx.AsyncClient level; no network.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from contiguity_base import Contiguity

# 2024-01-01T00:00:00.5Z
FIXED_NOW = 1704067200.5


class FakeResponse:
    """Minimal httpx.Response stand-in."""

    def __init__(self, status_code=200, json_data=None, text=None):
        self.status_code = status_code
        self._json = json_data
        if text is None:
            text = json.dumps(json_data) if json_data is not None else ""
        self.text = text
        self.content = text.encode("utf-8")

    @property
    def is_success(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._json is None:
            return json.loads(self.text)
        return self._json


def _sent_body(call) -> dict | None:
    """Decode the JSON body of a recorded client.request(...) call."""
    content = call.kwargs.get("content")
    return None if content is None else json.loads(content)


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def sent_body():
    return _sent_body


@pytest.fixture
def client():
    """Contiguity handle with a frozen clock."""
    return Contiguity("test-key", "proj-1", clock=lambda: FIXED_NOW)


@pytest.fixture
def mock_http():
    """Patch httpx.Client; yields (MockClient, client_instance)."""
    with patch("contiguity_base.transport.httpx.Client") as MockClient:
        instance = MagicMock()
        instance.request.return_value = FakeResponse(json_data={})
        MockClient.return_value = instance
        yield MockClient, instance


@pytest.fixture
def mock_async_http():
    """Patch httpx.AsyncClient; yields (MockClient, client_instance)."""
    with patch("contiguity_base.transport.httpx.AsyncClient") as MockClient:
        instance = MagicMock()
        instance.request = AsyncMock(return_value=FakeResponse(json_data={}))
        instance.aclose = AsyncMock()
        MockClient.return_value = instance
        yield MockClient, instance


@pytest.fixture
def users(client, mock_http):
    """A Base named 'users'; yields (base, http_instance)."""
    _, http = mock_http
    yield client.base("users"), http


@pytest.fixture
def connect_error():
    return httpx.ConnectError("connection refused")
