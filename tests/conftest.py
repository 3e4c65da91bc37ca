"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - fake_openai: Stand-in for ``openai.AsyncOpenAI`` with scripted replies
    - upstream: Real UpstreamClient wired to the fake SDK client
    - app: Fresh FastAPI app with the upstream dependency overridden
    - async_client: HTTPX client for API testing
    - store: ConversationStore over in-memory storage
"""

from collections.abc import AsyncGenerator
from types import SimpleNamespace
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from openai import APIConnectionError

from mistral_hub.api.app import create_app
from mistral_hub.api.dependencies import get_upstream_client
from mistral_hub.storage import ConversationStore, MemoryKeyValueStore
from mistral_hub.upstream import UpstreamClient


def connection_error() -> APIConnectionError:
    """Build the error the SDK raises when the API is unreachable."""
    return APIConnectionError(
        request=httpx.Request("POST", "https://api.mistral.ai/v1/chat/completions")
    )


class FakeStream:
    """Scripted streaming response with the SDK's ``close()`` contract."""

    def __init__(self, deltas: list[str | None], error: Exception | None = None) -> None:
        self._deltas = deltas
        self._error = error
        self.closed = False

    def __aiter__(self):
        return self._chunks()

    async def _chunks(self):
        for delta in self._deltas:
            yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=delta))])
        if self._error is not None:
            raise self._error

    async def close(self) -> None:
        self.closed = True


class FakeCompletions:
    """Records ``create`` calls and replays scripted results."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.stream_deltas: list[str | None] = []
        self.stream_error: Exception | None = None
        self.open_error: Exception | None = None
        self.responses: list[str | None | Exception] = []
        self.streams: list[FakeStream] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if kwargs.get("stream"):
            if self.open_error is not None:
                raise self.open_error
            stream = FakeStream(self.stream_deltas, self.stream_error)
            self.streams.append(stream)
            return stream

        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=result))]
        )


class FakeOpenAI:
    """Minimal ``AsyncOpenAI`` surface used by UpstreamClient."""

    def __init__(self) -> None:
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()


@pytest.fixture
def upstream(fake_openai: FakeOpenAI) -> UpstreamClient:
    """UpstreamClient backed by the fake SDK client."""
    return UpstreamClient(client=fake_openai)


@pytest.fixture
def app(upstream: UpstreamClient) -> FastAPI:
    """Fresh application per test with the upstream client injected."""
    application = create_app()
    application.dependency_overrides[get_upstream_client] = lambda: upstream
    return application


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def store() -> ConversationStore:
    return ConversationStore(MemoryKeyValueStore())
