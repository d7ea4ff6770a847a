"""Pytest fixtures for deepseek-relay tests."""

import asyncio
import json
import os
from unittest.mock import patch

import httpx
import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from deepseek_relay.config import Settings
from deepseek_relay.relay.client import DeepSeekClient


@pytest.fixture
def mock_env_vars(tmp_path):
    """Mock environment variables for testing."""
    env_vars = {
        "DEEPSEEK_API_KEY": "sk-test-key",
        "DEEPSEEK_BASE_URL": "https://upstream.test/v1",
        "STATIC_DIR": str(tmp_path / "public"),
        "HOST": "127.0.0.1",
        "PORT": "3000",
        "LOG_LEVEL": "DEBUG",
    }
    with patch.dict(os.environ, env_vars, clear=False):
        yield env_vars


@pytest.fixture
def settings(mock_env_vars) -> Settings:
    """Create Settings instance with mocked environment."""
    return Settings(_env_file=None)


@pytest.fixture
def no_key_settings(mock_env_vars) -> Settings:
    """Settings with DEEPSEEK_API_KEY absent."""
    env = {k: v for k, v in os.environ.items() if k != "DEEPSEEK_API_KEY"}
    with patch.dict(os.environ, env, clear=True):
        return Settings(_env_file=None)


def sse_frame(payload) -> bytes:
    """Encode one upstream ``data:`` frame."""
    if not isinstance(payload, str):
        payload = json.dumps(payload, ensure_ascii=False)
    return f"data: {payload}\n\n".encode("utf-8")


def delta_chunk(content=None, reasoning=None, usage=None) -> dict:
    """Build an OpenAI-style streaming chunk as DeepSeek sends it."""
    delta = {}
    if content is not None:
        delta["content"] = content
    if reasoning is not None:
        delta["reasoning_content"] = reasoning
    chunk = {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "model": "deepseek-chat",
        "choices": [{"index": 0, "delta": delta, "finish_reason": None}],
    }
    if usage is not None:
        chunk["usage"] = usage
    return chunk


class TrackingStream(httpx.AsyncByteStream):
    """Upstream body that records whether httpx closed it."""

    def __init__(self, chunks: list[bytes], delay: float = 0.0) -> None:
        self._chunks = chunks
        self._delay = delay
        self.closed = False
        self.chunks_sent = 0

    async def __aiter__(self):
        for chunk in self._chunks:
            if self._delay:
                await asyncio.sleep(self._delay)
            self.chunks_sent += 1
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


def sse_response(*chunks: bytes, status: int = 200) -> httpx.Response:
    return httpx.Response(
        status,
        headers={"Content-Type": "text/event-stream"},
        stream=TrackingStream(list(chunks)),
    )


@pytest.fixture
def make_deepseek_client(settings):
    """Build a DeepSeekClient whose upstream is an httpx.MockTransport handler."""
    def _make(handler, client_settings: Settings | None = None) -> DeepSeekClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return DeepSeekClient(client_settings or settings, http_client=http_client)

    return _make


@pytest_asyncio.fixture
async def aiohttp_client_factory():
    """Start aiohttp apps on a test server and close them afterwards."""
    clients: list[TestClient] = []

    async def _make(app) -> TestClient:
        client = TestClient(TestServer(app))
        await client.start_server()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.close()
