"""Shared test fixtures."""

from __future__ import annotations

import copy
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIStatusError

from hroas.shared.llm_client import ChatClient, _DRY_RUN_STRATEGY


def make_text_response(text: str | None, *, prompt_tokens: int = 10, completion_tokens: int = 20):
    """Create a mock chat-completion response with one text choice."""
    message = SimpleNamespace(content=text)
    choice = SimpleNamespace(message=message)
    usage = SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)
    return SimpleNamespace(choices=[choice], usage=usage)


def make_status_error(status: int) -> APIStatusError:
    request = httpx.Request("POST", "https://api.example.test/v1/chat/completions")
    response = httpx.Response(status, request=request)
    return APIStatusError(f"Error code: {status}", response=response, body=None)


class FakeStreamResponse:
    """Stands in for the SDK's raw streaming response context manager."""

    def __init__(self, chunks: list[bytes]) -> None:
        self.chunks = chunks
        self.closed = False
        self.entered = False

    async def __aenter__(self) -> "FakeStreamResponse":
        self.entered = True
        return self

    async def __aexit__(self, *args: object) -> None:
        self.closed = True

    async def iter_bytes(self):
        for chunk in self.chunks:
            yield chunk


def make_chat_client(label: str = "Test") -> ChatClient:
    """Return a ChatClient with a mocked OpenAI SDK underneath."""
    client = ChatClient.__new__(ChatClient)
    client._client = AsyncMock()
    client.model = "test-model"
    client.label = label
    return client


def attach_stream(client: ChatClient, chunks: list[bytes]) -> FakeStreamResponse:
    """Make ``client.open_stream`` serve ``chunks`` and return the fake response."""
    response = FakeStreamResponse(chunks)
    client._client.chat.completions.with_streaming_response.create = MagicMock(return_value=response)
    return response


@pytest.fixture
def mock_chat_client() -> ChatClient:
    return make_chat_client()


@pytest.fixture
def sample_strategy() -> dict:
    """A valid structured strategy payload in wire (camelCase) form."""
    return copy.deepcopy(_DRY_RUN_STRATEGY)


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    cfg = tmp_path / "hroas.yml"
    cfg.write_text(
        """\
strategy_format: json
strategy_temperature: 0.5
output_directory: "{out}"
""".format(out=str(tmp_path / "output"))
    )
    return cfg


@pytest.fixture
def api_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-analysis")
    monkeypatch.setenv("AI_GATEWAY_API_KEY", "sk-strategy")


@pytest.fixture
def no_api_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("AI_GATEWAY_API_KEY", raising=False)
