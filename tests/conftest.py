import pytest
from typing import List, Optional

from chatstream.config import Settings
from chatstream.providers.base import BaseCompletionAdapter


class FakeSDKStream:
    """Stands in for an SDK stream object: async iterable and async context manager."""

    def __init__(self, items, error: Optional[Exception] = None):
        self.items = list(items)
        self.error = error
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for item in self.items:
            yield item
        if self.error is not None:
            raise self.error


class FakeAdapter(BaseCompletionAdapter):
    """Adapter that replays fixed deltas, optionally failing afterwards."""

    provider = "openai"

    def __init__(self, deltas: List[str], error: Optional[Exception] = None, reply: str = ""):
        super().__init__(api_key="fake-key", model="fake-model")
        self.deltas = deltas
        self.error = error
        self.reply = reply
        self.calls = []

    async def complete(self, messages, config):
        self.calls.append(("complete", messages, config))
        if self.error is not None:
            raise self.error
        return self.reply

    async def stream(self, messages, config):
        self.calls.append(("stream", messages, config))
        for delta in self.deltas:
            yield {"content": delta}
        if self.error is not None:
            raise self.error


async def byte_source(parts):
    for part in parts:
        yield part


@pytest.fixture
def make_settings():
    """Build settings from keyword overrides of the raw environment keys."""
    def _make(**env):
        return Settings.from_mapping(env)
    return _make


@pytest.fixture
def all_keys_settings(make_settings):
    return make_settings(
        OPENAI_API_KEY="sk-test-openai",
        GEMINI_API_KEY="AIza-test-google",
        ANTHROPIC_API_KEY="sk-test-anthropic",
    )


@pytest.fixture
def mock_env(monkeypatch):
    """Mock environment variables for API keys."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-openai")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test-anthropic")
    monkeypatch.setenv("GEMINI_API_KEY", "AIza-test-google")
    monkeypatch.setenv("AI_PROVIDER", "Gemini")
