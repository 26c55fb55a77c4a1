import httpx
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import openai
from google.genai import errors as genai_errors

from chatstream.errors import ConfigurationError, ProviderError
from chatstream.providers import AnthropicAdapter, GeminiAdapter, OpenAIAdapter, create_adapter
from chatstream.types import CompletionConfig

from conftest import FakeSDKStream

MESSAGES = [
    {"role": "system", "content": "be brief"},
    {"role": "user", "content": "hi"},
]
CONFIG = CompletionConfig(temperature=0.2, max_tokens=100)
REQUEST = httpx.Request("POST", "https://api.example.test")


async def collect(stream):
    return [chunk async for chunk in stream]


def openai_chunk(content, with_choice=True):
    if not with_choice:
        return MagicMock(choices=[])
    return MagicMock(choices=[MagicMock(delta=MagicMock(content=content))])


class TestOpenAIAdapter:
    @pytest.mark.asyncio
    @patch("chatstream.providers.openai.AsyncOpenAI")
    async def test_complete(self, mock_openai_cls):
        client_mock = MagicMock()
        mock_openai_cls.return_value = client_mock
        client_mock.chat.completions.create = AsyncMock(return_value=MagicMock(
            choices=[MagicMock(message=MagicMock(content="response"))],
        ))

        adapter = OpenAIAdapter(api_key="fake-key", model="gpt-4o")
        text = await adapter.complete(MESSAGES, CONFIG)

        assert text == "response"
        kwargs = client_mock.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["messages"] == MESSAGES
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 100

    @pytest.mark.asyncio
    @patch("chatstream.providers.openai.AsyncOpenAI")
    async def test_stream_drops_empty_deltas(self, mock_openai_cls):
        client_mock = MagicMock()
        mock_openai_cls.return_value = client_mock
        sdk_stream = FakeSDKStream([
            openai_chunk(None),
            openai_chunk("Hel"),
            openai_chunk("", with_choice=False),
            openai_chunk(""),
            openai_chunk("lo!"),
        ])
        client_mock.chat.completions.create = AsyncMock(return_value=sdk_stream)

        adapter = OpenAIAdapter(api_key="fake-key", model="gpt-4o")
        chunks = await collect(adapter.stream(MESSAGES, CONFIG))

        assert chunks == [{"content": "Hel"}, {"content": "lo!"}]
        assert client_mock.chat.completions.create.call_args.kwargs["stream"] is True
        assert sdk_stream.closed

    @pytest.mark.asyncio
    @patch("chatstream.providers.openai.AsyncOpenAI")
    async def test_early_stop_closes_sdk_stream(self, mock_openai_cls):
        client_mock = MagicMock()
        mock_openai_cls.return_value = client_mock
        sdk_stream = FakeSDKStream([openai_chunk("a"), openai_chunk("b")])
        client_mock.chat.completions.create = AsyncMock(return_value=sdk_stream)

        stream = OpenAIAdapter(api_key="fake-key", model="gpt-4o").stream(MESSAGES, CONFIG)
        assert await stream.__anext__() == {"content": "a"}
        await stream.aclose()

        assert sdk_stream.closed

    @pytest.mark.asyncio
    @patch("chatstream.providers.openai.AsyncOpenAI")
    async def test_api_error_becomes_provider_error(self, mock_openai_cls):
        client_mock = MagicMock()
        mock_openai_cls.return_value = client_mock
        client_mock.chat.completions.create = AsyncMock(
            side_effect=openai.APIError("quota exceeded", request=REQUEST, body=None)
        )

        adapter = OpenAIAdapter(api_key="fake-key", model="gpt-4o")
        with pytest.raises(ProviderError, match="quota exceeded") as excinfo:
            await collect(adapter.stream(MESSAGES, CONFIG))
        assert excinfo.value.provider == "openai"

    def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            OpenAIAdapter(api_key=None, model="gpt-4o")


class TestAnthropicAdapter:
    @pytest.mark.asyncio
    @patch("chatstream.providers.anthropic.AsyncAnthropic")
    async def test_complete_joins_text_blocks(self, mock_anthropic_cls):
        client_mock = MagicMock()
        mock_anthropic_cls.return_value = client_mock
        client_mock.messages.create = AsyncMock(return_value=SimpleNamespace(content=[
            SimpleNamespace(type="text", text="Hello"),
            SimpleNamespace(type="tool_use", id="t1"),
            SimpleNamespace(type="text", text=" there"),
        ]))

        adapter = AnthropicAdapter(api_key="fake-key", model="claude-test")
        text = await adapter.complete(MESSAGES, CONFIG)

        assert text == "Hello there"
        kwargs = client_mock.messages.create.call_args.kwargs
        assert kwargs["system"] == "be brief"
        assert kwargs["messages"] == [{"role": "user", "content": "hi"}]
        assert kwargs["max_tokens"] == 100
        assert kwargs["temperature"] == 0.2

    @pytest.mark.asyncio
    @patch("chatstream.providers.anthropic.AsyncAnthropic")
    async def test_empty_system_is_omitted(self, mock_anthropic_cls):
        client_mock = MagicMock()
        mock_anthropic_cls.return_value = client_mock
        client_mock.messages.create = AsyncMock(return_value=SimpleNamespace(content=[]))

        adapter = AnthropicAdapter(api_key="fake-key", model="claude-test")
        await adapter.complete([{"role": "user", "content": "hi"}], CONFIG)

        assert "system" not in client_mock.messages.create.call_args.kwargs

    @pytest.mark.asyncio
    @patch("chatstream.providers.anthropic.AsyncAnthropic")
    async def test_stream_yields_text_deltas_only(self, mock_anthropic_cls):
        client_mock = MagicMock()
        mock_anthropic_cls.return_value = client_mock
        sdk_stream = FakeSDKStream([
            SimpleNamespace(type="message_start"),
            SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(type="text_delta", text="Hel")),
            SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(type="input_json_delta", partial_json="{")),
            SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(type="text_delta", text="")),
            SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(type="text_delta", text="lo!")),
            SimpleNamespace(type="message_stop"),
        ])
        client_mock.messages.stream = MagicMock(return_value=sdk_stream)

        adapter = AnthropicAdapter(api_key="fake-key", model="claude-test")
        chunks = await collect(adapter.stream(MESSAGES, CONFIG))

        assert chunks == [{"content": "Hel"}, {"content": "lo!"}]
        assert sdk_stream.closed

    @pytest.mark.asyncio
    @patch("chatstream.providers.anthropic.AsyncAnthropic")
    async def test_mid_stream_error(self, mock_anthropic_cls):
        client_mock = MagicMock()
        mock_anthropic_cls.return_value = client_mock
        sdk_stream = FakeSDKStream(
            [SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(type="text_delta", text="Hel"))],
            error=anthropic.APIError("overloaded", request=REQUEST, body=None),
        )
        client_mock.messages.stream = MagicMock(return_value=sdk_stream)

        stream = AnthropicAdapter(api_key="fake-key", model="claude-test").stream(MESSAGES, CONFIG)
        assert await stream.__anext__() == {"content": "Hel"}
        with pytest.raises(ProviderError, match="overloaded"):
            await stream.__anext__()
        assert sdk_stream.closed


class TestGeminiAdapter:
    @pytest.mark.asyncio
    @patch("chatstream.providers.gemini.genai")
    async def test_complete_request_shape(self, mock_genai):
        client_mock = MagicMock()
        mock_genai.Client.return_value = client_mock
        client_mock.aio.models.generate_content = AsyncMock(return_value=SimpleNamespace(text="pong"))

        adapter = GeminiAdapter(api_key="fake-key", model="gemini-test")
        messages = [
            {"role": "system", "content": "be brief"},
            {"role": "assistant", "content": "im helper"},
            {"role": "user", "content": "ping"},
        ]
        text = await adapter.complete(messages, CONFIG)

        assert text == "pong"
        kwargs = client_mock.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["contents"] == [
            {"role": "model", "parts": [{"text": "im helper"}]},
            {"role": "user", "parts": [{"text": "ping"}]},
        ]
        assert kwargs["config"].temperature == 0.2
        assert kwargs["config"].max_output_tokens == 100
        assert kwargs["config"].system_instruction == "be brief"

    @pytest.mark.asyncio
    @patch("chatstream.providers.gemini.genai")
    async def test_stream(self, mock_genai):
        client_mock = MagicMock()
        mock_genai.Client.return_value = client_mock

        async def chunks():
            for text in ("Hel", None, "", "lo!"):
                yield SimpleNamespace(text=text)

        client_mock.aio.models.generate_content_stream = AsyncMock(return_value=chunks())

        adapter = GeminiAdapter(api_key="fake-key", model="gemini-test")
        result = await collect(adapter.stream([{"role": "user", "content": "hi"}], CONFIG))

        assert result == [{"content": "Hel"}, {"content": "lo!"}]
        config = client_mock.aio.models.generate_content_stream.call_args.kwargs["config"]
        assert config.system_instruction is None

    @pytest.mark.asyncio
    @patch("chatstream.providers.gemini.genai")
    async def test_api_error_becomes_provider_error(self, mock_genai):
        client_mock = MagicMock()
        mock_genai.Client.return_value = client_mock
        client_mock.aio.models.generate_content = AsyncMock(
            side_effect=genai_errors.APIError(403, {"error": {"message": "API key invalid"}})
        )

        adapter = GeminiAdapter(api_key="fake-key", model="gemini-test")
        with pytest.raises(ProviderError) as excinfo:
            await adapter.complete(MESSAGES, CONFIG)
        assert excinfo.value.provider == "gemini"


class TestCreateAdapter:
    @patch("chatstream.providers.anthropic.AsyncAnthropic")
    def test_builds_variant_with_model(self, mock_anthropic_cls, make_settings):
        settings = make_settings(ANTHROPIC_API_KEY="sk-test", ANTHROPIC_MODEL="claude-custom")
        adapter = create_adapter("claude", settings)

        assert isinstance(adapter, AnthropicAdapter)
        assert adapter.model == "claude-custom"
        mock_anthropic_cls.assert_called_once_with(api_key="sk-test")

    @patch("chatstream.providers.openai.AsyncOpenAI")
    def test_openai_client_uses_key_only(self, mock_openai_cls, make_settings):
        adapter = create_adapter("openai", make_settings(OPENAI_API_KEY="sk-test"))

        assert isinstance(adapter, OpenAIAdapter)
        mock_openai_cls.assert_called_once_with(api_key="sk-test")

    def test_missing_credential(self, make_settings):
        with pytest.raises(ConfigurationError):
            create_adapter("gemini", make_settings(OPENAI_API_KEY="sk-test"))

    def test_unknown_provider(self, make_settings):
        with pytest.raises(ValueError, match="Unknown provider"):
            create_adapter("mistral", make_settings())
