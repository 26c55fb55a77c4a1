import logging
import time
from typing import Any, AsyncIterator, Dict, List, Optional

from anthropic import APIError, AsyncAnthropic

from .base import BaseCompletionAdapter
from ..errors import ProviderError
from ..normalize import to_anthropic_messages
from ..types import ChatMessage, CompletionConfig, StreamChunk

logger = logging.getLogger(__name__)


class AnthropicAdapter(BaseCompletionAdapter):
    """
    Adapter for the Anthropic (Claude) messages API.
    """

    provider = "claude"

    def __init__(self, api_key: Optional[str], model: str):
        super().__init__(api_key, model)
        self.client = AsyncAnthropic(api_key=api_key)

    def _request_kwargs(self, messages: List[ChatMessage], config: CompletionConfig) -> Dict[str, Any]:
        system, converted = to_anthropic_messages(messages)
        request_kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": converted,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
        }
        # The API rejects an empty system prompt
        if system:
            request_kwargs["system"] = system
        return request_kwargs

    async def complete(
        self,
        messages: List[ChatMessage],
        config: CompletionConfig,
    ) -> str:
        """
        Send a chat request to the Claude API.

        The reply text is the concatenation of all text blocks; other block
        types are ignored.
        """
        start = time.perf_counter()
        try:
            resp = await self.client.messages.create(**self._request_kwargs(messages, config))
        except APIError as exc:
            raise ProviderError(self.provider, str(exc)) from exc
        latency_ms = (time.perf_counter() - start) * 1000.0
        logger.debug("claude completion finished in %.0f ms", latency_ms)

        return "".join(
            block.text for block in resp.content if getattr(block, "type", None) == "text"
        )

    async def stream(
        self,
        messages: List[ChatMessage],
        config: CompletionConfig,
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream a chat response from Claude.

        Only `content_block_delta` events carrying a non-empty `text_delta`
        produce chunks.
        """
        try:
            async with self.client.messages.stream(**self._request_kwargs(messages, config)) as stream:
                async for event in stream:
                    if (
                        event.type == "content_block_delta"
                        and getattr(event.delta, "type", None) == "text_delta"
                    ):
                        piece = event.delta.text
                        if piece:
                            yield {"content": piece}
        except APIError as exc:
            raise ProviderError(self.provider, str(exc)) from exc
