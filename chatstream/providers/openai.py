import logging
import time
from typing import AsyncIterator, List, Optional

from openai import APIError, AsyncOpenAI

from .base import BaseCompletionAdapter
from ..errors import ProviderError
from ..normalize import to_openai_messages
from ..types import ChatMessage, CompletionConfig, StreamChunk

logger = logging.getLogger(__name__)


class OpenAIAdapter(BaseCompletionAdapter):
    """
    Adapter for the OpenAI chat completions API.
    """

    provider = "openai"

    def __init__(self, api_key: Optional[str], model: str):
        super().__init__(api_key, model)
        self.client = AsyncOpenAI(api_key=api_key)

    def _request_kwargs(self, messages: List[ChatMessage], config: CompletionConfig) -> dict:
        return {
            "model": self.model,
            "messages": to_openai_messages(messages),
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
        }

    async def complete(
        self,
        messages: List[ChatMessage],
        config: CompletionConfig,
    ) -> str:
        """
        Send a chat request using the OpenAI API and return the reply text.
        """
        start = time.perf_counter()
        try:
            resp = await self.client.chat.completions.create(**self._request_kwargs(messages, config))
        except APIError as exc:
            raise ProviderError(self.provider, str(exc)) from exc
        latency_ms = (time.perf_counter() - start) * 1000.0
        logger.debug("openai completion finished in %.0f ms", latency_ms)

        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""

    async def stream(
        self,
        messages: List[ChatMessage],
        config: CompletionConfig,
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream a chat response using the OpenAI API.

        Chunks without choices, and deltas without text (role-only or tool
        call scaffolding), are dropped.
        """
        try:
            stream = await self.client.chat.completions.create(
                **self._request_kwargs(messages, config),
                stream=True,
            )
            async with stream:
                async for chunk in stream:
                    if not chunk.choices:
                        continue
                    content = chunk.choices[0].delta.content
                    if content:
                        yield {"content": content}
        except APIError as exc:
            raise ProviderError(self.provider, str(exc)) from exc
