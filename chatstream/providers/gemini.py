import logging
import time
from contextlib import aclosing
from typing import Any, AsyncIterator, Dict, List, Optional

from google import genai
from google.genai import errors, types

from .base import BaseCompletionAdapter
from ..errors import ProviderError
from ..normalize import to_gemini_messages
from ..types import ChatMessage, CompletionConfig, StreamChunk

logger = logging.getLogger(__name__)


class GeminiAdapter(BaseCompletionAdapter):
    """
    Adapter for Google Gemini API (using google-genai SDK).
    """

    provider = "gemini"

    def __init__(self, api_key: Optional[str], model: str):
        super().__init__(api_key, model)
        self.client = genai.Client(api_key=api_key)

    def _request_kwargs(self, messages: List[ChatMessage], config: CompletionConfig) -> Dict[str, Any]:
        """
        Build `generate_content` arguments.

        The history is sent as the leading contents and the final user turn,
        when there is one, as the last content.
        """
        system_instruction, history, last_message = to_gemini_messages(messages)

        contents = list(history)
        if last_message:
            contents.append({"role": "user", "parts": [{"text": last_message}]})

        config_kwargs: Dict[str, Any] = {
            "temperature": config.temperature,
            "max_output_tokens": config.max_tokens,
        }
        if system_instruction:
            config_kwargs["system_instruction"] = system_instruction

        return {
            "model": self.model,
            "contents": contents,
            "config": types.GenerateContentConfig(**config_kwargs),
        }

    async def complete(
        self,
        messages: List[ChatMessage],
        config: CompletionConfig,
    ) -> str:
        """
        Send a chat request to the Gemini API.
        """
        start = time.perf_counter()
        try:
            resp = await self.client.aio.models.generate_content(**self._request_kwargs(messages, config))
        except errors.APIError as exc:
            raise ProviderError(self.provider, str(exc)) from exc
        latency_ms = (time.perf_counter() - start) * 1000.0
        logger.debug("gemini completion finished in %.0f ms", latency_ms)

        try:
            return resp.text or ""
        except ValueError:
            # Raised when the candidate was blocked and carries no text
            return ""

    async def stream(
        self,
        messages: List[ChatMessage],
        config: CompletionConfig,
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream a chat response from Gemini.
        """
        try:
            stream = await self.client.aio.models.generate_content_stream(
                **self._request_kwargs(messages, config)
            )
            async with aclosing(stream):
                async for chunk in stream:
                    if chunk.text:
                        yield {"content": chunk.text}
        except errors.APIError as exc:
            raise ProviderError(self.provider, str(exc)) from exc
