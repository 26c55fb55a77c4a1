from abc import ABC, abstractmethod
from typing import AsyncIterator, ClassVar, List, Optional

from ..errors import ConfigurationError
from ..types import ChatMessage, CompletionConfig, Provider, StreamChunk


class BaseCompletionAdapter(ABC):
    """
    Abstract base class for completion adapters.

    Every adapter wraps one provider's native async client and exposes the
    same two operations over provider-agnostic messages. Each instance is
    built from its own credential only.
    """

    provider: ClassVar[Provider]

    def __init__(self, api_key: Optional[str], model: str):
        if not api_key:
            raise ConfigurationError(self.provider)
        self.api_key = api_key
        self.model = model

    @abstractmethod
    async def complete(
        self,
        messages: List[ChatMessage],
        config: CompletionConfig,
    ) -> str:
        """
        Run a single-shot completion.

        Args:
            messages (List[ChatMessage]): Conversation, oldest first.
            config (CompletionConfig): Sampling options.

        Returns:
            str: The full response text.

        Raises:
            ProviderError: If the upstream call fails.
        """

    @abstractmethod
    def stream(
        self,
        messages: List[ChatMessage],
        config: CompletionConfig,
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream a completion as text increments.

        The iterator is single-pass. Only non-empty text deltas are yielded.
        Exhausting it or closing it early (`aclose()`) releases the
        underlying provider stream.

        Raises:
            ProviderError: If the upstream call fails, before or mid-stream.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model!r})"
