import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from .config import Settings
from .providers import BaseCompletionAdapter, create_adapter
from .router import ProviderRouter
from .sse import encode_stream
from .store import ChatStore
from .types import ChatMessage, CompletionConfig, Provider

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[Provider, Settings], BaseCompletionAdapter]


@dataclass
class PreparedTurn:
    """
    One user turn, ready to send.

    Attributes:
        chat_id: The conversation the turn belongs to (new or existing).
        user_message: The text the user sent.
        messages: System prompt, stored history and the new user turn.
    """
    chat_id: str
    user_message: str
    messages: List[ChatMessage]


class ChatService:
    """
    Runs chat turns against the configured providers.

    Each call builds its own adapter, so no per-request state is shared
    between concurrent requests.
    """

    def __init__(
        self,
        settings: Settings,
        store: ChatStore,
        adapter_factory: AdapterFactory = create_adapter,
    ):
        self.settings = settings
        self.store = store
        self.router = ProviderRouter(settings)
        self.adapter_factory = adapter_factory

    def select_provider(self, requested: Optional[str] = None) -> Provider:
        """
        Resolve the provider for a request and check it has a credential.

        Raises:
            ConfigurationError: If the resolved provider is not configured.
        """
        return self.router.require(self.router.resolve(requested))

    async def prepare_turn(
        self,
        user_id: str,
        message: str,
        chat_id: Optional[str] = None,
    ) -> PreparedTurn:
        """
        Record the user message and assemble the conversation for the provider.

        An existing chat gets its history loaded and the message appended;
        otherwise a new chat is created with the message as its first turn.
        """
        messages: List[ChatMessage] = [{"role": "system", "content": self.settings.system_prompt}]

        if chat_id:
            for msg in await self.store.load_history(chat_id):
                messages.append({"role": msg["role"], "content": msg["content"]})
            await self.store.append_message(chat_id, "user", message)
        else:
            chat_id = await self.store.create_chat(user_id, message)
            logger.info("created chat %s", chat_id)

        messages.append({"role": "user", "content": message})
        return PreparedTurn(chat_id=chat_id, user_message=message, messages=messages)

    def stream_turn(
        self,
        provider: Provider,
        turn: PreparedTurn,
        config: CompletionConfig,
    ) -> AsyncIterator[bytes]:
        """
        Stream the assistant reply as encoded event-stream frames.

        The reply is stored only once the provider stream has finished
        successfully.
        """
        adapter = self.adapter_factory(provider, self.settings)
        logger.info("streaming turn", extra={"chat_id": turn.chat_id, "provider": provider})

        async def persist(text: str) -> None:
            await self.store.append_message(turn.chat_id, "assistant", text)

        return encode_stream(
            adapter.stream(turn.messages, config),
            chat_id=turn.chat_id,
            on_complete=persist,
        )

    async def complete_turn(
        self,
        provider: Provider,
        turn: PreparedTurn,
        config: CompletionConfig,
    ) -> Dict[str, Any]:
        """
        Run a single-shot turn and store the reply.

        Returns:
            Dict[str, Any]: {"id": chat_id, "messages": [user turn, assistant turn]}
        """
        adapter = self.adapter_factory(provider, self.settings)
        content = await adapter.complete(turn.messages, config)
        await self.store.append_message(turn.chat_id, "assistant", content)

        return {
            "id": turn.chat_id,
            "messages": [
                {"role": "user", "content": turn.user_message},
                {"role": "assistant", "content": content},
            ],
        }
