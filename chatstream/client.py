import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

from .decoder import EventStreamDecoder, decode_stream
from .errors import TransportError
from .recovery import recover_chat_id

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Sorry, there was an error processing your message. Please try again."
RATE_LIMIT_MESSAGE = (
    "You have exceeded your maximum number of messages for the day. "
    "Please try again later."
)


@dataclass
class TurnResult:
    """
    Outcome of one streamed turn.

    A failed turn may still carry the content shown before the failure; it
    must not be stored as a finished reply.
    """
    chat_id: Optional[str]
    content: str
    failed: bool = False
    error: Optional[str] = None
    completed: bool = True


def _error_message(response: httpx.Response, body: bytes) -> str:
    try:
        data = json.loads(body)
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("message", "error"):
            if isinstance(data.get(key), str) and data[key]:
                return data[key]
    if response.status_code == 429:
        return RATE_LIMIT_MESSAGE
    return DEFAULT_ERROR_MESSAGE


def _structured(content: str) -> Any:
    try:
        return json.loads(content)
    except ValueError:
        return None


class ChatClient:
    """
    Async client for the chat endpoint.

    Streams a turn, surfacing the running total as it grows, and works out
    which conversation the turn belongs to.
    """

    def __init__(self, base_url: str = "http://127.0.0.1:8000", http_client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(10.0, read=None))

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http.aclose()

    async def providers(self) -> Dict[str, Any]:
        """
        Get the active provider and the list of available providers.
        """
        response = await self.http.get(f"{self.base_url}/api/providers")
        response.raise_for_status()
        return response.json()

    async def send(
        self,
        message: str,
        *,
        chat_id: Optional[str] = None,
        provider: Optional[str] = None,
        on_metadata: Optional[Callable[[Dict[str, str]], Any]] = None,
        on_content: Optional[Callable[[str], Any]] = None,
    ) -> TurnResult:
        """
        Send one user message and stream the reply.

        Args:
            message: The user's text.
            chat_id: Conversation to continue; None starts a new one.
            provider: Optional provider override ('openai', 'gemini', 'claude').
            on_metadata: Called with {"id": ...} when the server announces the chat.
            on_content: Called with the running total after every delta.

        Returns:
            TurnResult: Final content and chat id; `failed` is set when the
                        request was rejected or the stream broke.
        """
        known_id = chat_id
        errors = []

        def handle_metadata(data: Dict[str, str]):
            nonlocal known_id
            known_id = known_id or data["id"]
            if on_metadata is not None:
                return on_metadata(data)

        payload: Dict[str, Any] = {"message": message, "streaming": True}
        if chat_id:
            payload["chatId"] = chat_id
        if provider:
            payload["provider"] = provider

        decoder = EventStreamDecoder()
        try:
            async with self.http.stream("POST", f"{self.base_url}/api/chat", json=payload) as response:
                if response.is_error:
                    body = await response.aread()
                    error = _error_message(response, body)
                    logger.warning("chat request rejected (%d): %s", response.status_code, error)
                    return TurnResult(chat_id=chat_id, content=error, failed=True, error=error)

                content = await decode_stream(
                    response.aiter_bytes(),
                    on_metadata=handle_metadata,
                    on_accumulated_content=on_content,
                    on_error=errors.append,
                    decoder=decoder,
                )
        except httpx.TransportError as exc:
            errors.append(TransportError(str(exc) or type(exc).__name__))
            content = ""

        if errors:
            return TurnResult(chat_id=known_id, content=content, failed=True, error=str(errors[0]))

        if known_id is None:
            known_id = recover_chat_id(_structured(content))

        return TurnResult(chat_id=known_id, content=content, completed=decoder.saw_done)
