from .types import ChatMessage, CompletionConfig, Provider, PROVIDERS, StreamChunk, WireEvent
from .errors import ChatStreamError, ConfigurationError, ProviderError, ProtocolError, TransportError
from .config import Settings
from .router import ProviderRouter
from .providers import create_adapter
from .sse import encode_frame, encode_stream
from .decoder import EventStreamDecoder, decode_stream
from .recovery import recover_chat_id
from .client import ChatClient, TurnResult

__all__ = [
    "ChatMessage",
    "CompletionConfig",
    "Provider",
    "PROVIDERS",
    "StreamChunk",
    "WireEvent",
    "ChatStreamError",
    "ConfigurationError",
    "ProviderError",
    "ProtocolError",
    "TransportError",
    "Settings",
    "ProviderRouter",
    "create_adapter",
    "encode_frame",
    "encode_stream",
    "EventStreamDecoder",
    "decode_stream",
    "recover_chat_id",
    "ChatClient",
    "TurnResult",
]
