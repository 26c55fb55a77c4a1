from dataclasses import dataclass
from typing import Literal, List, Tuple, TypedDict, Union

# =============================================================================
# Type Definitions
# =============================================================================

# Supported LLM providers
Provider = Literal["openai", "gemini", "claude"]

# Fixed priority order used for auto-detection and availability listing
PROVIDERS: Tuple[Provider, ...] = ("openai", "gemini", "claude")

Role = Literal["system", "user", "assistant"]


class ChatMessage(TypedDict):
    """
    Provider-agnostic chat message.

    Roles:
    - "system": System prompt / instructions
    - "user": User message
    - "assistant": Model response
    """
    role: Role
    content: str


@dataclass(frozen=True)
class CompletionConfig:
    """
    Sampling options forwarded to the provider.

    Attributes:
        temperature: Sampling temperature in [0, 2].
        max_tokens: Upper bound on generated tokens, must be positive.
    """
    temperature: float = 0.7
    max_tokens: int = 4096

    def __post_init__(self):
        if not 0 <= self.temperature <= 2:
            raise ValueError(f"temperature must be within [0, 2], got {self.temperature}")
        if self.max_tokens <= 0:
            raise ValueError(f"max_tokens must be positive, got {self.max_tokens}")


class StreamChunk(TypedDict):
    """
    One text increment of a streaming completion.
    """
    content: str


# =============================================================================
# Wire Events
# =============================================================================

class ChatMetadataEvent(TypedDict):
    type: Literal["chat_metadata"]
    id: str


class ContentEvent(TypedDict):
    type: Literal["content"]
    content: str


class DoneEvent(TypedDict):
    type: Literal["done"]


WireEvent = Union[ChatMetadataEvent, ContentEvent, DoneEvent]


def is_provider(value: object) -> bool:
    """Return True if `value` names one of the supported providers."""
    return isinstance(value, str) and value in PROVIDERS


__all__ = [
    "Provider",
    "PROVIDERS",
    "Role",
    "ChatMessage",
    "CompletionConfig",
    "StreamChunk",
    "ChatMetadataEvent",
    "ContentEvent",
    "DoneEvent",
    "WireEvent",
    "is_provider",
]
