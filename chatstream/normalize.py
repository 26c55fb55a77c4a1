from typing import Any, Dict, List, NamedTuple

from .types import ChatMessage

# =============================================================================
# Provider Message Shapes
# =============================================================================

GeminiTurn = Dict[str, Any]


class GeminiShape(NamedTuple):
    """
    Gemini request shape: system instruction, prior turns, final user turn.

    `last_message` is empty when the conversation does not end with a user turn.
    """
    system_instruction: str
    history: List[GeminiTurn]
    last_message: str


class AnthropicShape(NamedTuple):
    """
    Claude request shape: one system string plus a flat turn list.
    """
    system: str
    messages: List[ChatMessage]


def _join_system(messages: List[ChatMessage]) -> str:
    return "\n".join(m["content"] for m in messages if m["role"] == "system")


# =============================================================================
# Normalizers
# =============================================================================

def to_openai_messages(messages: List[ChatMessage]) -> List[ChatMessage]:
    """
    Convert messages to OpenAI's format.

    OpenAI takes the flat turn list as-is, system messages included.
    """
    return [{"role": m["role"], "content": m["content"]} for m in messages]


def to_gemini_messages(messages: List[ChatMessage]) -> GeminiShape:
    """
    Convert messages to Gemini format.

    Handles:
    - System messages, newline-joined into one system instruction.
    - Role mapping ("assistant" -> "model", anything else -> "user").
    - Extraction of the final turn, only when the last message is from the user.

    Args:
        messages (List[ChatMessage]): Provider-agnostic message list.

    Returns:
        GeminiShape: (system_instruction, history, last_message)
    """
    history: List[GeminiTurn] = []
    last_message = ""
    last_index = len(messages) - 1

    for i, msg in enumerate(messages):
        role = msg["role"]
        if role == "system":
            continue
        if i == last_index and role == "user":
            last_message = msg["content"]
            continue
        history.append({
            "role": "model" if role == "assistant" else "user",
            "parts": [{"text": msg["content"]}],
        })

    return GeminiShape(_join_system(messages), history, last_message)


def to_anthropic_messages(messages: List[ChatMessage]) -> AnthropicShape:
    """
    Convert messages to Claude format.

    Anthropic's API differs from OpenAI's in that 'system' messages are passed
    as a separate top-level parameter, not within the `messages` list.
    """
    converted: List[ChatMessage] = [
        {"role": m["role"], "content": m["content"]}
        for m in messages
        if m["role"] != "system"
    ]
    return AnthropicShape(_join_system(messages), converted)


# =============================================================================
# Canonical Forms
# =============================================================================

def from_gemini_shape(shape: GeminiShape) -> List[ChatMessage]:
    """
    Rebuild a flat message list from a Gemini shape, system instruction first.
    """
    messages: List[ChatMessage] = []
    if shape.system_instruction:
        messages.append({"role": "system", "content": shape.system_instruction})
    for turn in shape.history:
        text = "".join(part.get("text", "") for part in turn["parts"])
        messages.append({
            "role": "assistant" if turn["role"] == "model" else "user",
            "content": text,
        })
    if shape.last_message:
        messages.append({"role": "user", "content": shape.last_message})
    return messages


def from_anthropic_shape(shape: AnthropicShape) -> List[ChatMessage]:
    """
    Rebuild a flat message list from a Claude shape, system string first.
    """
    messages: List[ChatMessage] = []
    if shape.system:
        messages.append({"role": "system", "content": shape.system})
    messages.extend({"role": m["role"], "content": m["content"]} for m in shape.messages)
    return messages
