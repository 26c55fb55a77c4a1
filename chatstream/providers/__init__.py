from typing import Dict, Type

from ..config import Settings
from ..router import ProviderRouter
from ..types import Provider
from .base import BaseCompletionAdapter
from .openai import OpenAIAdapter
from .anthropic import AnthropicAdapter
from .gemini import GeminiAdapter

ADAPTERS: Dict[Provider, Type[BaseCompletionAdapter]] = {
    "openai": OpenAIAdapter,
    "gemini": GeminiAdapter,
    "claude": AnthropicAdapter,
}


def create_adapter(provider: Provider, settings: Settings) -> BaseCompletionAdapter:
    """
    Build the adapter for `provider` from its own credential and model name.

    Raises:
        ConfigurationError: If the provider's credential is missing.
        ValueError: If `provider` is not a supported provider.
    """
    try:
        adapter_cls = ADAPTERS[provider]
    except KeyError:
        raise ValueError(f"Unknown provider: {provider}. Use 'openai', 'gemini' or 'claude'") from None

    model = ProviderRouter(settings).model_for(provider)
    return adapter_cls(api_key=settings.credential_for(provider), model=model)


__all__ = [
    "ADAPTERS",
    "BaseCompletionAdapter",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "GeminiAdapter",
    "create_adapter",
]
