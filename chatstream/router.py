import logging
from typing import Dict, List, Optional

from .config import Settings
from .errors import ConfigurationError
from .types import PROVIDERS, Provider, is_provider

logger = logging.getLogger(__name__)

DEFAULT_MODELS: Dict[Provider, str] = {
    "openai": "gpt-4-turbo-preview",
    "gemini": "gemini-2.0-flash",
    "claude": "claude-sonnet-4-20250514",
}

FALLBACK_PROVIDER: Provider = "openai"


class ProviderRouter:
    """
    Chooses which backend serves a request.

    The router reads only the settings it was constructed with, so the same
    override and settings always resolve to the same provider.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def resolve(self, requested: Optional[str] = None) -> Provider:
        """
        Resolve the provider for one request.

        Order:
        1. A valid per-request override, even if its credential is missing.
        2. The configured default provider (AI_PROVIDER).
        3. The first provider, in priority order, with a credential.
        4. OpenAI.

        Callers must check `list_available()` (or call `require()`) before
        dispatching, since steps 1, 2 and 4 do not look at credentials.
        """
        if is_provider(requested):
            return requested

        default = self.settings.default_provider
        if is_provider(default):
            return default

        available = self.list_available()
        if available:
            return available[0]

        return FALLBACK_PROVIDER

    def list_available(self) -> List[Provider]:
        """
        Get every provider with a configured credential, in priority order.
        """
        return [p for p in PROVIDERS if self.settings.credential_for(p)]

    def require(self, provider: Provider) -> Provider:
        """
        Ensure `provider` has a credential.

        Raises:
            ConfigurationError: If the provider is not available.
        """
        if provider not in self.list_available():
            logger.warning("provider %s requested without credential", provider)
            raise ConfigurationError(provider)
        return provider

    def model_for(self, provider: Provider) -> str:
        """
        Get the model name for a provider: the configured override or the default.
        """
        override = {
            "openai": self.settings.openai_model,
            "gemini": self.settings.gemini_model,
            "claude": self.settings.anthropic_model,
        }.get(provider)
        return override or DEFAULT_MODELS[provider]

    def describe(self) -> Dict[str, object]:
        return {
            "active": self.resolve(),
            "available": self.list_available(),
        }
