"""Application configuration.

Settings are read once from a key/value source and never mutated. Use
`Settings.from_env()` in the application and `Settings.from_mapping()` to
inject configuration in tests.
"""

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

import dotenv

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Answer clearly and concisely, "
    "and use markdown for code and lists."
)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    """Main application settings with environment variable overrides."""

    # Credentials
    openai_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # Provider selection
    default_provider: Optional[str] = None
    openai_model: Optional[str] = None
    gemini_model: Optional[str] = None
    anthropic_model: Optional[str] = None

    # Chat
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    daily_message_limit: int = 100

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"

    source: Mapping[str, str] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_mapping(cls, source: Mapping[str, Optional[str]]) -> "Settings":
        """
        Build settings from any key/value mapping.

        Blank values count as absent, so `OPENAI_API_KEY=""` does not mark
        OpenAI as available.
        """
        values = {k: v for k, v in source.items() if v is not None}
        def get(key: str) -> Optional[str]:
            return _clean(values.get(key))

        return cls(
            openai_api_key=get("OPENAI_API_KEY"),
            gemini_api_key=get("GEMINI_API_KEY") or get("GOOGLE_API_KEY"),
            anthropic_api_key=get("ANTHROPIC_API_KEY"),
            default_provider=(get("AI_PROVIDER") or "").lower() or None,
            openai_model=get("OPENAI_MODEL"),
            gemini_model=get("GEMINI_MODEL"),
            anthropic_model=get("ANTHROPIC_MODEL"),
            system_prompt=get("SYSTEM_PROMPT") or DEFAULT_SYSTEM_PROMPT,
            daily_message_limit=int(get("DAILY_MESSAGE_LIMIT") or cls.daily_message_limit),
            host=get("APP_HOST") or cls.host,
            port=int(get("APP_PORT") or cls.port),
            log_level=(get("LOG_LEVEL") or cls.log_level).upper(),
            source=MappingProxyType(dict(values)),
        )

    @classmethod
    def from_env(cls, dotenv_path: str = ".env") -> "Settings":
        """
        Load settings from a `.env` file overlaid by the process environment.
        """
        values = dict(dotenv.dotenv_values(dotenv_path))
        values.update(os.environ)
        return cls.from_mapping(values)

    def credential_for(self, provider: str) -> Optional[str]:
        return {
            "openai": self.openai_api_key,
            "gemini": self.gemini_api_key,
            "claude": self.anthropic_api_key,
        }.get(provider)
