from typing import Optional


class ChatStreamError(Exception):
    """
    Base class for all errors raised by chatstream.
    """


class ConfigurationError(ChatStreamError):
    """
    The requested provider has no credential configured.

    Raised before any network call is made and never retried.
    """

    def __init__(self, provider: str, message: Optional[str] = None):
        self.provider = provider
        super().__init__(
            message
            or f'Provider "{provider}" is not configured. '
            "Set the corresponding API key in your environment variables."
        )


class ProviderError(ChatStreamError):
    """
    The upstream completion or streaming call failed after dispatch.
    """

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class ProtocolError(ChatStreamError):
    """
    A single event-stream frame could not be parsed.

    Recovered locally by skipping the frame.
    """


class TransportError(ChatStreamError):
    """
    The event byte stream itself failed or closed unexpectedly.
    """
