"""HTTP surface: the chat endpoint and provider discovery."""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings
from .errors import ConfigurationError, ProviderError
from .providers import create_adapter
from .service import AdapterFactory, ChatService
from .sse import MEDIA_TYPE, SSE_HEADERS
from .store import ChatStore, DailyMessageQuota, InMemoryChatStore, QuotaPolicy, SessionResolver, StaticSession
from .types import CompletionConfig

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = (
    "You have exceeded your maximum number of messages for the day. "
    "Please try again later."
)


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = ""
    chat_id: Optional[str] = Field(default=None, alias="chatId")
    streaming: bool = False
    provider: Optional[str] = None
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=4096, gt=0, alias="maxTokens")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ChatStore] = None,
    session: Optional[SessionResolver] = None,
    quota: Optional[QuotaPolicy] = None,
    adapter_factory: AdapterFactory = create_adapter,
) -> FastAPI:
    """
    Build the FastAPI application.

    Collaborators default to the in-memory implementations; pass real ones
    to back the service with persistent storage and authentication.
    """
    settings = settings or Settings.from_env()
    if store is None:
        store = InMemoryChatStore()
    if quota is None:
        if not isinstance(store, InMemoryChatStore):
            raise ValueError("a quota policy is required with a custom chat store")
        quota = DailyMessageQuota(store, settings.daily_message_limit)
    session = session or StaticSession()

    service = ChatService(settings, store, adapter_factory=adapter_factory)

    app = FastAPI(title="chatstream", version="0.1.0")
    app.state.service = service
    app.state.session = session
    app.state.quota = quota

    @app.get("/api/providers")
    async def providers():
        return service.router.describe()

    @app.post("/api/chat")
    async def chat(body: ChatRequest):
        if not body.message.strip():
            return JSONResponse(status_code=400, content={"error": "Message is required"})

        user_id = await session.current_user_id()
        if not user_id:
            return JSONResponse(
                status_code=401,
                content={"error": "unauthorized:chat", "message": "You need to sign in to chat."},
            )
        if not await quota.within_quota(user_id):
            return JSONResponse(
                status_code=429,
                content={"error": "rate_limit:chat", "message": RATE_LIMIT_MESSAGE},
            )

        provider_name = body.provider or "unknown"
        try:
            provider = service.select_provider(body.provider)
            provider_name = provider
            config = CompletionConfig(temperature=body.temperature, max_tokens=body.max_tokens)
            turn = await service.prepare_turn(user_id, body.message, body.chat_id)

            if body.streaming:
                return StreamingResponse(
                    service.stream_turn(provider, turn, config),
                    media_type=MEDIA_TYPE,
                    headers=SSE_HEADERS,
                )
            return await service.complete_turn(provider, turn, config)
        except ConfigurationError as exc:
            return JSONResponse(status_code=400, content={"error": str(exc)})
        except ProviderError as exc:
            logger.error("AI provider error (%s): %s", provider_name, exc)
            return JSONResponse(
                status_code=502,
                content={"error": "Failed to process request", "details": str(exc)},
            )
        except Exception as exc:
            logger.exception("chat request failed (%s)", provider_name)
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to process request", "details": str(exc)},
            )

    return app
