"""
Server side of the event-stream protocol.

Each event is written as one `data: <json>\\n\\n` frame:

    data: {"type":"chat_metadata","id":"..."}     at most one, first
    data: {"type":"content","content":"..."}      zero or more deltas
    data: {"type":"done"}                          exactly one, on success
"""

import asyncio
import json
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional, Union

from .types import StreamChunk, WireEvent

logger = logging.getLogger(__name__)

MEDIA_TYPE = "text/event-stream"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

OnComplete = Callable[[str], Union[None, Awaitable[None]]]


def encode_frame(event: WireEvent) -> bytes:
    """
    Serialize one event as a frame.

    Newlines inside string values are escaped by the JSON encoder, so a
    frame never spans more than one line.
    """
    payload = json.dumps(event, ensure_ascii=False, separators=(",", ":"))
    return f"data: {payload}\n\n".encode("utf-8")


async def encode_stream(
    chunks: AsyncIterator[StreamChunk],
    *,
    chat_id: Optional[str] = None,
    on_complete: Optional[OnComplete] = None,
) -> AsyncIterator[bytes]:
    """
    Frame a completion stream for an HTTP response body.

    Emits a metadata frame first when `chat_id` is known, then one content
    frame per non-empty chunk as it arrives. Once the source is exhausted,
    `on_complete` receives the accumulated text and the done frame is
    emitted.

    If the source raises, the error propagates so the transport aborts the
    body: no done frame is written and `on_complete` is never called.

    Args:
        chunks: Lazy completion sequence from an adapter.
        chat_id: Conversation identifier known at stream start.
        on_complete: Persistence callback, plain or async.

    Yields:
        bytes: Encoded frames, one per event.
    """
    full_text = ""
    frame_count = 0

    if chat_id:
        yield encode_frame({"type": "chat_metadata", "id": chat_id})

    try:
        async for chunk in chunks:
            content = chunk.get("content")
            if not content:
                continue
            full_text += content
            frame_count += 1
            if frame_count == 1:
                logger.info("stream first_token", extra={"chat_id": chat_id})
            yield encode_frame({"type": "content", "content": content})
    except Exception:
        logger.exception(
            "stream aborted after %d frames", frame_count, extra={"chat_id": chat_id}
        )
        raise
    finally:
        aclose = getattr(chunks, "aclose", None)
        if aclose is not None:
            await aclose()

    if on_complete is not None:
        result = on_complete(full_text)
        if asyncio.iscoroutine(result):
            await result

    logger.info(
        "stream done: %d frames, %d chars", frame_count, len(full_text),
        extra={"chat_id": chat_id},
    )
    yield encode_frame({"type": "done"})
