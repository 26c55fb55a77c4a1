"""
Client side of the event-stream protocol.

`EventStreamDecoder` turns arbitrarily split byte chunks back into events;
`decode_stream` drives it over an async byte source and accumulates content.
"""

import asyncio
import codecs
import json
import logging
from typing import Any, AsyncIterable, Callable, Dict, List, Optional

from .errors import ProtocolError, TransportError

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "

Event = Dict[str, Any]


def parse_line(line: str) -> Optional[Event]:
    """
    Parse a single event-stream line.

    Returns None for lines that carry no event: anything without the
    `data: ` prefix (blank separators included) and empty payloads.

    Raises:
        ProtocolError: If the payload is not a JSON object, or its `content`
                       or `id` field is not a string.
    """
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):].strip()
    if not payload:
        return None

    try:
        event = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"malformed frame: {payload[:80]!r}") from exc
    if not isinstance(event, dict):
        raise ProtocolError(f"frame is not an object: {payload[:80]!r}")
    for field in ("content", "id"):
        if field in event and not isinstance(event[field], str):
            raise ProtocolError(f"frame field {field!r} is not a string: {payload[:80]!r}")
    return event


class EventStreamDecoder:
    """
    Incremental frame parser.

    Bytes are decoded with an incremental UTF-8 decoder, so a code point
    split across two reads is completed on the next one. Text after the last
    newline is held until the line is complete.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self.saw_done = False
        self.skipped_frames = 0

    def feed(self, data: bytes) -> List[Event]:
        """
        Consume one read and return the events from every completed line.
        """
        self._buffer += self._decoder.decode(data)
        *lines, self._buffer = self._buffer.split("\n")
        return self._parse(lines)

    def flush(self) -> List[Event]:
        """
        Finish decoding at end of stream, parsing any unterminated last line.
        """
        self._buffer += self._decoder.decode(b"", final=True)
        lines, self._buffer = [self._buffer], ""
        return self._parse(lines)

    def _parse(self, lines: List[str]) -> List[Event]:
        events = []
        for line in lines:
            try:
                event = parse_line(line)
            except ProtocolError as exc:
                # One bad frame must not end the stream
                self.skipped_frames += 1
                logger.debug("skipping frame: %s", exc)
                continue
            if event is None:
                continue
            if event.get("type") == "done":
                self.saw_done = True
            events.append(event)
        return events


def _as_transport_error(exc: Exception) -> TransportError:
    if isinstance(exc, TransportError):
        return exc
    error = TransportError(str(exc) or type(exc).__name__)
    error.__cause__ = exc
    return error


async def _call(callback: Optional[Callable], *args) -> None:
    if callback is None:
        return
    result = callback(*args)
    if asyncio.iscoroutine(result):
        await result


async def decode_stream(
    stream: AsyncIterable[bytes],
    *,
    on_metadata: Optional[Callable[[Dict[str, str]], Any]] = None,
    on_accumulated_content: Optional[Callable[[str], Any]] = None,
    on_error: Optional[Callable[[TransportError], Any]] = None,
    decoder: Optional[EventStreamDecoder] = None,
) -> str:
    """
    Read an event stream to completion.

    Dispatch:
    - `chat_metadata` with an id -> `on_metadata({"id": ...})`
    - `content` with non-empty text -> appended to the running total, then
      `on_accumulated_content(running_total)`
    - anything else (including `done`) is ignored; the end of the stream is
      the end of the byte source.

    Callbacks may be plain functions or coroutine functions.

    Args:
        stream: Async byte source, e.g. `httpx.Response.aiter_bytes()`.
        decoder: Decoder state to use; a fresh one by default. Pass one in
                 to inspect `saw_done` afterwards.

    Returns:
        str: The accumulated text, or "" if reading failed. A failed read
             or bytes that are not valid UTF-8 are reported through
             `on_error` and must be treated as a failed turn, not an empty one.
    """
    decoder = decoder or EventStreamDecoder()
    iterator = stream.__aiter__()
    accumulated = ""

    async def dispatch(events: List[Event]) -> None:
        nonlocal accumulated
        for event in events:
            kind = event.get("type")
            if kind == "chat_metadata" and event.get("id"):
                await _call(on_metadata, {"id": event["id"]})
            elif kind == "content" and event.get("content"):
                accumulated += event["content"]
                await _call(on_accumulated_content, accumulated)

    async def fail(exc: Exception) -> str:
        error = _as_transport_error(exc)
        logger.warning("event stream read failed: %s", error)
        await _call(on_error, error)
        return ""

    try:
        while True:
            try:
                data = await iterator.__anext__()
                events = decoder.feed(data)
            except StopAsyncIteration:
                break
            except Exception as exc:
                return await fail(exc)
            await dispatch(events)

        try:
            events = decoder.flush()
        except UnicodeDecodeError as exc:
            # Stream ended inside a multi-byte sequence
            return await fail(exc)
        await dispatch(events)
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()

    if not decoder.saw_done:
        logger.warning("event stream ended without a done frame")
    return accumulated
