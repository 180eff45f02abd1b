"""Server-sent event framing for generation sessions.

Each event travels as one frame::

    data: {"type": "code", "data": {"path": "...", "code": "...", "language": "css"}}\\n\\n

``encode_event`` and ``event_stream`` produce frames on the server side;
``EventStreamDecoder`` turns a chunked byte stream back into typed events
on the client side.
"""

from __future__ import annotations

import asyncio
import codecs
from collections.abc import AsyncIterator, Awaitable, Callable

from pydantic import BaseModel, ValidationError

from sitesmith.generation.events import StreamEvent, event_to_json, parse_event
from sitesmith.utils import console

FRAME_PREFIX = "data: "
FRAME_TERMINATOR = "\n\n"


def encode_event(event: BaseModel) -> str:
    """Render ``event`` as a single ``data:`` frame."""
    return f"{FRAME_PREFIX}{event_to_json(event)}{FRAME_TERMINATOR}"


async def event_stream(
    events: AsyncIterator[StreamEvent],
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    cancel: asyncio.Event | None = None,
) -> AsyncIterator[str]:
    """Frame every event from ``events`` as it is produced.

    When ``is_disconnected`` reports that the consumer went away, framing
    stops. If a ``cancel`` event was given it is set and the session is
    drained until it ends on its own, so it can finish the file in flight
    and report the cancellation; otherwise the session is closed at once.
    """
    try:
        async for event in events:
            if cancel is not None and cancel.is_set():
                continue
            if is_disconnected is not None and await is_disconnected():
                console.print("  [yellow]Client disconnected; cancelling session[/yellow]")
                if cancel is None:
                    break
                cancel.set()
                continue
            yield encode_event(event)
    finally:
        aclose = getattr(events, "aclose", None)
        if aclose is not None:
            await aclose()


class EventStreamDecoder:
    """Incremental decoder for ``data:`` frames.

    Chunks may split a frame anywhere; incomplete data is buffered until
    its terminating blank line arrives. Lines that do not start with
    ``data:`` (comments, ``event:`` or ``id:`` fields) are ignored, and a
    frame whose payload is not a known event is reported and skipped.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")()

    def feed(self, chunk: str | bytes) -> list[StreamEvent]:
        """Add ``chunk`` to the buffer and return every completed event."""
        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        self._buffer += chunk.replace("\r\n", "\n")

        decoded: list[StreamEvent] = []
        while FRAME_TERMINATOR in self._buffer:
            frame, self._buffer = self._buffer.split(FRAME_TERMINATOR, 1)
            event = self._decode_frame(frame)
            if event is not None:
                decoded.append(event)
        return decoded

    @property
    def pending(self) -> str:
        """Buffered text not yet terminated by a blank line."""
        return self._buffer

    @staticmethod
    def _decode_frame(frame: str) -> StreamEvent | None:
        payload = "\n".join(
            line[len("data:"):].lstrip(" ")
            for line in frame.split("\n")
            if line.startswith("data:")
        )
        if not payload:
            return None
        try:
            return parse_event(payload)
        except ValidationError as exc:
            console.print(
                f"  [yellow]Skipping malformed event frame: {payload[:120]!r} "
                f"({exc.error_count()} errors)[/yellow]"
            )
            return None
