"""Unit tests for event-stream framing (sitesmith.streaming)."""

from __future__ import annotations

import asyncio

import pytest

from sitesmith.generation import events
from sitesmith.generation.events import CompleteEvent, ProgressEvent, StartEvent
from sitesmith.generation.models import GeneratedFile
from sitesmith.streaming import EventStreamDecoder, encode_event, event_stream


async def produce(*items):
    for item in items:
        yield item


# ---------------------------------------------------------------------------
# encode_event
# ---------------------------------------------------------------------------


class TestEncodeEvent:
    @pytest.mark.unit
    def test_frame_shape(self):
        frame = encode_event(events.start("Starting"))
        assert frame == 'data: {"type":"start","data":{"message":"Starting"}}\n\n'

    @pytest.mark.unit
    def test_newlines_in_code_stay_inside_one_frame(self):
        frame = encode_event(events.code(GeneratedFile.for_path("a.js", "a();\n\nb();")))
        assert frame.count("\n\n") == 1
        assert frame.endswith("\n\n")


# ---------------------------------------------------------------------------
# event_stream
# ---------------------------------------------------------------------------


class TestEventStream:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_frames_every_event(self):
        frames = [
            frame
            async for frame in event_stream(produce(events.start("s"), events.complete()))
        ]
        assert len(frames) == 2
        assert frames[-1] == 'data: {"type":"complete","data":{}}\n\n'

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_disconnect_sets_cancel_and_drains_session(self):
        cancel = asyncio.Event()
        calls = {"n": 0}
        seen = []

        async def is_disconnected() -> bool:
            calls["n"] += 1
            return calls["n"] > 1

        async def session():
            for item in (events.start("s"), events.progress("p")):
                seen.append(item.type)
                yield item
            outcome = events.error("cancelled") if cancel.is_set() else events.complete()
            seen.append(outcome.type)
            yield outcome

        frames = [frame async for frame in event_stream(session(), is_disconnected, cancel)]

        assert len(frames) == 1
        assert cancel.is_set()
        assert seen == ["start", "progress", "error"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_disconnect_without_cancel_closes_source(self):
        calls = {"n": 0}
        seen = []

        async def is_disconnected() -> bool:
            calls["n"] += 1
            return calls["n"] > 1

        async def session():
            for item in (events.start("s"), events.progress("p"), events.complete()):
                seen.append(item.type)
                yield item

        frames = [frame async for frame in event_stream(session(), is_disconnected)]

        assert len(frames) == 1
        assert seen == ["start", "progress"]


# ---------------------------------------------------------------------------
# EventStreamDecoder
# ---------------------------------------------------------------------------


class TestEventStreamDecoder:
    @pytest.mark.unit
    def test_single_frame(self):
        decoder = EventStreamDecoder()
        decoded = decoder.feed(encode_event(events.progress("p")))
        assert len(decoded) == 1
        assert isinstance(decoded[0], ProgressEvent)
        assert decoded[0].data.message == "p"

    @pytest.mark.unit
    def test_frame_split_across_chunks(self):
        frame = encode_event(events.start("hello"))
        decoder = EventStreamDecoder()

        assert decoder.feed(frame[:10]) == []
        assert decoder.feed(frame[10:-1]) == []
        decoded = decoder.feed(frame[-1:])

        assert [type(e) for e in decoded] == [StartEvent]
        assert decoder.pending == ""

    @pytest.mark.unit
    def test_several_frames_in_one_chunk(self):
        chunk = encode_event(events.start("s")) + encode_event(events.complete())
        decoded = EventStreamDecoder().feed(chunk.encode("utf-8"))
        assert [type(e) for e in decoded] == [StartEvent, CompleteEvent]

    @pytest.mark.unit
    def test_multibyte_character_split_across_chunks(self):
        raw = encode_event(events.progress("caf\u00e9 \u2713")).encode("utf-8")
        cut = raw.index("\u2713".encode("utf-8")) + 1
        decoder = EventStreamDecoder()

        assert decoder.feed(raw[:cut]) == []
        decoded = decoder.feed(raw[cut:])

        assert len(decoded) == 1
        assert decoded[0].data.message == "caf\u00e9 \u2713"

    @pytest.mark.unit
    def test_crlf_line_endings(self):
        chunk = encode_event(events.complete()).replace("\n", "\r\n")
        assert [type(e) for e in EventStreamDecoder().feed(chunk)] == [CompleteEvent]

    @pytest.mark.unit
    def test_non_data_lines_ignored(self):
        chunk = ": keep-alive\n\nevent: message\n" + encode_event(events.complete())
        assert [type(e) for e in EventStreamDecoder().feed(chunk)] == [CompleteEvent]

    @pytest.mark.unit
    def test_malformed_frame_skipped(self):
        chunk = "data: {not json}\n\n" + 'data: {"type":"mystery","data":{}}\n\n'
        chunk += encode_event(events.complete())
        assert [type(e) for e in EventStreamDecoder().feed(chunk)] == [CompleteEvent]

    @pytest.mark.unit
    def test_multiline_code_survives(self):
        file = GeneratedFile.for_path("a.css", "a {\n  color: red;\n}\n")
        decoded = EventStreamDecoder().feed(encode_event(events.update(file)))
        assert decoded[0].to_file() == file
