"""Tests for length-prefixed framing."""

import asyncio
import json
import struct

import pytest

from summary_bridge.errors import FramingError
from summary_bridge.transport.framing import FrameDecoder, FrameWriter, encode_frame, read_frames


def frame(payload) -> bytes:
    return encode_frame(json.dumps(payload).encode("utf-8"))


class TestEncode:
    def test_header_is_little_endian_length(self):
        data = encode_frame(b'{"a":1}')
        assert data[:4] == struct.pack("<I", 7)
        assert data[4:] == b'{"a":1}'

    def test_empty_body(self):
        assert encode_frame(b"") == b"\x00\x00\x00\x00"

    def test_oversized_body_rejected(self):
        with pytest.raises(FramingError) as exc:
            encode_frame(b"x" * 11, max_size=10)
        assert exc.value.details == {"size": 11, "limit": 10}


class TestDecoder:
    def test_one_byte_at_a_time(self):
        data = frame({"action": "checkAuth", "requestId": 1})
        decoder = FrameDecoder()
        bodies = []
        for i in range(len(data)):
            bodies += decoder.feed(data[i:i + 1])
        assert [json.loads(b) for b in bodies] == [{"action": "checkAuth", "requestId": 1}]
        assert decoder.pending == 0

    def test_two_frames_in_one_read(self):
        decoder = FrameDecoder()
        bodies = decoder.feed(frame({"n": 1}) + frame({"n": 2}))
        assert [json.loads(b)["n"] for b in bodies] == [1, 2]

    def test_split_across_reads_keeps_partial_state(self):
        data = frame({"text": "héllo wörld"})
        decoder = FrameDecoder()
        assert decoder.feed(data[:6]) == []
        assert decoder.pending == 6
        bodies = decoder.feed(data[6:])
        assert json.loads(bodies[0].decode("utf-8")) == {"text": "héllo wörld"}

    def test_oversized_frame_skipped_in_one_read(self):
        decoder = FrameDecoder(max_size=8)
        bodies = decoder.feed(encode_frame(b"x" * 10) + encode_frame(b"ok"))
        assert bodies == [b"ok"]
        assert decoder.resyncs == 1
        assert decoder.pending == 0

    def test_oversized_body_split_across_reads(self):
        decoder = FrameDecoder(max_size=16)
        assert decoder.feed(struct.pack("<I", 40) + b"y" * 10) == []
        # Body bytes that look like a length prefix must not be decoded as one
        assert decoder.feed(struct.pack("<I", 3) + b"abc" + b"y" * 10) == []
        assert decoder.feed(b"y" * 13 + frame({"ok": 1})) == [b'{"ok": 1}']
        assert decoder.resyncs == 1


class TestReadFrames:
    @pytest.mark.asyncio
    async def test_yields_bodies_until_eof(self):
        reader = asyncio.StreamReader()
        reader.feed_data(frame({"n": 1}) + frame({"n": 2})[:3])
        reader.feed_data(frame({"n": 2})[3:])
        reader.feed_eof()
        bodies = [json.loads(b) async for b in read_frames(reader, chunk_size=5)]
        assert bodies == [{"n": 1}, {"n": 2}]

    @pytest.mark.asyncio
    async def test_incomplete_frame_at_eof_is_dropped(self):
        reader = asyncio.StreamReader()
        decoder = FrameDecoder()
        reader.feed_data(frame({"n": 1}) + struct.pack("<I", 50) + b"{")
        reader.feed_eof()
        bodies = [b async for b in read_frames(reader, decoder)]
        assert len(bodies) == 1
        assert decoder.pending == 5


class _BufferWriter:
    def __init__(self):
        self.data = bytearray()

    def write(self, chunk: bytes) -> None:
        self.data.extend(chunk)

    async def drain(self) -> None:
        await asyncio.sleep(0)


class TestFrameWriter:
    @pytest.mark.asyncio
    async def test_concurrent_sends_never_interleave(self):
        sink = _BufferWriter()
        writer = FrameWriter(sink)
        await asyncio.gather(*(writer.send({"n": i, "pad": "x" * 100}) for i in range(20)))
        bodies = FrameDecoder().feed(bytes(sink.data))
        assert sorted(json.loads(b)["n"] for b in bodies) == list(range(20))

    @pytest.mark.asyncio
    async def test_non_ascii_is_utf8(self):
        sink = _BufferWriter()
        await FrameWriter(sink).send({"text": "日本語"})
        assert "日本語".encode("utf-8") in bytes(sink.data)

    @pytest.mark.asyncio
    async def test_outgoing_limit(self):
        sink = _BufferWriter()
        writer = FrameWriter(sink, max_size=32)
        with pytest.raises(FramingError):
            await writer.send({"text": "x" * 100})
        assert sink.data == bytearray()
