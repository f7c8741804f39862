"""
Length-prefixed framing for the native messaging channel.

Each message is a 4-byte unsigned little-endian length followed by exactly
that many bytes of body. Reads may split a frame anywhere or carry several
frames at once; ``FrameDecoder`` keeps the partial state between reads.
"""

import asyncio
import json
import logging
import struct
from typing import Any, AsyncIterator, Optional

from summary_bridge.errors import FramingError

logger = logging.getLogger(__name__)

HEADER = struct.Struct("<I")
# Browser -> host messages may be up to 64 MiB, host -> browser up to 1 MiB
MAX_INCOMING_BYTES = 64 * 1024 * 1024
MAX_OUTGOING_BYTES = 1024 * 1024
READ_CHUNK_BYTES = 64 * 1024


def encode_frame(body: bytes, max_size: Optional[int] = None) -> bytes:
    if max_size is not None and len(body) > max_size:
        raise FramingError(
            f"Message of {len(body)} bytes exceeds the {max_size} byte limit",
            {"size": len(body), "limit": max_size},
        )
    return HEADER.pack(len(body)) + body


class FrameDecoder:
    """Accumulates bytes and emits complete frame bodies in arrival order."""

    def __init__(self, max_size: int = MAX_INCOMING_BYTES) -> None:
        self._buffer = bytearray()
        self._length: Optional[int] = None
        self._skip = 0  # bytes of an oversized frame body still to discard
        self._max_size = max_size
        self.resyncs = 0

    @property
    def pending(self) -> int:
        """Bytes held for a frame that has not completed yet."""
        return len(self._buffer) + (HEADER.size if self._length is not None else 0)

    def feed(self, chunk: bytes) -> list[bytes]:
        self._buffer.extend(chunk)
        frames: list[bytes] = []
        while True:
            if self._skip:
                dropped = min(self._skip, len(self._buffer))
                del self._buffer[:dropped]
                self._skip -= dropped
                if self._skip:
                    break
            if self._length is None:
                if len(self._buffer) < HEADER.size:
                    break
                (length,) = HEADER.unpack_from(self._buffer, 0)
                del self._buffer[:HEADER.size]
                if length > self._max_size:
                    # The body is still on the wire; skip exactly that many bytes
                    logger.warning(f"Skipping frame with length {length} (limit {self._max_size})")
                    self._skip = length
                    self.resyncs += 1
                    continue
                self._length = length
            if len(self._buffer) < self._length:
                break
            frames.append(bytes(self._buffer[:self._length]))
            del self._buffer[:self._length]
            self._length = None
        return frames


async def read_frames(
    reader: asyncio.StreamReader,
    decoder: Optional[FrameDecoder] = None,
    chunk_size: int = READ_CHUNK_BYTES,
) -> AsyncIterator[bytes]:
    """Yield frame bodies from ``reader`` until end-of-stream."""
    decoder = decoder or FrameDecoder()
    while True:
        chunk = await reader.read(chunk_size)
        if not chunk:
            break
        for body in decoder.feed(chunk):
            yield body
    if decoder.pending:
        logger.debug(f"Connection closed with {decoder.pending} bytes of an incomplete message")


class FrameWriter:
    """Serialises frames onto a writer; one frame is never interleaved with another."""

    def __init__(self, writer: Any, max_size: int = MAX_OUTGOING_BYTES) -> None:
        self._writer = writer
        self._max_size = max_size
        self._lock = asyncio.Lock()

    async def send_bytes(self, body: bytes) -> None:
        frame = encode_frame(body, self._max_size)
        async with self._lock:
            self._writer.write(frame)
            await self._writer.drain()

    async def send(self, payload: dict[str, Any]) -> None:
        await self.send_bytes(json.dumps(payload, ensure_ascii=False).encode("utf-8"))
