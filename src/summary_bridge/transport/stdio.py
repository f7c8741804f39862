"""
Standard input/output channel for the native messaging host.

The browser launches the host with a pipe on each of stdin and stdout;
everything written to stdout must be a frame, so nothing else may print.
"""

import asyncio
import sys
from typing import Any, AsyncIterator, BinaryIO, Optional

from summary_bridge.transport.framing import FrameDecoder, FrameWriter, read_frames


class StdioChannel:
    def __init__(self, stdin: Optional[BinaryIO] = None, stdout: Optional[BinaryIO] = None):
        self._stdin = stdin or sys.stdin.buffer
        self._stdout = stdout or sys.stdout.buffer
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._frames: Optional[FrameWriter] = None
        self.decoder = FrameDecoder()

    @property
    def connected(self) -> bool:
        return self._reader is not None and self._frames is not None

    async def connect(self) -> None:
        if self.connected:
            return
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), self._stdin)
        transport, protocol = await loop.connect_write_pipe(asyncio.streams.FlowControlMixin, self._stdout)
        self._writer = asyncio.StreamWriter(transport, protocol, reader, loop)
        self._reader = reader
        self._frames = FrameWriter(self._writer)

    def frames(self) -> AsyncIterator[bytes]:
        if not self._reader:
            raise RuntimeError("stdio channel not connected")
        return read_frames(self._reader, self.decoder)

    async def send(self, payload: dict[str, Any]) -> None:
        if not self._frames:
            raise RuntimeError("stdio channel not connected")
        await self._frames.send(payload)

    async def disconnect(self) -> None:
        if self._writer:
            self._writer.close()
        self._reader = None
        self._writer = None
        self._frames = None
