"""
Per-request progress channel.

Backends emit stage changes without ever waiting on the consumer: the queue
is bounded and, when full, the oldest pending event is dropped. Closing the
channel always gets through, so a consumer iterating the channel always ends.
"""

import asyncio
from typing import Any, AsyncIterator, Optional

from summary_bridge.models.messages import ProgressEvent, ProgressInfo, ProgressStage

DEFAULT_CAPACITY = 32


class ProgressChannel:
    def __init__(self, request_id: Any = None, capacity: int = DEFAULT_CAPACITY):
        self.request_id = request_id
        self._queue: asyncio.Queue[Optional[ProgressEvent]] = asyncio.Queue(maxsize=capacity)
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, stage: ProgressStage, message: str, *,
             chars: Optional[int] = None, input_tokens: Optional[int] = None) -> None:
        if self._closed:
            return
        self._put(ProgressEvent(
            request_id=self.request_id,
            progress=ProgressInfo(stage=stage, message=message, chars=chars, input_tokens=input_tokens),
        ))

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._put(None)

    def _put(self, item: Optional[ProgressEvent]) -> None:
        while True:
            try:
                self._queue.put_nowait(item)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()
                self.dropped += 1

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event
