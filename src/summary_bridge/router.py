"""
Message router — dispatch decoded requests to handlers by ``action``.

Each dispatch runs on its own task; handlers share nothing except what they
are given, so concurrent requests cannot corrupt each other. Every failure
becomes a ``success: false`` response carrying the request's ``requestId``.
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from summary_bridge.errors import FramingError, InvalidRequestError, SummaryBridgeError, UnknownActionError
from summary_bridge.transport.envelope import build_failure, build_response, parse_message, recover_request_id

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]
SendFn = Callable[[dict[str, Any]], Awaitable[None]]


class MessageRouter:
    def __init__(self, send: SendFn):
        self._send = send
        self._handlers: dict[str, Handler] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def actions(self) -> list[str]:
        return sorted(self._handlers)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def register(self, action: str, handler: Handler) -> None:
        self._handlers[action] = handler

    async def dispatch(self, body: bytes) -> None:
        """Handle one frame body and write exactly one response for it."""
        try:
            message = parse_message(body)
        except InvalidRequestError as e:
            logger.warning(e.message)
            await self.send(build_failure(recover_request_id(body), e.message))
            return

        request_id = message.get("requestId")
        action = message.get("action")
        handler = self._handlers.get(action) if isinstance(action, str) else None
        if handler is None:
            err = UnknownActionError(action)
            logger.warning(f"{err.message} (requestId={request_id!r})")
            await self.send(build_failure(request_id, err.message))
            return

        logger.info(f"Dispatching {action} (requestId={request_id!r})")
        try:
            payload = await handler(message)
        except SummaryBridgeError as e:
            logger.error(f"{action} failed: [{e.code}] {e.message}")
            response = build_failure(request_id, e.message)
        except Exception as e:
            logger.exception(f"Unhandled error in {action}")
            response = build_failure(request_id, str(e) or type(e).__name__)
        else:
            response = build_response(request_id, payload)
        await self.send(response)

    async def send(self, payload: dict[str, Any]) -> None:
        try:
            await self._send(payload)
        except FramingError as e:
            logger.error(f"Response not sent: {e.message}")
            request_id = payload.get("requestId")
            if payload.get("type") != "progress":
                await self._send(build_failure(request_id, f"Response too large to send: {e.message}"))
        except (BrokenPipeError, ConnectionResetError) as e:
            logger.warning(f"Channel closed while sending: {e}")

    def spawn(self, body: bytes) -> "asyncio.Task[None]":
        task = asyncio.get_running_loop().create_task(self.dispatch(body))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def serve(self, frames: AsyncIterator[bytes]) -> None:
        """Dispatch every incoming frame concurrently until the stream ends.

        Requests still running at end-of-stream are cancelled; nobody is left
        to read their responses.
        """
        async for body in frames:
            self.spawn(body)
        pending = list(self._tasks)
        if pending:
            logger.info(f"Input closed, cancelling {len(pending)} in-flight request(s)")
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
