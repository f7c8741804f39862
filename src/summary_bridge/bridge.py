"""
Bridge orchestrator — request in, prompt, model, parse, response out.

Per request: received -> prompt built -> model invoked (direct API, then the
local CLI) -> parsed -> responded. A request either fully succeeds or gets a
single ``success: false`` response with a readable error; partial results are
never sent.

The only shared state is the table mapping a requestId to its progress
channel. Every progress event for a request is written before that request's
final response.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import ValidationError

from summary_bridge.backends.cli import find_claude_command
from summary_bridge.config import HostConfig
from summary_bridge.credentials import check_auth_status, load_oauth_token
from summary_bridge.errors import InvalidRequestError, SummaryBridgeError
from summary_bridge.invoker import ModelInvoker, build_invoker
from summary_bridge.models.messages import FollowUpRequest, ProgressStage, SaveToNotesRequest, SummaryRequest
from summary_bridge.models.result import FollowUpResult, ParsedResult
from summary_bridge.notes import NotesAutomation, UnavailableNotes
from summary_bridge.parser import parse_follow_up, parse_response
from summary_bridge.progress import ProgressChannel
from summary_bridge.prompts import build_follow_up_prompt, build_prompt
from summary_bridge.router import Handler, MessageRouter
from summary_bridge.transport.stdio import StdioChannel

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def summarize(request: SummaryRequest, invoker: ModelInvoker, progress: ProgressChannel) -> ParsedResult:
    """Run the full summary pipeline for one request."""
    references = tuple(request.links)
    prompt = build_prompt(
        request,
        references=references,
        content_kind=request.content_type,
        custom_instructions=request.custom_instructions,
        template=request.template,
    )
    raw = await invoker.invoke(prompt, progress)
    progress.emit(ProgressStage.PARSING, "Extracting insights...")
    parsed = parse_response(raw, references, request.template)
    progress.emit(ProgressStage.COMPLETE, "Done!")
    logger.info(f"Parsed summary: {len(parsed.summary)} chars, {len(parsed.key_learnings)} learnings, "
                f"{len(parsed.action_items)} action items, {len(parsed.relevant_links)} links")
    return parsed


async def follow_up(request: FollowUpRequest, invoker: ModelInvoker, progress: ProgressChannel) -> FollowUpResult:
    prompt = build_follow_up_prompt(request.title, request.transcript, request.query, request.existing_learnings)
    raw = await invoker.invoke(prompt, progress)
    progress.emit(ProgressStage.PARSING, "Extracting insights...")
    result = parse_follow_up(raw)
    progress.emit(ProgressStage.COMPLETE, "Done!")
    logger.info(f"Follow-up generated: {len(result.insights)} insights, {len(result.actions)} actions")
    return result


class BridgeHost:
    def __init__(
        self,
        router: MessageRouter,
        config: Optional[HostConfig] = None,
        invoker: Optional[ModelInvoker] = None,
        notes: Optional[NotesAutomation] = None,
        token_loader: Callable[[], Optional[str]] = load_oauth_token,
    ):
        self._router = router
        self._config = config or HostConfig()
        self._invoker = invoker
        self._notes = notes or UnavailableNotes()
        self._token_loader = token_loader
        self._progress: dict[Any, ProgressChannel] = {}

        self._register("generateSummary", self.handle_generate_summary)
        self._register("followUp", self.handle_follow_up)
        self._register("saveToNotes", self.handle_save_to_notes)
        self._register("listFolders", self.handle_list_folders)
        self._register("checkAuth", self.handle_check_auth)

    @property
    def active_requests(self) -> list[Any]:
        return list(self._progress)

    def _register(self, action: str, handler: Handler) -> None:
        async def guarded(message: dict[str, Any]) -> dict[str, Any]:
            try:
                return await handler(message)
            except ValidationError as e:
                logger.error(f"{action}: invalid request, {e.error_count()} validation error(s)")
                return {"success": False, "error": f"Invalid {action} request: {_first_error(e)}"}
            except SummaryBridgeError as e:
                logger.error(f"{action} failed: [{e.code}] {e.message}")
                return {"success": False, "error": e.message}

        self._router.register(action, guarded)

    def _invoker_for(self, api_key: Optional[str], model: Optional[str]) -> ModelInvoker:
        if self._invoker is not None:
            return self._invoker
        return build_invoker(self._config, api_key=api_key, model=model)

    async def _with_progress(self, request_id: Any, work: Callable[[ProgressChannel], Awaitable[T]]) -> T:
        channel = ProgressChannel(request_id)
        self._progress[request_id] = channel
        pump = asyncio.ensure_future(self._pump(channel))
        try:
            return await work(channel)
        finally:
            channel.close()
            await pump
            if self._progress.get(request_id) is channel:
                del self._progress[request_id]

    async def _pump(self, channel: ProgressChannel) -> None:
        async for event in channel:
            logger.debug(f"Progress: {event.progress.stage.value} - {event.progress.message}")
            await self._router.send(event.to_wire())
        if channel.dropped:
            logger.debug(f"Dropped {channel.dropped} progress event(s) for requestId={channel.request_id!r}")

    async def handle_generate_summary(self, message: dict[str, Any]) -> dict[str, Any]:
        request = SummaryRequest.model_validate(message)
        if not request.transcript.strip():
            raise InvalidRequestError("Transcript is required")
        logger.info(f"Received {request.content_type} content: {len(request.transcript)} characters, "
                    f"creator comments: {len(request.creator_comments)}, "
                    f"viewer comments: {len(request.viewer_comments)}, links: {len(request.links)}")
        if request.custom_instructions:
            logger.info("Using custom analysis instructions")

        invoker = self._invoker_for(request.api_key, request.model)
        parsed = await self._with_progress(
            message.get("requestId"), lambda progress: summarize(request, invoker, progress),
        )
        return {"success": True, **parsed.to_wire()}

    async def handle_follow_up(self, message: dict[str, Any]) -> dict[str, Any]:
        request = FollowUpRequest.model_validate(message)
        if not request.transcript.strip():
            raise InvalidRequestError("Transcript is required")
        if not request.query.strip():
            raise InvalidRequestError("Query is required")
        logger.info(f"Processing follow-up query: {request.query[:50]}... "
                    f"({len(request.existing_learnings)} existing learnings)")

        invoker = self._invoker_for(request.api_key, request.model)
        result = await self._with_progress(
            message.get("requestId"), lambda progress: follow_up(request, invoker, progress),
        )
        return {"success": True, **result.to_wire()}

    async def handle_save_to_notes(self, message: dict[str, Any]) -> dict[str, Any]:
        request = SaveToNotesRequest.model_validate(message)
        if not request.folder or not request.title or not request.summary:
            raise InvalidRequestError("Missing required fields for saving to Notes")
        logger.info(f"Saving to notes folder: {request.folder}"
                    + (f" (noteId: {request.note_id})" if request.note_id else ""))

        try:
            note = await self._notes.save_note(request)
        except SummaryBridgeError:
            raise
        except Exception as e:
            raise SummaryBridgeError("notes_error", f"Failed to save note: {e}") from e
        verb = "Created" if note.created else "Updated"
        logger.info(f"{verb} note (noteId: {note.note_id})")

        reminders = 0
        if request.action_items:
            try:
                reminders = await self._notes.create_reminders(
                    request.folder, request.title, request.url, request.action_items,
                )
            except Exception as e:
                # The note is saved; missing reminders do not fail the request
                logger.warning(f"Failed to create reminders: {e}")

        summary = f'{verb} note in "{request.folder}"'
        if reminders:
            summary += f" and created {reminders} reminder{'s' if reminders > 1 else ''}"
        return {
            "success": True,
            "created": note.created,
            "noteId": note.note_id,
            "remindersCreated": reminders,
            "message": summary,
        }

    async def handle_list_folders(self, message: dict[str, Any]) -> dict[str, Any]:
        try:
            folders = await self._notes.list_folders()
        except SummaryBridgeError:
            raise
        except Exception as e:
            raise SummaryBridgeError("notes_error", f"Failed to list folders: {e}") from e
        logger.info(f"Found {len(folders)} folders")
        return {"success": True, "folders": folders}

    async def handle_check_auth(self, message: dict[str, Any]) -> dict[str, Any]:
        api_key = message.get("apiKey") or self._config.api_key
        status = await asyncio.to_thread(
            check_auth_status, api_key, self._token_loader,
            lambda: find_claude_command(self._config.cli_command),
        )
        return {"success": True, **status}


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    location = ".".join(str(part) for part in err.get("loc", ())) or "request"
    return f"{location}: {err.get('msg', 'invalid value')}"


async def run_host(
    config: HostConfig,
    channel: Optional[StdioChannel] = None,
    notes: Optional[NotesAutomation] = None,
) -> None:
    """Serve native messaging requests until the browser closes stdin."""
    channel = channel or StdioChannel()
    await channel.connect()
    router = MessageRouter(channel.send)
    BridgeHost(router, config, notes=notes)
    logger.info("Native messaging host started")
    try:
        await router.serve(channel.frames())
    finally:
        await channel.disconnect()
        logger.info("Native messaging host stopped")
