"""End-to-end tests for the bridge host with fake backends and notes."""

import json

import pytest

from summary_bridge.backends import ModelBackend
from summary_bridge.bridge import BridgeHost
from summary_bridge.config import HostConfig
from summary_bridge.errors import ModelUnavailableError
from summary_bridge.invoker import ModelInvoker
from summary_bridge.models.messages import NoteResult, ProgressStage
from summary_bridge.notes import NotesAutomation
from summary_bridge.router import MessageRouter

MODEL_TEXT = """SUMMARY:
A video about testing.

KEY LEARNINGS:
- Tests catch regressions

ACTION ITEMS:
- Write one test today

RELEVANT LINKS:
- 1. The official docs
"""


class ScriptedBackend(ModelBackend):
    name = "scripted"

    def __init__(self, text=MODEL_TEXT, error=None):
        self.text = text
        self.error = error
        self.prompts = []

    async def complete(self, prompt, progress):
        self.prompts.append(prompt)
        progress.emit(ProgressStage.SENDING, "Sending to Claude...", chars=len(prompt))
        if self.error:
            raise self.error
        progress.emit(ProgressStage.PROCESSING, "Processing response...", chars=len(self.text))
        return self.text


class RecordingNotes(NotesAutomation):
    def __init__(self, reminders_error=None):
        self.saved = []
        self.reminders = []
        self.reminders_error = reminders_error

    async def save_note(self, request):
        self.saved.append(request)
        return NoteResult(created=request.note_id is None, note_id=request.note_id or "note-1")

    async def list_folders(self):
        return ["Notes", "Summaries"]

    async def create_reminders(self, list_name, title, url, action_items):
        if self.reminders_error:
            raise self.reminders_error
        self.reminders.extend(action_items)
        return len(action_items)


class Sink:
    def __init__(self):
        self.sent = []

    async def __call__(self, payload):
        self.sent.append(payload)


def make_host(backend=None, notes=None, **config):
    sink = Sink()
    router = MessageRouter(sink)
    host = BridgeHost(
        router,
        HostConfig(**config),
        invoker=ModelInvoker([backend or ScriptedBackend()]),
        notes=notes,
        token_loader=lambda: None,
    )
    return host, router, sink


def body(payload) -> bytes:
    return json.dumps(payload).encode("utf-8")


class TestGenerateSummary:
    @pytest.mark.asyncio
    async def test_progress_then_result(self):
        backend = ScriptedBackend()
        host, router, sink = make_host(backend)
        await router.dispatch(body({
            "action": "generateSummary",
            "requestId": "req-42",
            "title": "Testing 101",
            "transcript": "Today we talk about tests.",
            "descriptionLinks": [{"text": "Docs", "url": "https://docs.example.com"}],
        }))

        *progress, final = sink.sent
        assert progress
        assert all(event["type"] == "progress" and event["requestId"] == "req-42" for event in progress)
        stages = [event["progress"]["stage"] for event in progress]
        assert stages[0] == "preparing"
        assert stages[-2:] == ["parsing", "complete"]

        assert final["success"] is True
        assert final["requestId"] == "req-42"
        assert final["summary"] == "A video about testing."
        assert final["keyLearnings"] == ["Tests catch regressions"]
        assert final["actionItems"] == ["Write one test today"]
        assert final["relevantLinks"] == [
            {"url": "https://docs.example.com", "text": "Docs", "reason": "The official docs"},
        ]
        assert "1. Docs: https://docs.example.com" in backend.prompts[0]
        assert host.active_requests == []

    @pytest.mark.asyncio
    async def test_custom_instructions_and_template(self):
        backend = ScriptedBackend(text="OVERVIEW:\nShort.\n\nKEY LEARNINGS:\n- One\n")
        host, router, sink = make_host(backend)
        await router.dispatch(body({
            "action": "generateSummary",
            "requestId": 1,
            "transcript": "Body",
            "contentType": "article",
            "customInstructions": "Only list the tools",
            "template": [
                {"id": "summary", "label": "Overview", "enabled": True, "format": "paragraphs"},
                {"id": "key_learnings", "label": "Key Learnings", "enabled": True, "format": "bullets"},
            ],
        }))
        final = sink.sent[-1]
        assert final["summary"] == "Short."
        assert "Only list the tools" in backend.prompts[0]
        assert "OVERVIEW:" in backend.prompts[0]

    @pytest.mark.asyncio
    async def test_null_like_counts_accepted(self):
        host, router, sink = make_host()
        await router.dispatch(body({
            "action": "generateSummary",
            "requestId": 15,
            "transcript": "Body",
            "viewerComments": [{"text": "A viewer comment whose like count was lost", "likes": None}],
        }))
        assert sink.sent[-1]["success"] is True

    @pytest.mark.asyncio
    async def test_missing_transcript(self):
        host, router, sink = make_host()
        await router.dispatch(body({"action": "generateSummary", "requestId": 3, "title": "x"}))
        assert sink.sent == [{"success": False, "error": "Transcript is required", "requestId": 3}]

    @pytest.mark.asyncio
    async def test_model_failure_is_single_failure_response(self):
        backend = ScriptedBackend(error=ModelUnavailableError("Claude CLI not found"))
        host, router, sink = make_host(backend)
        await router.dispatch(body({"action": "generateSummary", "requestId": 4, "transcript": "Body"}))
        final = sink.sent[-1]
        assert final == {"success": False, "error": "Claude CLI not found", "requestId": 4}
        assert all(event.get("type") == "progress" for event in sink.sent[:-1])

    @pytest.mark.asyncio
    async def test_invalid_template(self):
        host, router, sink = make_host()
        await router.dispatch(body({
            "action": "generateSummary",
            "requestId": 5,
            "transcript": "Body",
            "template": [{"id": "a", "label": "A"}, {"id": "a", "label": "B"}],
        }))
        [final] = sink.sent
        assert final["success"] is False
        assert final["error"].startswith("Invalid generateSummary request")


class TestFollowUp:
    @pytest.mark.asyncio
    async def test_classified_items(self):
        backend = ScriptedBackend(text='{"items": [{"type": "insight", "text": "Fact"}, '
                                       '{"type": "action", "text": "Do it"}]}')
        host, router, sink = make_host(backend)
        await router.dispatch(body({
            "action": "followUp",
            "requestId": 6,
            "title": "T",
            "transcript": "Body",
            "query": "What tools?",
            "existingLearnings": ["Known fact"],
        }))
        final = sink.sent[-1]
        assert final == {"success": True, "insights": ["Fact"], "actions": ["Do it"], "requestId": 6}
        assert "Known fact" in backend.prompts[0]

    @pytest.mark.asyncio
    async def test_query_required(self):
        host, router, sink = make_host()
        await router.dispatch(body({"action": "followUp", "requestId": 7, "transcript": "Body"}))
        assert sink.sent[-1]["error"] == "Query is required"


class TestNotes:
    @pytest.mark.asyncio
    async def test_save_creates_reminders(self):
        notes = RecordingNotes()
        host, router, sink = make_host(notes=notes)
        await router.dispatch(body({
            "action": "saveToNotes",
            "requestId": 8,
            "folder": "Summaries",
            "videoTitle": "Testing 101",
            "videoUrl": "https://youtube.com/watch?v=abc",
            "summary": "A video about testing.",
            "actionItems": ["Write one test", {"text": "Run CI", "dueDate": "2026-11-01"}],
        }))
        final = sink.sent[-1]
        assert final["success"] is True
        assert final["created"] is True
        assert final["remindersCreated"] == 2
        assert final["message"] == 'Created note in "Summaries" and created 2 reminders'
        assert notes.saved[0].title == "Testing 101"
        assert notes.reminders[1].due_date == "2026-11-01"

    @pytest.mark.asyncio
    async def test_reminder_failure_is_not_fatal(self):
        notes = RecordingNotes(reminders_error=RuntimeError("Reminders access denied"))
        host, router, sink = make_host(notes=notes)
        await router.dispatch(body({
            "action": "saveToNotes", "requestId": 9, "folder": "Notes", "title": "T",
            "summary": "S", "noteId": "note-7", "actionItems": ["Do it"],
        }))
        final = sink.sent[-1]
        assert final["success"] is True
        assert final["created"] is False
        assert final["remindersCreated"] == 0
        assert final["message"] == 'Updated note in "Notes"'

    @pytest.mark.asyncio
    async def test_missing_fields(self):
        host, router, sink = make_host(notes=RecordingNotes())
        await router.dispatch(body({"action": "saveToNotes", "requestId": 10, "folder": "Notes"}))
        assert sink.sent[-1]["error"] == "Missing required fields for saving to Notes"

    @pytest.mark.asyncio
    async def test_notes_unavailable_by_default(self):
        host, router, sink = make_host()
        await router.dispatch(body({"action": "listFolders", "requestId": 11}))
        final = sink.sent[-1]
        assert final["success"] is False
        assert "not available" in final["error"]

    @pytest.mark.asyncio
    async def test_list_folders(self):
        host, router, sink = make_host(notes=RecordingNotes())
        await router.dispatch(body({"action": "listFolders", "requestId": 12}))
        assert sink.sent[-1] == {"success": True, "folders": ["Notes", "Summaries"], "requestId": 12}


class TestCheckAuth:
    @pytest.mark.asyncio
    async def test_api_key_from_request(self):
        host, router, sink = make_host()
        await router.dispatch(body({"action": "checkAuth", "requestId": 13, "apiKey": "sk-ant-api-1"}))
        assert sink.sent[-1] == {"success": True, "method": "api_key", "available": True, "requestId": 13}

    @pytest.mark.asyncio
    async def test_api_key_from_config(self):
        host, router, sink = make_host(api_key="sk-ant-api-2")
        await router.dispatch(body({"action": "checkAuth", "requestId": 14}))
        assert sink.sent[-1]["method"] == "api_key"


def test_registered_actions():
    host, router, sink = make_host()
    assert router.actions == ["checkAuth", "followUp", "generateSummary", "listFolders", "saveToNotes"]
