"""
Bridge messages — requests from the browser side, progress events back.

Requests carry ``action`` and an opaque ``requestId``; every response and
progress event echoes that ``requestId`` unchanged.
"""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import AliasChoices, Field, field_validator

from summary_bridge.models.base import WireModel
from summary_bridge.models.result import ContentPayload
from summary_bridge.models.template import OutputTemplate


class ProgressStage(str, Enum):
    PREPARING = "preparing"
    SENDING = "sending"
    STARTING = "starting"
    WAITING = "waiting"
    STREAMING = "streaming"
    PROCESSING = "processing"
    PARSING = "parsing"
    COMPLETE = "complete"


class ProgressInfo(WireModel):
    stage: ProgressStage
    message: str
    chars: Optional[int] = None
    input_tokens: Optional[int] = None


class ProgressEvent(WireModel):
    type: Literal["progress"] = "progress"
    request_id: Any = None
    progress: ProgressInfo

    def to_wire(self) -> dict[str, Any]:
        # requestId must be echoed even when it is falsy (counters start at 0)
        return {"type": self.type, "requestId": self.request_id, "progress": self.progress.to_wire()}


class SummaryRequest(ContentPayload):
    content_type: str = "youtube_video"
    custom_instructions: Optional[str] = None
    template: Optional[OutputTemplate] = None
    api_key: Optional[str] = None
    model: Optional[str] = None

    @field_validator("custom_instructions")
    @classmethod
    def _blank_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


class FollowUpRequest(WireModel):
    title: str = ""
    transcript: str = ""
    query: str = ""
    existing_learnings: list[str] = []
    api_key: Optional[str] = None
    model: Optional[str] = None


class ActionItem(WireModel):
    text: str
    due_date: Optional[str] = None

    @classmethod
    def coerce(cls, value: Any) -> "ActionItem":
        if isinstance(value, str):
            return cls(text=value)
        return cls.model_validate(value)


class SaveToNotesRequest(WireModel):
    folder: str = ""
    title: str = Field(default="", validation_alias=AliasChoices("title", "videoTitle"))
    url: str = Field(default="", validation_alias=AliasChoices("url", "videoUrl"))
    summary: str = ""
    key_learnings: list[str] = []
    relevant_links: list[dict[str, Any]] = []
    action_items: list[ActionItem] = []
    custom_notes_html: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("customNotesHtml", "customNotes"),
    )
    note_id: Optional[str] = None

    @field_validator("action_items", mode="before")
    @classmethod
    def _strings_are_items(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [ActionItem.coerce(v) for v in value]
        return value


class NoteResult(WireModel):
    created: bool
    note_id: Optional[str] = None
