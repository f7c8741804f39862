"""
summary-bridge — native messaging host for content summaries.

Receives extracted page content from a browser extension over stdin/stdout,
asks Claude (direct API, else the local CLI) for a structured summary and
returns it as JSON.
"""

__version__ = "0.1.0"

from summary_bridge.errors import (
    SummaryBridgeError,
    FramingError,
    UnknownActionError,
    InvalidRequestError,
    ModelUnavailableError,
    ModelTimeoutError,
    NonZeroExitError,
    ApiError,
    NotesUnavailableError,
)
from summary_bridge.models.template import OutputTemplate, Section, SectionKind
from summary_bridge.models.result import ContentPayload, ParsedResult, FollowUpResult
from summary_bridge.models.messages import ProgressEvent, ProgressStage, SummaryRequest
from summary_bridge.transport.framing import FrameDecoder, encode_frame
from summary_bridge.prompts import build_prompt, build_follow_up_prompt
from summary_bridge.parser import parse_response, parse_follow_up
from summary_bridge.router import MessageRouter
from summary_bridge.invoker import ModelInvoker
from summary_bridge.bridge import BridgeHost, run_host

__all__ = [
    "SummaryBridgeError",
    "FramingError",
    "UnknownActionError",
    "InvalidRequestError",
    "ModelUnavailableError",
    "ModelTimeoutError",
    "NonZeroExitError",
    "ApiError",
    "NotesUnavailableError",
    "OutputTemplate",
    "Section",
    "SectionKind",
    "ContentPayload",
    "ParsedResult",
    "FollowUpResult",
    "ProgressEvent",
    "ProgressStage",
    "SummaryRequest",
    "FrameDecoder",
    "encode_frame",
    "build_prompt",
    "build_follow_up_prompt",
    "parse_response",
    "parse_follow_up",
    "MessageRouter",
    "ModelInvoker",
    "BridgeHost",
    "run_host",
]
