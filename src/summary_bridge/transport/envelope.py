"""
Message construction and parsing for frame bodies.
"""

import json
import re
from typing import Any, Optional

from summary_bridge.errors import InvalidRequestError

_REQUEST_ID_RE = re.compile(r'"requestId"\s*:\s*("(?:[^"\\]|\\.)*"|-?\d+)')


def parse_message(body: bytes) -> dict[str, Any]:
    """Decode a frame body into a request mapping."""
    try:
        message = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidRequestError(f"Invalid message format: {e}")
    if not isinstance(message, dict):
        raise InvalidRequestError(f"Invalid message format: expected an object, got {type(message).__name__}")
    return message


def recover_request_id(body: bytes) -> Optional[Any]:
    """Best-effort requestId lookup in a body that failed to parse."""
    match = _REQUEST_ID_RE.search(body.decode("utf-8", errors="replace"))
    if not match:
        return None
    try:
        return json.loads(match.group(1))
    except json.JSONDecodeError:
        return None


def build_response(request_id: Any, payload: dict[str, Any]) -> dict[str, Any]:
    response = dict(payload)
    if request_id is not None:
        response["requestId"] = request_id
    response.setdefault("success", True)
    return response


def build_failure(request_id: Any, error: str) -> dict[str, Any]:
    response: dict[str, Any] = {"success": False, "error": error}
    if request_id is not None:
        response["requestId"] = request_id
    return response
