"""
summary-bridge error types.

Every error carries a stable ``code`` and a human-readable message; the
message is what a failed response reports in its ``error`` field.
"""

from typing import Any, Optional


class SummaryBridgeError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details


class FramingError(SummaryBridgeError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("framing_error", message, details)


class UnknownActionError(SummaryBridgeError):
    def __init__(self, action: Any):
        super().__init__("unknown_action", f"Unknown action: {action}", {"action": action})
        self.action = action


class InvalidRequestError(SummaryBridgeError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("invalid_request", message, details)


class ModelUnavailableError(SummaryBridgeError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("model_unavailable", message, details)


class ModelTimeoutError(SummaryBridgeError):
    def __init__(self, message: str, timeout_s: float):
        super().__init__("timeout", message, {"timeout_s": timeout_s})
        self.timeout_s = timeout_s


class NonZeroExitError(SummaryBridgeError):
    def __init__(self, returncode: int, output: str):
        detail = output or "No error output captured"
        super().__init__("nonzero_exit", f"Claude exited with code {returncode}. Details: {detail}",
                         {"returncode": returncode})
        self.returncode = returncode
        self.output = output


class ApiError(SummaryBridgeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("api_error", message, {"status_code": status_code} if status_code else None)
        self.status_code = status_code


class NotesUnavailableError(SummaryBridgeError):
    def __init__(self, message: str = "Notes automation is not available on this host"):
        super().__init__("notes_unavailable", message)
