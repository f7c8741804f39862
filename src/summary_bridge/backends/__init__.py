"""Model backends, tried in order by ``ModelInvoker``."""

from summary_bridge.backends.base import ModelBackend
from summary_bridge.backends.api import ApiBackend
from summary_bridge.backends.cli import ClaudeCliBackend, find_claude_command

__all__ = ["ModelBackend", "ApiBackend", "ClaudeCliBackend", "find_claude_command"]
