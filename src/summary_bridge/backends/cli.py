"""
Local Claude CLI backend.

The prompt goes to the CLI's stdin, which is then closed; stdout is the
answer. The process never outlives ``complete()``: on timeout, error or
cancellation it is killed and reaped.
"""

import asyncio
import logging
import os
import shutil
from typing import Optional, Sequence

from summary_bridge.backends.base import ModelBackend
from summary_bridge.errors import ModelTimeoutError, ModelUnavailableError, NonZeroExitError
from summary_bridge.models.messages import ProgressStage
from summary_bridge.progress import ProgressChannel

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 120.0
DEFAULT_ARGS = ("--print",)
READ_CHUNK_BYTES = 8192

CANDIDATE_COMMANDS = (
    "claude",
    "/usr/local/bin/claude",
    "~/.local/bin/claude",
    "/opt/homebrew/bin/claude",
    "~/.claude/local/claude",
)


def find_claude_command(explicit: Optional[str] = None) -> Optional[str]:
    candidates = [explicit] if explicit else []
    candidates += list(CANDIDATE_COMMANDS)
    for candidate in candidates:
        path = shutil.which(os.path.expanduser(candidate))
        if path:
            return path
    return None


class ClaudeCliBackend(ModelBackend):
    name = "cli"

    def __init__(
        self,
        command: Optional[str] = None,
        args: Sequence[str] = DEFAULT_ARGS,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ):
        self._command = command
        self._args = list(args)
        self._timeout_s = timeout_s
        self.last_process: Optional[asyncio.subprocess.Process] = None

    async def complete(self, prompt: str, progress: ProgressChannel) -> str:
        command = find_claude_command(self._command)
        if not command:
            raise ModelUnavailableError("Claude CLI not found. Please ensure it is installed and in your PATH.")

        logger.info(f"Using Claude command: {command}")
        progress.emit(ProgressStage.STARTING, "Starting Claude CLI...")
        try:
            proc = await asyncio.create_subprocess_exec(
                command, *self._args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env={**os.environ, "CLAUDE_CODE_HEADLESS": "1"},
            )
        except OSError as e:
            raise ModelUnavailableError(f"Failed to spawn Claude: {e}")
        self.last_process = proc

        try:
            return await asyncio.wait_for(self._converse(proc, prompt, progress), self._timeout_s)
        except asyncio.TimeoutError:
            logger.error(f"Claude CLI timed out after {self._timeout_s:g}s, killing pid {proc.pid}")
            raise ModelTimeoutError("Claude Code request timed out", self._timeout_s)
        finally:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()

    async def _converse(self, proc: asyncio.subprocess.Process, prompt: str, progress: ProgressChannel) -> str:
        prompt_sent = asyncio.Event()
        # Read while writing so a chatty child can never fill its pipes and stall us
        stdout_task = asyncio.ensure_future(self._read_stdout(proc, progress, prompt_sent))
        stderr_task = asyncio.ensure_future(proc.stderr.read())  # type: ignore[union-attr]
        try:
            progress.emit(ProgressStage.SENDING, "Sending to Claude...", chars=len(prompt))
            await self._write_prompt(proc, prompt)
            progress.emit(ProgressStage.WAITING, "Waiting for Claude to think...")
            prompt_sent.set()
            stdout_bytes, stderr_bytes = await asyncio.gather(stdout_task, stderr_task)
        finally:
            for task in (stdout_task, stderr_task):
                if not task.done():
                    task.cancel()

        returncode = await proc.wait()
        stdout = stdout_bytes.decode("utf-8", errors="replace")
        if returncode != 0:
            stderr = stderr_bytes.decode("utf-8", errors="replace").strip()
            raise NonZeroExitError(returncode, stderr or stdout.strip())
        progress.emit(ProgressStage.PROCESSING, "Processing response...", chars=len(stdout))
        return stdout

    @staticmethod
    async def _write_prompt(proc: asyncio.subprocess.Process, prompt: str) -> None:
        stdin = proc.stdin
        assert stdin is not None
        try:
            stdin.write(prompt.encode("utf-8"))
            await stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            logger.warning("Claude CLI closed its input before reading the whole prompt")
        finally:
            stdin.close()

    @staticmethod
    async def _read_stdout(proc: asyncio.subprocess.Process, progress: ProgressChannel,
                           prompt_sent: asyncio.Event) -> bytes:
        stdout = proc.stdout
        assert stdout is not None
        chunks: list[bytes] = []
        received = 0
        while True:
            chunk = await stdout.read(READ_CHUNK_BYTES)
            if not chunk:
                break
            chunks.append(chunk)
            received += len(chunk)
            if prompt_sent.is_set():
                progress.emit(ProgressStage.STREAMING, "Receiving response...", chars=received)
        return b"".join(chunks)
