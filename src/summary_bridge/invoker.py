"""
Model invoker — try each backend in order until one answers.

The default order is the direct API, then the local CLI. Each backend has its
own timeout. A backend that cannot be reached hands over to the next one;
when all fail, the most informative error is raised.
"""

import logging
from typing import Optional, Sequence

from summary_bridge.backends import ApiBackend, ClaudeCliBackend, ModelBackend
from summary_bridge.config import HostConfig
from summary_bridge.errors import ModelUnavailableError, SummaryBridgeError
from summary_bridge.models.messages import ProgressStage
from summary_bridge.progress import ProgressChannel

logger = logging.getLogger(__name__)


class ModelInvoker:
    def __init__(self, backends: Sequence[ModelBackend]):
        self._backends = list(backends)

    @property
    def backends(self) -> list[ModelBackend]:
        return list(self._backends)

    async def invoke(self, prompt: str, progress: ProgressChannel) -> str:
        progress.emit(ProgressStage.PREPARING, "Preparing request...", chars=len(prompt))
        logger.info(f"Prompt length: {len(prompt)} characters")
        errors: list[SummaryBridgeError] = []
        for backend in self._backends:
            try:
                text = await backend.complete(prompt, progress)
            except SummaryBridgeError as e:
                logger.warning(f"{backend.name} backend failed: [{e.code}] {e.message}")
                errors.append(e)
                continue
            logger.info(f"Response received from {backend.name}: {len(text)} characters")
            return text

        if not errors:
            raise ModelUnavailableError("No model backend configured")
        reached = [e for e in errors if not isinstance(e, ModelUnavailableError)]
        if reached:
            raise reached[-1]
        raise ModelUnavailableError("; ".join(e.message for e in errors))


def build_invoker(config: HostConfig, api_key: Optional[str] = None, model: Optional[str] = None) -> ModelInvoker:
    """Direct API first, local CLI second. Request overrides beat config values."""
    return ModelInvoker([
        ApiBackend(
            api_key=api_key or config.api_key,
            model=model or config.model,
            max_tokens=config.max_tokens,
            timeout_s=config.timeout_s,
        ),
        ClaudeCliBackend(command=config.cli_command, timeout_s=config.timeout_s),
    ])
