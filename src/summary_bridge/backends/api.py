"""
Direct Anthropic API backend.

Uses the local CLI's OAuth token when one exists, otherwise the API key passed
in. Without either it reports itself unavailable so the next backend runs.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from summary_bridge.backends.base import ModelBackend
from summary_bridge.credentials import is_oauth_token, load_oauth_token, resolve_model_name
from summary_bridge.errors import ApiError, ModelTimeoutError, ModelUnavailableError
from summary_bridge.models.messages import ProgressStage
from summary_bridge.progress import ProgressChannel
from summary_bridge.transport.http import AnthropicHttpClient, build_request_body

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 8192
DEFAULT_TIMEOUT_S = 120.0


class ApiBackend(ModelBackend):
    name = "api"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        token_loader: Callable[[], Optional[str]] = load_oauth_token,
        client_factory: Optional[Callable[[], AnthropicHttpClient]] = None,
    ):
        self._api_key = api_key
        self._model = model
        self._max_tokens = max_tokens
        self._timeout_s = timeout_s
        self._token_loader = token_loader
        self._client_factory = client_factory or (lambda: AnthropicHttpClient(timeout=timeout_s))

    async def _credentials(self) -> tuple[str, bool]:
        token = await asyncio.to_thread(self._token_loader)
        using_oauth = is_oauth_token(token)
        if not token and self._api_key:
            token, using_oauth = self._api_key, False
        if not token:
            raise ModelUnavailableError(
                "No Anthropic credentials available. Set up Claude Code OAuth or configure an API key."
            )
        return token, using_oauth

    async def _request(self, client: AnthropicHttpClient, body: dict[str, Any],
                       token: str, using_oauth: bool) -> dict[str, Any]:
        try:
            return await client.create_message(body, token, using_oauth)
        except ApiError as e:
            if e.status_code != 401 or not using_oauth:
                raise
            # The CLI may have refreshed its token since we read it
            logger.warning("Got 401, reloading OAuth credentials and retrying")
            fresh = await asyncio.to_thread(self._token_loader)
            if not is_oauth_token(fresh):
                raise
            return await client.create_message(body, fresh, True)  # type: ignore[arg-type]

    async def complete(self, prompt: str, progress: ProgressChannel) -> str:
        token, using_oauth = await self._credentials()
        model = resolve_model_name(self._model)
        logger.info(f"Using {'OAuth' if using_oauth else 'API key'} auth, model: {model}")
        body = build_request_body(prompt, model, self._max_tokens, using_oauth)

        client = self._client_factory()
        try:
            progress.emit(ProgressStage.SENDING, "Sending to Claude API...", chars=len(prompt))
            progress.emit(ProgressStage.WAITING, "Waiting for Claude to think...")
            try:
                data = await asyncio.wait_for(self._request(client, body, token, using_oauth), self._timeout_s)
            except asyncio.TimeoutError:
                raise ModelTimeoutError(f"Anthropic API request timed out ({self._timeout_s:g}s)", self._timeout_s)
        finally:
            await client.close()

        text = AnthropicHttpClient.extract_text(data)
        usage = data.get("usage") if isinstance(data.get("usage"), dict) else {}
        progress.emit(ProgressStage.PROCESSING, "Processing response...",
                      chars=len(text), input_tokens=usage.get("input_tokens"))
        return text
