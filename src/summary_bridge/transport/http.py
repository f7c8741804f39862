"""
HTTP client for the Anthropic Messages API.
"""

from typing import Any, Optional

import httpx

from summary_bridge import __version__
from summary_bridge.errors import ApiError, ModelTimeoutError

DEFAULT_BASE_URL = "https://api.anthropic.com"
ANTHROPIC_API_VERSION = "2023-06-01"
OAUTH_BETA = "oauth-2025-04-20"
OAUTH_SYSTEM_PROMPT = "You are Claude Code, Anthropic's official CLI for Claude."


def build_request_body(prompt: str, model: str, max_tokens: int, using_oauth: bool) -> dict[str, Any]:
    body: dict[str, Any] = {
        "model": model,
        "max_tokens": max_tokens,
        "messages": [{"role": "user", "content": prompt}],
    }
    # OAuth tokens are only accepted alongside the CLI's system prompt
    if using_oauth:
        body["system"] = OAUTH_SYSTEM_PROMPT
    return body


class AnthropicHttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "User-Agent": f"summary-bridge/{__version__}",
                "Accept": "application/json",
                "anthropic-version": ANTHROPIC_API_VERSION,
            },
            timeout=timeout,
            transport=transport,
        )

    @staticmethod
    def _auth_headers(token: str, using_oauth: bool) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if using_oauth:
            headers["Authorization"] = f"Bearer {token}"
            headers["anthropic-beta"] = OAUTH_BETA
            headers["anthropic-dangerous-direct-browser-access"] = "true"
            headers["X-App"] = "summary-bridge"
        else:
            headers["x-api-key"] = token
        return headers

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and isinstance(data.get("error"), dict) and data["error"].get("message"):
            return data["error"]["message"]
        return f"Anthropic API error: {resp.status_code}"

    @staticmethod
    def extract_text(data: Any) -> str:
        """Join the text blocks of a Messages API response."""
        blocks = data.get("content") if isinstance(data, dict) else None
        texts = [b.get("text", "") for b in blocks or [] if isinstance(b, dict) and b.get("type") == "text"]
        text = "\n".join(t for t in texts if t)
        if not text:
            raise ApiError("No text content in API response")
        return text

    async def create_message(self, body: dict[str, Any], token: str, using_oauth: bool) -> dict[str, Any]:
        try:
            resp = await self._client.post("/v1/messages", json=body, headers=self._auth_headers(token, using_oauth))
        except httpx.TimeoutException:
            raise ModelTimeoutError(f"Anthropic API request timed out ({self._timeout:g}s)", self._timeout)
        except httpx.HTTPError as e:
            raise ApiError(f"Network error: {e}")
        if resp.status_code >= 400:
            raise ApiError(self._error_message(resp), status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(f"Failed to parse API response: {e}")

    async def close(self) -> None:
        await self._client.aclose()
