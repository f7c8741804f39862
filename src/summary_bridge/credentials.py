"""
Credential discovery for the direct API backend.

Two-step lookup: the local Claude CLI's OAuth token (macOS keychain, then the
credentials file), else an API key supplied by the user. Tokens are passed
through unchanged.
"""

import json
import logging
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

KEYCHAIN_SERVICE = "Claude Code-credentials"
OAUTH_TOKEN_PREFIX = "sk-ant-oat"

MODEL_ALIASES = {
    "sonnet": "claude-sonnet-4-20250514",
    "opus": "claude-opus-4-20250514",
    "haiku": "claude-haiku-4-20250514",
}


def credential_paths(home: Optional[Path] = None) -> list[Path]:
    home = home or Path.home()
    return [home / ".claude" / ".credentials.json", home / ".claude" / "credentials.json"]


def _token_from(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    if data.get("oauth_token"):
        return data["oauth_token"]
    nested = data.get("claudeAiOauth")
    if isinstance(nested, dict) and nested.get("accessToken"):
        return nested["accessToken"]
    return None


def _keychain_token() -> Optional[str]:
    if sys.platform != "darwin" or not shutil.which("security"):
        return None
    try:
        result = subprocess.run(  # noqa: S603
            ["security", "find-generic-password", "-s", KEYCHAIN_SERVICE, "-w"],
            capture_output=True, text=True, timeout=5,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Keychain lookup failed: {e}")
        return None
    if result.returncode != 0 or not result.stdout.strip():
        return None
    try:
        return _token_from(json.loads(result.stdout))
    except json.JSONDecodeError:
        return None


def load_oauth_token(home: Optional[Path] = None) -> Optional[str]:
    """OAuth token of the locally installed Claude CLI, if one can be found."""
    token = _keychain_token()
    if token:
        logger.info("Loaded OAuth token from macOS Keychain")
        return token
    for path in credential_paths(home):
        try:
            token = _token_from(json.loads(path.read_text(encoding="utf-8")))
        except FileNotFoundError:
            continue
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to read {path}: {e}")
            continue
        if token:
            logger.info(f"Loaded OAuth token from {path}")
            return token
    logger.debug("No OAuth credentials found")
    return None


def is_oauth_token(token: Optional[str]) -> bool:
    return bool(token) and token.startswith(OAUTH_TOKEN_PREFIX)  # type: ignore[union-attr]


def resolve_model_name(name: Optional[str]) -> str:
    """Map ``sonnet``/``opus``/``haiku`` to full model ids; other names pass through."""
    if not name:
        return MODEL_ALIASES["sonnet"]
    return MODEL_ALIASES.get(name.lower(), name)


def check_auth_status(
    api_key: Optional[str] = None,
    token_loader: Callable[[], Optional[str]] = load_oauth_token,
    cli_finder: Optional[Callable[[], Optional[str]]] = None,
) -> dict[str, Any]:
    """Which backend a request would use: ``oauth``, ``api_key``, ``cli`` or ``none``."""
    if is_oauth_token(token_loader()):
        return {"method": "oauth", "available": True}
    if api_key:
        return {"method": "api_key", "available": True}
    if cli_finder is None:
        from summary_bridge.backends.cli import find_claude_command
        cli_finder = find_claude_command
    if cli_finder():
        return {"method": "cli", "available": True}
    return {"method": "none", "available": False}
