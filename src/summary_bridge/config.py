"""
Host configuration, persisted as JSON in ~/.summary-bridge/config.json.

Environment variables override file values so the browser-launched host can
be pointed at a key without touching the file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".summary-bridge"
CONFIG_FILE = CONFIG_DIR / "config.json"
DEFAULT_LOG_FILE = CONFIG_DIR / "host.log"

ENV_OVERRIDES: dict[str, tuple[str, ...]] = {
    "api_key": ("SUMMARY_BRIDGE_API_KEY", "ANTHROPIC_API_KEY"),
    "model": ("SUMMARY_BRIDGE_MODEL",),
    "log_level": ("SUMMARY_BRIDGE_LOG_LEVEL",),
}


class HostConfig(BaseModel):
    api_key: Optional[str] = None
    model: str = "sonnet"
    max_tokens: int = 8192
    timeout_s: float = 120.0
    cli_command: Optional[str] = None
    log_file: Path = DEFAULT_LOG_FILE
    log_level: str = "INFO"


def read_config_file(path: Path = CONFIG_FILE) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def load_config(path: Path = CONFIG_FILE, env: Optional[Mapping[str, str]] = None) -> HostConfig:
    data = read_config_file(path)
    env = os.environ if env is None else env
    for field, names in ENV_OVERRIDES.items():
        for name in names:
            if env.get(name):
                data[field] = env[name]
                break
    try:
        return HostConfig.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid config in {path}: {e.error_count()} error(s)")
        return HostConfig()


def save_config(config: HostConfig, path: Path = CONFIG_FILE) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config.model_dump_json(indent=2, exclude_defaults=True))
