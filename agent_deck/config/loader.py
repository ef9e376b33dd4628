"""Load and save agent-deck configuration."""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from agent_deck.config.schema import Config


def get_config_path() -> Path:
    """Return default config file path."""
    return Path.home() / ".agent-deck" / "config.json"


def load_config(path: Path | None = None) -> Config:
    """Load config from disk, falling back to defaults on a missing or broken file."""
    target = path or get_config_path()
    if not target.exists():
        return Config()

    try:
        payload = json.loads(target.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError("config root must be an object")
        return Config(**payload)
    except (OSError, ValueError, ValidationError) as exc:
        logger.warning(f"[config] Ignoring unreadable config at {target}: {exc}")
        return Config()


def save_config(config: Config, path: Path | None = None) -> Path:
    """Persist config to disk and return the written path."""
    target = path or get_config_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(config.model_dump(), indent=2), encoding="utf-8")
    return target
