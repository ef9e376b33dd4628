"""Gemini CLI hook settings."""

from __future__ import annotations

import json
import uuid
from pathlib import Path

from agent_deck.providers.base import GeneratedFile, ProviderSpec, notify_command


def generate_files(task_id: uuid.UUID, working_directory: Path) -> list[GeneratedFile]:
    settings = {
        "hooks": {
            "SessionStart": [{"command": notify_command("start", task_id)}],
            "SessionEnd": [{"command": notify_command("end", task_id)}],
        }
    }
    return [
        GeneratedFile(
            path=working_directory / ".gemini" / "settings.json",
            content=json.dumps(settings, indent=2),
        )
    ]


SPEC = ProviderSpec(
    key="gemini",
    name="Gemini CLI",
    command="gemini",
    env_override="AGENT_DECK_GEMINI_CMD",
    generate_files=generate_files,
)
