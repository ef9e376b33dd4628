"""Amp hook settings."""

from __future__ import annotations

import json
import uuid
from pathlib import Path

from agent_deck.providers.base import GeneratedFile, ProviderSpec, notify_command

COMPATIBILITY_DATE = "2025-05-13"


def _hook(hook_id: str, trigger: str, command: str) -> dict:
    return {
        "compatibilityDate": COMPATIBILITY_DATE,
        "id": hook_id,
        "on": {"event": trigger},
        "action": {"type": "run-command", "command": command},
    }


def generate_files(task_id: uuid.UUID, working_directory: Path) -> list[GeneratedFile]:
    settings = {
        "amp.hooks": [
            _hook("agent-deck-start", "tool:pre-execute", notify_command("start", task_id)),
            _hook("agent-deck-end", "tool:post-execute", notify_command("end", task_id)),
        ]
    }
    return [
        GeneratedFile(
            path=working_directory / ".amp" / "settings.json",
            content=json.dumps(settings, indent=2),
        )
    ]


SPEC = ProviderSpec(
    key="amp",
    name="Amp",
    command="amp",
    env_override="AGENT_DECK_AMP_CMD",
    generate_files=generate_files,
)
