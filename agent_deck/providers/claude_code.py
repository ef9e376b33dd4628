"""Claude Code hook settings."""

from __future__ import annotations

import json
import uuid
from pathlib import Path

from agent_deck.providers.base import GeneratedFile, ProviderSpec, notify_command


def generate_files(task_id: uuid.UUID, working_directory: Path) -> list[GeneratedFile]:
    settings = {
        "includeCoAuthoredBy": False,
        "hooks": {
            "UserPromptSubmit": [
                {"hooks": [{"type": "command", "command": notify_command("start", task_id)}]},
            ],
            "PermissionRequest": [
                {
                    "matcher": "*",
                    "hooks": [{"type": "command", "command": notify_command("permission", task_id)}],
                },
            ],
            "Stop": [
                {"hooks": [{"type": "command", "command": notify_command("end", task_id)}]},
            ],
        },
    }
    return [
        GeneratedFile(
            path=working_directory / ".claude" / "settings.local.json",
            content=json.dumps(settings, indent=2),
        )
    ]


SPEC = ProviderSpec(
    key="claude",
    name="Claude Code",
    command="claude",
    env_override="AGENT_DECK_CLAUDE_CMD",
    generate_files=generate_files,
)
