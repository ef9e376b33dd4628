"""Provider definitions: how to launch an agent and wire its hooks."""

from __future__ import annotations

import os
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

NOTIFY_PROGRAM = "agent-deck"


class PromptStyle(str, Enum):
    """How an initial prompt is handed to the agent CLI."""

    DIRECT = "direct"
    FLAG = "flag"


@dataclass(frozen=True)
class GeneratedFile:
    path: Path
    content: str


@dataclass
class ProviderCommand:
    program: str
    arguments: list[str] = field(default_factory=list)
    environment: dict[str, str] = field(default_factory=dict)


def notify_command(event: str, task_id: uuid.UUID) -> str:
    """Shell command a provider hook runs to report ``event`` for a task."""
    return f"{NOTIFY_PROGRAM} notify {event} --worktree-id {task_id}"


@dataclass(frozen=True)
class ProviderSpec:
    """Agent CLI metadata plus its hook-file generator."""

    key: str
    name: str
    command: str
    env_override: str
    generate_files: Callable[[uuid.UUID, Path], list[GeneratedFile]]
    prompt_style: PromptStyle = PromptStyle.DIRECT
    prompt_flag: str = ""

    def resolve_command(self, override: str = "") -> str:
        """Resolve command from config override, env override or default command."""
        value = (override or os.getenv(self.env_override, "")).strip()
        return value or self.command

    def build_command(self, prompt: str = "", override: str = "") -> ProviderCommand:
        arguments: list[str] = []
        if prompt:
            if self.prompt_style == PromptStyle.FLAG:
                arguments.append(self.prompt_flag)
            arguments.append(prompt)
        return ProviderCommand(program=self.resolve_command(override), arguments=arguments)

    def build_files(self, task_id: uuid.UUID, working_directory: Path) -> list[GeneratedFile]:
        return self.generate_files(task_id, Path(working_directory))


def write_generated_files(files: list[GeneratedFile]) -> list[Path]:
    """Write hook/config files, creating parent directories.

    Errors propagate; a pane that cannot get its hooks should not start.
    """
    written: list[Path] = []
    for item in files:
        item.path.parent.mkdir(parents=True, exist_ok=True)
        item.path.write_text(item.content, encoding="utf-8")
        written.append(item.path)
        logger.debug(f"[providers] Wrote {item.path}")
    return written


def resolve_override(overrides: Optional[dict[str, str]], key: str) -> str:
    if not overrides:
        return ""
    return str(overrides.get(key, "") or "")
