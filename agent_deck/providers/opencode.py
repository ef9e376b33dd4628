"""OpenCode notifier plugin.

OpenCode has no declarative hooks, so we drop a small ES module plugin that
shells out to ``agent-deck notify`` on session events.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path

from agent_deck.providers.base import NOTIFY_PROGRAM, GeneratedFile, ProviderSpec, PromptStyle

PLUGIN_TEMPLATE = """\
// agent-deck notifier plugin for OpenCode
export const AgentDeckNotifier = async () => {
  const { spawn } = await import("child_process");
  const taskId = %(task_id)s;

  const notify = (type) => {
    spawn(%(program)s, ["notify", type, "--worktree-id", taskId], {
      detached: true,
      stdio: "ignore",
    }).unref();
  };

  return {
    event: async ({ event }) => {
      if (event.type === "permission.updated") {
        notify("permission");
      }
      if (event.type === "session.updated") {
        notify("start");
      }
      if (event.type === "session.idle") {
        notify("end");
      }
    },
  };
};
"""


def generate_files(task_id: uuid.UUID, working_directory: Path) -> list[GeneratedFile]:
    content = PLUGIN_TEMPLATE % {
        "task_id": json.dumps(str(task_id)),
        "program": json.dumps(NOTIFY_PROGRAM),
    }
    return [
        GeneratedFile(
            path=working_directory / ".opencode" / "plugin" / "agent-deck.js",
            content=content,
        )
    ]


SPEC = ProviderSpec(
    key="opencode",
    name="OpenCode",
    command="opencode",
    env_override="AGENT_DECK_OPENCODE_CMD",
    generate_files=generate_files,
    prompt_style=PromptStyle.FLAG,
    prompt_flag="--prompt",
)
