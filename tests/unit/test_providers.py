"""Provider command lines and generated hook files."""

import json
import uuid
from pathlib import Path

import pytest

from agent_deck.providers import PROVIDERS, get_provider, notify_command, write_generated_files

WORKDIR = Path("/tmp/test")


def test_registry_contains_all_providers():
    assert set(PROVIDERS) == {"claude", "amp", "gemini", "opencode"}


def test_get_provider_is_case_insensitive():
    assert get_provider(" Claude ").command == "claude"
    with pytest.raises(ValueError, match="Unknown provider"):
        get_provider("copilot")


def test_build_command_direct_prompt():
    command = get_provider("claude").build_command("Fix the bug")
    assert command.program == "claude"
    assert command.arguments == ["Fix the bug"]


def test_build_command_flag_prompt():
    command = get_provider("opencode").build_command("Fix the bug")
    assert command.program == "opencode"
    assert command.arguments == ["--prompt", "Fix the bug"]


def test_build_command_empty_prompt():
    assert get_provider("amp").build_command("").arguments == []


def test_command_overrides(monkeypatch):
    spec = get_provider("gemini")
    monkeypatch.setenv("AGENT_DECK_GEMINI_CMD", "/opt/gemini")
    assert spec.build_command().program == "/opt/gemini"
    assert spec.build_command(override="gem2").program == "gem2"


def test_notify_command():
    task_id = uuid.UUID(int=1)
    assert notify_command("end", task_id) == f"agent-deck notify end --worktree-id {task_id}"


def test_claude_settings():
    task_id = uuid.uuid4()
    files = get_provider("claude").build_files(task_id, WORKDIR)
    assert [f.path for f in files] == [WORKDIR / ".claude" / "settings.local.json"]
    hooks = json.loads(files[0].content)["hooks"]
    assert set(hooks) == {"UserPromptSubmit", "PermissionRequest", "Stop"}
    assert hooks["PermissionRequest"][0]["matcher"] == "*"
    assert hooks["Stop"][0]["hooks"][0]["command"] == notify_command("end", task_id)


def test_amp_settings():
    task_id = uuid.uuid4()
    files = get_provider("amp").build_files(task_id, WORKDIR)
    assert files[0].path == WORKDIR / ".amp" / "settings.json"
    hooks = json.loads(files[0].content)["amp.hooks"]
    assert [hook["on"]["event"] for hook in hooks] == ["tool:pre-execute", "tool:post-execute"]
    assert str(task_id) in files[0].content


def test_gemini_settings():
    task_id = uuid.uuid4()
    files = get_provider("gemini").build_files(task_id, WORKDIR)
    assert files[0].path == WORKDIR / ".gemini" / "settings.json"
    hooks = json.loads(files[0].content)["hooks"]
    assert hooks["SessionStart"][0]["command"] == notify_command("start", task_id)


def test_opencode_plugin():
    task_id = uuid.uuid4()
    files = get_provider("opencode").build_files(task_id, WORKDIR)
    assert files[0].path == WORKDIR / ".opencode" / "plugin" / "agent-deck.js"
    content = files[0].content
    assert f'"{task_id}"' in content
    assert "session.idle" in content
    assert '"agent-deck"' in content


def test_write_generated_files(tmp_path):
    files = get_provider("opencode").build_files(uuid.uuid4(), tmp_path)
    written = write_generated_files(files)
    assert written == [tmp_path / ".opencode" / "plugin" / "agent-deck.js"]
    assert written[0].read_text(encoding="utf-8") == files[0].content
