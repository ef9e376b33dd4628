"""Configuration schema for agent-deck."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

from agent_deck.hooks.listener import DEFAULT_MAX_LINE_BYTES, default_socket_path


class PtyConfig(BaseModel):
    """Pseudo-terminal defaults for new panes."""

    shell: str = ""
    backend: str = "pyte"
    scrollback_lines: int = 10_000
    terminate_grace_s: float = 1.0
    default_rows: int = 24
    default_columns: int = 80
    output_buffer_bytes: int = 256 * 1024

    @field_validator("default_rows", "default_columns")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("terminal geometry must be positive")
        return value


class HooksConfig(BaseModel):
    """Hook event socket settings."""

    socket_path: str = ""
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES

    @property
    def resolved_socket_path(self) -> Path:
        """Socket path, falling back to the temp-directory convention."""
        value = (self.socket_path or "").strip()
        if value:
            return Path(value).expanduser()
        return default_socket_path()


class UIConfig(BaseModel):
    """Dashboard configuration."""

    tick_interval_s: float = 0.05
    layout: str = "grid"
    max_hook_events_per_tick: int = 256


class ProvidersConfig(BaseModel):
    """Agent provider defaults."""

    default: str = "claude"
    command_overrides: dict[str, str] = Field(default_factory=dict)


class Config(BaseSettings):
    """Root configuration for agent-deck."""

    pty: PtyConfig = Field(default_factory=PtyConfig)
    hooks: HooksConfig = Field(default_factory=HooksConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    state_path: str = "~/.agent-deck/state.json"
    log_level: str = "INFO"

    @property
    def state_file(self) -> Path:
        """Get expanded state file path."""
        return Path(self.state_path).expanduser()

    model_config = ConfigDict(
        env_prefix="AGENT_DECK_",
        env_nested_delimiter="__",
        extra="ignore",
    )
