"""Registry of supported agent providers."""

from __future__ import annotations

from agent_deck.providers import amp, claude_code, gemini, opencode
from agent_deck.providers.base import (
    GeneratedFile,
    PromptStyle,
    ProviderCommand,
    ProviderSpec,
    notify_command,
    resolve_override,
    write_generated_files,
)

PROVIDERS: dict[str, ProviderSpec] = {
    spec.key: spec for spec in (claude_code.SPEC, amp.SPEC, gemini.SPEC, opencode.SPEC)
}


def get_provider(key: str) -> ProviderSpec:
    """Get a provider definition by key."""
    value = (key or "").strip().lower()
    if value not in PROVIDERS:
        choices = ", ".join(sorted(PROVIDERS))
        raise ValueError(f"Unknown provider '{key}'. Expected one of: {choices}")
    return PROVIDERS[value]


__all__ = [
    "GeneratedFile",
    "PROVIDERS",
    "PromptStyle",
    "ProviderCommand",
    "ProviderSpec",
    "get_provider",
    "notify_command",
    "resolve_override",
    "write_generated_files",
]
