"""Shared helpers for agent-deck."""

from __future__ import annotations

import os
import re
import sys
from pathlib import Path

from loguru import logger

ANSI_FULL_RE = re.compile(
    r"\x1B[@-_][0-?]*[ -/]*[@-~]"  # CSI
    r"|\x1B\][^\x07\x1B]*(?:\x07|\x1B\\)"  # OSC
    r"|\x1BP[^\x1B]*\x1B\\"  # DCS
    r"|\x1B[()][0-9A-Za-z]"  # charset select
)


def get_data_path() -> Path:
    """Return ~/.agent-deck, creating it when missing."""
    path = Path.home() / ".agent-deck"
    path.mkdir(parents=True, exist_ok=True)
    return path


def strip_ansi(text: str) -> str:
    """Strip ANSI escape sequences and non-printable control characters."""
    cleaned = ANSI_FULL_RE.sub("", text)
    cleaned = cleaned.replace("\r\n", "\n").replace("\r", "\n")
    return "".join(ch for ch in cleaned if ch == "\n" or ch == "\t" or ord(ch) >= 32)


def configure_logging(level: str | None = None, log_file: Path | None = None, console: bool = False) -> Path:
    """Route loguru output to a rotating file.

    The dashboard owns the terminal, so stderr logging is only enabled for
    plain CLI commands (``console=True``).
    """
    resolved_level = (level or os.getenv("AGENT_DECK_LOG_LEVEL") or "INFO").upper()
    target = log_file or get_data_path() / "logs" / "agent-deck.log"
    target.parent.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        str(target),
        level=resolved_level,
        rotation="10 MB",
        retention="7 days",
        enqueue=True,
    )
    if console:
        logger.add(sys.stderr, level=resolved_level)
    return target
