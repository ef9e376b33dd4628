"""Heuristic activity detection over raw PTY output.

Every detector is advisory and independent: one chunk can yield several
detections, misses are acceptable, and nothing here raises on odd input.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from agent_deck.utils.helpers import strip_ansi

MAX_EXCERPT_CHARS = 100
MAX_ACTIVITY_EVENTS = 100


class ActivityKind(str, Enum):
    COMMAND_EXECUTED = "command_executed"
    FILE_CHANGED = "file_changed"
    TASK_COMPLETED = "task_completed"
    ERROR_OCCURRED = "error_occurred"
    PROVIDER_NOTIFICATION = "provider_notification"


@dataclass(frozen=True)
class Detection:
    """One detector hit; ``excerpt`` is the captured text, if any."""

    kind: ActivityKind
    description: str
    excerpt: Optional[str] = None


@dataclass
class ActivityEvent:
    """A detection recorded against a pane."""

    kind: ActivityKind
    description: str
    metadata: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


_COMMAND_RE = re.compile(r"^\$\s+(.+)$", re.MULTILINE)
_FILE_VERB_RE = re.compile(r"(?:Created|Writing|Wrote|Modified|Updated)\s+(?:file\s+)?[`']?([^\s`']+)")
_FILE_REDIRECT_RE = re.compile(r">\s+([^\s]+\.(?:rs|js|ts|py|go|java|cpp|c|h))\b")
_DIFF_MARKERS = ("git diff", "modified:")
_COMPLETION_PHRASES = (
    "task complete",
    "done",
    "finished",
    "successfully completed",
    "all tests passed",
)
_ERROR_PATTERNS = (
    (re.compile(r"error:\s*(.{0,%d})" % MAX_EXCERPT_CHARS, re.IGNORECASE), "Error"),
    (re.compile(r"exception:\s*(.{0,%d})" % MAX_EXCERPT_CHARS, re.IGNORECASE), "Exception"),
    (re.compile(r"failed:\s*(.{0,%d})" % MAX_EXCERPT_CHARS, re.IGNORECASE), "Failed"),
)
_EXIT_CODE_RE = re.compile(r"exit code:?\s*([1-9]\d*)", re.IGNORECASE)
_NOTIFICATION_PATTERNS = (
    re.compile(r"claude(?:\s+code)?:\s*(.{0,%d})" % MAX_EXCERPT_CHARS, re.IGNORECASE),
    re.compile(r"agent:\s*(.{0,%d})" % MAX_EXCERPT_CHARS, re.IGNORECASE),
    re.compile(r"assistant:\s*(.{0,%d})" % MAX_EXCERPT_CHARS, re.IGNORECASE),
)


def detect_command(text: str) -> Optional[str]:
    match = _COMMAND_RE.search(text)
    if not match:
        return None
    command = match.group(1).strip()
    return command or None


def detect_file_change(text: str) -> Optional[str]:
    for pattern in (_FILE_VERB_RE, _FILE_REDIRECT_RE):
        match = pattern.search(text)
        if match:
            return match.group(1)
    if any(marker in text for marker in _DIFF_MARKERS):
        return "detected via git diff"
    return None


def detect_task_completion(text: str) -> bool:
    lowered = text.lower()
    return any(phrase in lowered for phrase in _COMPLETION_PHRASES)


def detect_error(text: str) -> Optional[tuple[str, str]]:
    """Return ``(label, excerpt)`` for the first error marker found."""
    for pattern, label in _ERROR_PATTERNS:
        match = pattern.search(text)
        if match:
            excerpt = match.group(1).strip()
            if excerpt:
                return label, excerpt
    match = _EXIT_CODE_RE.search(text)
    if match:
        return "Exit code", match.group(1)
    return None


def detect_provider_notification(text: str) -> Optional[str]:
    for pattern in _NOTIFICATION_PATTERNS:
        match = pattern.search(text)
        if match:
            excerpt = match.group(1).strip()
            if excerpt:
                return excerpt
    return None


def detect_activity(output: Union[str, bytes]) -> list[Detection]:
    """Run every detector over one chunk of output."""
    if isinstance(output, (bytes, bytearray)):
        output = bytes(output).decode("utf-8", errors="replace")
    text = strip_ansi(output)
    if not text.strip():
        return []

    detections: list[Detection] = []

    command = detect_command(text)
    if command:
        detections.append(Detection(ActivityKind.COMMAND_EXECUTED, f"Executed: {command}", command))

    changed = detect_file_change(text)
    if changed:
        detections.append(Detection(ActivityKind.FILE_CHANGED, f"Modified: {changed}", changed))

    if detect_task_completion(text):
        detections.append(Detection(ActivityKind.TASK_COMPLETED, "Task marked as complete"))

    error = detect_error(text)
    if error:
        label, excerpt = error
        if label == "Exit code":
            description = f"Process exited with error code {excerpt}"
        else:
            description = f"{label}: {excerpt}"
        detections.append(Detection(ActivityKind.ERROR_OCCURRED, description, excerpt))

    notification = detect_provider_notification(text)
    if notification:
        detections.append(Detection(ActivityKind.PROVIDER_NOTIFICATION, notification, notification))

    return detections


@dataclass
class ActivitySummary:
    """What happened in a pane since the user last looked at it."""

    since: datetime
    elapsed_seconds: int
    commands_executed: list[str] = field(default_factory=list)
    files_changed: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    notifications: list[str] = field(default_factory=list)
    tasks_completed: int = 0

    @classmethod
    def from_events(cls, events: list[ActivityEvent], since: datetime, now: Optional[datetime] = None) -> "ActivitySummary":
        summary = cls(since=since, elapsed_seconds=int(((now or datetime.now()) - since).total_seconds()))
        buckets = {
            ActivityKind.COMMAND_EXECUTED: summary.commands_executed,
            ActivityKind.FILE_CHANGED: summary.files_changed,
            ActivityKind.ERROR_OCCURRED: summary.errors,
            ActivityKind.PROVIDER_NOTIFICATION: summary.notifications,
        }
        for event in events:
            if event.kind == ActivityKind.TASK_COMPLETED:
                summary.tasks_completed += 1
            else:
                buckets[event.kind].append(event.description)
        return summary

    def format_as_text(self) -> str:
        lines = [
            "Activity Summary",
            f"Since: {self.since:%H:%M:%S} ({self.elapsed_seconds} seconds ago)",
            "",
        ]
        sections = (
            ("Commands executed", self.commands_executed),
            ("Files changed", self.files_changed),
        )
        for title, items in sections:
            if items:
                lines.append(f"{title} ({len(items)}):")
                lines.extend(f"  • {item}" for item in items)
                lines.append("")
        if self.tasks_completed:
            lines.append(f"Tasks completed: {self.tasks_completed}")
            lines.append("")
        for title, items in (("Errors", self.errors), ("Notifications", self.notifications)):
            if items:
                lines.append(f"{title} ({len(items)}):")
                lines.extend(f"  • {item}" for item in items)
                lines.append("")
        return "\n".join(lines).rstrip() + "\n"

    def format_as_summary_line(self) -> str:
        parts: list[str] = []
        if self.commands_executed:
            parts.append(f"{len(self.commands_executed)} commands")
        if self.files_changed:
            parts.append(f"{len(self.files_changed)} files changed")
        if self.tasks_completed:
            parts.append(f"{self.tasks_completed} tasks done")
        if self.errors:
            parts.append(f"{len(self.errors)} errors")
        return ", ".join(parts) if parts else "No significant activity"
