"""Git worktree operations via the ``git`` command line."""

from __future__ import annotations

import re
import subprocess
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

GIT_TIMEOUT_S = 30
MAX_SLUG_LENGTH = 50
BRANCH_PREFIX = "task"
WORKTREES_DIR = Path(".agent-deck") / "worktrees"

_NON_SLUG_RE = re.compile(r"[^0-9a-z]+")


class WorktreeError(RuntimeError):
    """A git worktree operation failed."""


@dataclass(frozen=True)
class Worktree:
    path: Path
    branch: Optional[str]
    head: str = ""
    bare: bool = False
    detached: bool = False


def _git(repository: Path, *args: str) -> str:
    command = ["git", *args]
    logger.debug(f"[worktree] {' '.join(command)} in {repository}")
    try:
        result = subprocess.run(
            command,
            cwd=str(repository),
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_S,
        )
    except FileNotFoundError as exc:
        raise WorktreeError("git executable not found") from exc
    except subprocess.TimeoutExpired as exc:
        raise WorktreeError(f"git {args[0]} timed out after {GIT_TIMEOUT_S}s") from exc
    except OSError as exc:
        raise WorktreeError(f"git {args[0]} failed: {exc}") from exc
    if result.returncode != 0:
        message = (result.stderr or result.stdout).strip() or f"exit code {result.returncode}"
        raise WorktreeError(f"git {' '.join(args)}: {message}")
    return result.stdout


def is_git_repository(path: Path) -> bool:
    try:
        find_repository_root(path)
    except WorktreeError:
        return False
    return True


def find_repository_root(path: Path) -> Path:
    """Top-level directory of the repository containing ``path``."""
    path = Path(path).expanduser()
    if not path.is_dir():
        raise WorktreeError(f"Not a directory: {path}")
    output = _git(path, "rev-parse", "--show-toplevel").strip()
    if not output:
        raise WorktreeError(f"Not inside a git repository: {path}")
    return Path(output)


def generate_branch_name(title: str) -> str:
    """``task/<slug>``; the slug is lowercase alphanumerics joined by dashes."""
    slug = _NON_SLUG_RE.sub("-", (title or "").lower()).strip("-")
    slug = slug[:MAX_SLUG_LENGTH].rstrip("-") or "untitled"
    return f"{BRANCH_PREFIX}/{slug}"


def _branch_exists(repository: Path, branch: str) -> bool:
    try:
        _git(repository, "rev-parse", "--verify", "--quiet", f"refs/heads/{branch}")
    except WorktreeError:
        return False
    return True


def create_worktree(repository_root: Path, branch_name: str, task_id: Optional[uuid.UUID] = None) -> Path:
    """Create a worktree on a new branch under ``.agent-deck/worktrees``.

    When the branch already exists a short task id suffix keeps it unique.
    """
    root = Path(repository_root)
    branch = branch_name
    if _branch_exists(root, branch):
        suffix = (task_id or uuid.uuid4()).hex[:8]
        branch = f"{branch}-{suffix}"
    path = root / WORKTREES_DIR / branch.replace("/", "-")
    if path.exists():
        raise WorktreeError(f"Worktree path already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    _git(root, "worktree", "add", str(path), "-b", branch)
    logger.info(f"[worktree] Created {path} on {branch}")
    return path


def delete_worktree(repository_root: Path, worktree: Path, delete_branch: bool = False) -> None:
    """Remove a worktree, discarding local changes; optionally drop its branch too."""
    root = Path(repository_root)
    branch = None
    if delete_branch:
        target = Path(worktree).resolve()
        for entry in list_worktrees(root):
            if entry.path.resolve() == target:
                branch = entry.branch
                break
    _git(root, "worktree", "remove", "--force", str(worktree))
    logger.info(f"[worktree] Removed {worktree}")
    if branch:
        _git(root, "branch", "-D", branch)
        logger.info(f"[worktree] Deleted branch {branch}")


def managed_worktree_root(path: Path) -> Optional[Path]:
    """Repository root when ``path`` is a worktree created under ``.agent-deck/worktrees``."""
    parts = Path(path).parts
    marker = WORKTREES_DIR.parts
    for index in range(1, len(parts) - len(marker)):
        if parts[index : index + len(marker)] == marker:
            return Path(*parts[:index])
    return None


def parse_worktree_list(output: str) -> list[Worktree]:
    """Parse ``git worktree list --porcelain`` output."""
    worktrees: list[Worktree] = []
    entry: dict[str, str] = {}

    def flush() -> None:
        if "path" in entry:
            worktrees.append(
                Worktree(
                    path=Path(entry["path"]),
                    branch=entry.get("branch"),
                    head=entry.get("head", ""),
                    bare="bare" in entry,
                    detached="detached" in entry,
                )
            )
        entry.clear()

    for line in output.splitlines():
        if not line.strip():
            flush()
            continue
        key, _, value = line.partition(" ")
        if key == "worktree":
            flush()
            entry["path"] = value
        elif key == "HEAD":
            entry["head"] = value
        elif key == "branch":
            entry["branch"] = value.removeprefix("refs/heads/")
        elif key in ("bare", "detached"):
            entry[key] = "1"
    flush()
    return worktrees


def list_worktrees(repository_root: Path) -> list[Worktree]:
    return parse_worktree_list(_git(Path(repository_root), "worktree", "list", "--porcelain"))
