"""Git worktree collaborator."""

from agent_deck.worktree.operations import (
    Worktree,
    WorktreeError,
    create_worktree,
    delete_worktree,
    find_repository_root,
    generate_branch_name,
    is_git_repository,
    list_worktrees,
    managed_worktree_root,
    parse_worktree_list,
)

__all__ = [
    "Worktree",
    "WorktreeError",
    "create_worktree",
    "delete_worktree",
    "find_repository_root",
    "generate_branch_name",
    "is_git_repository",
    "list_worktrees",
    "managed_worktree_root",
    "parse_worktree_list",
]
