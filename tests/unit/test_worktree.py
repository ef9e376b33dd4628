"""Branch naming and worktree list parsing."""

from pathlib import Path

import pytest

from agent_deck.worktree import generate_branch_name, managed_worktree_root, parse_worktree_list


@pytest.mark.parametrize(
    "title,expected",
    [
        ("Fix login bug", "task/fix-login-bug"),
        ("  Add OAuth2 (Google) support!! ", "task/add-oauth2-google-support"),
        ("feature/ünïcode___name", "task/feature-n-code-name"),
        ("", "task/untitled"),
        ("!!!", "task/untitled"),
    ],
)
def test_generate_branch_name(title, expected):
    assert generate_branch_name(title) == expected


def test_branch_slug_is_truncated():
    branch = generate_branch_name("word " * 40)
    slug = branch.removeprefix("task/")
    assert len(slug) <= 50
    assert not slug.endswith("-")


PORCELAIN = """\
worktree /repo
HEAD 1111111111111111111111111111111111111111
branch refs/heads/main

worktree /repo/.agent-deck/worktrees/task-fix-login
HEAD 2222222222222222222222222222222222222222
branch refs/heads/task/fix-login

worktree /repo/.agent-deck/worktrees/detached
HEAD 3333333333333333333333333333333333333333
detached

"""


def test_parse_worktree_list():
    worktrees = parse_worktree_list(PORCELAIN)
    assert [w.path for w in worktrees] == [
        Path("/repo"),
        Path("/repo/.agent-deck/worktrees/task-fix-login"),
        Path("/repo/.agent-deck/worktrees/detached"),
    ]
    assert worktrees[0].branch == "main"
    assert worktrees[1].branch == "task/fix-login"
    assert worktrees[1].head.startswith("2222")
    assert worktrees[2].branch is None
    assert worktrees[2].detached


def test_parse_bare_repository():
    worktrees = parse_worktree_list("worktree /srv/repo.git\nbare\n")
    assert len(worktrees) == 1
    assert worktrees[0].bare


def test_parse_empty_output():
    assert parse_worktree_list("") == []


def test_managed_worktree_root():
    assert managed_worktree_root(Path("/repo/.agent-deck/worktrees/task-x")) == Path("/repo")
    assert managed_worktree_root(Path("/repo/.agent-deck/worktrees")) is None
    assert managed_worktree_root(Path("/repo/src")) is None
