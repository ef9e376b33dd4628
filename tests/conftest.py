"""Shared pytest fixtures for agent-deck tests."""

import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock

import pytest

from agent_deck.config.schema import Config
from agent_deck.instances.engine import AgentStateEngine
from agent_deck.instances.state import InstancePane
from agent_deck.runtime import PtySession


@pytest.fixture
def short_tmp_dir() -> Generator[Path, None, None]:
    """
    Short temporary directory for Unix socket paths.

    pytest's tmp_path can exceed the ~100 byte AF_UNIX path limit.
    """
    path = Path(tempfile.mkdtemp(prefix="ad-", dir="/tmp"))
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def socket_path(short_tmp_dir: Path) -> Path:
    return short_tmp_dir / "hooks.sock"


@pytest.fixture
def config() -> Config:
    cfg = Config()
    cfg.pty.terminate_grace_s = 0.5
    return cfg


@pytest.fixture
def engine(config: Config) -> Generator[AgentStateEngine, None, None]:
    eng = AgentStateEngine(config=config)
    yield eng
    eng.shutdown()


@pytest.fixture
def session_mock() -> MagicMock:
    """
    Mock PtySession that produces no output and stays open.

    Returns:
        MagicMock with poll_output and exit_status configured
    """
    session = MagicMock(spec=PtySession)
    session.poll_output.return_value = ([], False)
    session.exit_status = 0
    return session


@pytest.fixture
def tracked_pane(engine: AgentStateEngine, tmp_path: Path) -> InstancePane:
    """A pane bound to a task id, registered with the engine."""
    pane = InstancePane(working_directory=tmp_path, task_id=uuid.uuid4(), name="tracked")
    engine.collection.add(pane)
    return pane
