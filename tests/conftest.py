"""Shared pytest fixtures: fake UCI engines and bridge settings."""

import sys
from pathlib import Path
from typing import Callable, List

import pytest

from chessbridge.config import BridgeSettings
from chessbridge.models import EngineResult

from fake_engines import write_engine

# Fake engines are executable scripts with a shebang line
if sys.platform.startswith("win"):
    collect_ignore_glob = ["test_engine_process.py", "test_web_app.py", "test_cli.py"]


@pytest.fixture
def engine_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "engine"
    directory.mkdir()
    return directory


@pytest.fixture
def make_engine(engine_dir: Path) -> Callable[[str, str], Path]:
    """Write an executable fake engine into the engine directory."""

    def _make(name: str, body: str) -> Path:
        return write_engine(engine_dir / name, body)

    return _make


@pytest.fixture
def settings(engine_dir: Path) -> BridgeSettings:
    return BridgeSettings(engine_dir=engine_dir)


@pytest.fixture
def fast_settings(engine_dir: Path) -> BridgeSettings:
    """Settings whose deadlines expire quickly, for timeout tests."""
    return BridgeSettings(
        engine_dir=engine_dir,
        clock_timeout_ms=400,
        min_timeout_ms=400,
        movetime_slack_ms=0,
    )


class RecordingSession:
    """Stands in for EngineSession and records what it was asked to do."""

    def __init__(self, created: List["RecordingSession"], engine_path, side_to_move, timeout_ms):
        self.engine_path = engine_path
        self.side_to_move = side_to_move
        self.timeout_ms = timeout_ms
        self.commands: List[str] = []
        created.append(self)

    def run(self, commands: List[str]) -> EngineResult:
        self.commands = list(commands)
        return EngineResult(best_move="e2e4")


@pytest.fixture
def recorded_sessions() -> List[RecordingSession]:
    return []


@pytest.fixture
def recording_factory(recorded_sessions: List[RecordingSession]):
    def _factory(engine_path, side_to_move, timeout_ms):
        return RecordingSession(recorded_sessions, engine_path, side_to_move, timeout_ms)

    return _factory
