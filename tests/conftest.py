"""Shared test fixtures for the termbridge test suite.

Provides common fixtures used across unit tests: a controllable clock,
variable stores, sessions, a normalizer, and settings rooted in a
temporary project directory.
"""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from termbridge.config.settings import Settings
from termbridge.domain.models import ExecutionResult, SessionKey
from termbridge.evaluator.evaluator import Evaluator
from termbridge.normalizer.command import CommandNormalizer
from termbridge.store.base import session_key
from termbridge.store.memory import MemoryVariableStore


class FakeClock:
    """Callable clock whose time only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Store / Session Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> MemoryVariableStore:
    """A 60-minute TTL in-process store driven by the fake clock."""
    return MemoryVariableStore(ttl_minutes=60, clock=clock)


@pytest.fixture
def session(clock: FakeClock) -> SessionKey:
    return session_key("127.0.0.1", clock(), 300)


@pytest.fixture
def evaluator(memory_store: MemoryVariableStore) -> Evaluator:
    return Evaluator(memory_store)


# ---------------------------------------------------------------------------
# Normalizer / Settings Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def normalizer() -> CommandNormalizer:
    return CommandNormalizer()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with the project root in a temporary directory."""
    return Settings(
        tool={"project_root": str(tmp_path), "common_paths": []},
        repl={"store_path": str(tmp_path / "storage")},
    )


# ---------------------------------------------------------------------------
# Process Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def python_argv() -> list[str]:
    """Argv prefix that runs inline Python in a child process."""
    return [sys.executable, "-c"]


@pytest.fixture
def mock_console() -> AsyncMock:
    """A ConsoleDispatcher stand-in that echoes the command it was given."""
    mock = AsyncMock()

    async def call(command):
        return ExecutionResult(output=[f"ran {command.text}"])

    mock.call.side_effect = call
    return mock
