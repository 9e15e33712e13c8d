"""Pytest configuration and fixtures."""

import asyncio
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


class SleepRecorder:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


async def wait_for(predicate, timeout: float = 2.0) -> None:
    """Poll predicate until it is true or fail after timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def sleeper():
    """Create a recording no-op sleep."""
    return SleepRecorder()


@pytest.fixture
def memory_backend():
    """Create in-memory backend."""
    from agentmesh.storage import InMemoryBackend

    return InMemoryBackend()


@pytest.fixture
def file_backend(tmp_path):
    """Create file backend in a temporary directory."""
    from agentmesh.storage import FileBackend

    return FileBackend(tmp_path / "state")


@pytest_asyncio.fixture
async def sqlite_backend():
    """Create in-memory SQLite backend for testing."""
    from agentmesh.storage import SQLiteBackend

    backend = SQLiteBackend(":memory:")
    await backend.init()
    yield backend
    await backend.close()


@pytest.fixture
def state_store(memory_backend):
    """Create StateStore for agent 'agent1'."""
    from agentmesh.storage import StateStore

    return StateStore("agent1", memory_backend)


@pytest.fixture
def tracker():
    """Create Tracker."""
    from agentmesh.tracker import Tracker

    return Tracker()


@pytest.fixture
def mock_provider():
    """Create mock LLM provider."""
    from agentmesh.llm import MockLLMProvider

    return MockLLMProvider()


@pytest.fixture
def llm_client(mock_provider):
    """Create LLMClient over the mock provider."""
    from agentmesh.llm import LLMClient, LLMConfig

    return LLMClient(mock_provider, LLMConfig(timeout_seconds=1.0))


@pytest.fixture
def settings(tmp_path):
    """Create Settings pointing at temporary storage."""
    from agentmesh.config import Settings

    return Settings(state_dir=tmp_path / "agent_state", db_path=tmp_path / "mesh.db")
