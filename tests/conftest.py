"""Pytest configuration and fixtures for todo-agent tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Any, Sequence

import pytest

from todo_agent.config import Settings
from todo_agent.llm.base import ModelGateway
from todo_agent.llm.models import ConversationTurn, RawModelResponse, ToolDefinition
from todo_agent.store import TodoStore
from todo_agent.tools import create_todo_registry


class ScriptedGateway(ModelGateway):
    """Gateway that replays canned responses and records every request.

    Each scripted item is a string (returned as text), a RawModelResponse,
    or an exception to raise. An exhausted script yields empty text.
    """

    provider = "scripted"

    def __init__(self, responses: Sequence[Any] = ()):
        self.model = "scripted-model"
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def generate(
        self,
        history: Sequence[ConversationTurn],
        tools: Sequence[ToolDefinition],
        system_instruction: str,
        latest_message: str,
    ) -> RawModelResponse:
        self.calls.append({
            "history": list(history),
            "tools": list(tools),
            "system_instruction": system_instruction,
            "latest_message": latest_message,
        })
        if not self.responses:
            return RawModelResponse(text="")

        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, RawModelResponse):
            return item
        return RawModelResponse(text=item)

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def temp_data_dir():
    """Create a temporary data directory for testing."""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def test_settings(temp_data_dir):
    """Create test settings with isolated data directory."""
    return Settings(
        todo_data_dir=temp_data_dir,
        ollama_host="http://localhost:11434",
        ollama_model="qwen3:30b-a3b",
        todo_log_level="DEBUG",
    )


@pytest.fixture
async def todo_store(temp_data_dir):
    """Initialized store backed by a temporary SQLite file."""
    store = TodoStore(temp_data_dir / "todos.db")
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def registry(todo_store):
    """Registry holding the six todo operations over ``todo_store``."""
    return create_todo_registry(todo_store)


@pytest.fixture
def scripted_gateway():
    """Factory for ScriptedGateway instances."""
    return ScriptedGateway
