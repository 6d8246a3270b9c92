"""Tests for the system prompt and per-iteration messages."""

import pytest

from todo_agent.agent import (
    PROCEED_MESSAGE,
    LoopState,
    PromptBuilder,
    format_observation,
)
from todo_agent.agent.prompts import format_available_tools, format_signature
from todo_agent.llm.models import ToolDefinition


class TestFormatting:
    """Test prompt formatting helpers."""

    @pytest.mark.asyncio
    async def test_signature(self, registry):
        """Test rendering an operation signature."""
        definitions = {d.name: d for d in registry.describe()}

        assert format_signature(definitions["createTodo"]).startswith("- createTodo(todo: string): ")
        assert format_signature(definitions["deleteManyTodos"]).startswith(
            "- deleteManyTodos(ids: integer[]): "
        )
        assert format_signature(definitions["getAllTodos"]).startswith("- getAllTodos(): ")

    def test_available_tools_empty(self):
        """Test the tool section with no tools."""
        assert format_available_tools([]) == "No tools currently available."

    def test_observation(self):
        """Test the templated observation message."""
        message = format_observation("createTodo", {"id": 1, "todo": "buy milk"})

        assert message.startswith("Here is the observation for createTodo:\n{")
        assert '"todo": "buy milk"' in message
        assert message.endswith("Based on this, decide the next step or provide final output.")


class TestPromptBuilder:
    """Test PromptBuilder."""

    @pytest.mark.asyncio
    async def test_system_instruction_lists_every_tool(self, registry):
        """Test that all six operations and the formats are described."""
        instruction = PromptBuilder(registry.describe()).system_instruction()

        for name in registry.get_tool_names():
            assert f"- {name}(" in instruction
        assert '{"type": "plan", "plan": ' in instruction
        assert '{"type": "output", "output": ' in instruction

    @pytest.mark.asyncio
    async def test_system_instruction_is_stable(self, registry):
        """Test that the instruction does not change between calls."""
        builder = PromptBuilder(registry.describe())

        assert builder.system_instruction() == builder.system_instruction()

    def test_first_message_is_user_input(self):
        """Test the first iteration sends the user's words."""
        state = LoopState(user_input="list my todos", max_iterations=3)

        assert PromptBuilder([]).next_user_message(state) == "list my todos"

    def test_after_plan(self):
        """Test the nudge sent after a plan."""
        state = LoopState(user_input="x", max_iterations=3, last_step="plan")

        assert PromptBuilder([]).next_user_message(state) == PROCEED_MESSAGE

    def test_after_action(self):
        """Test the observation sent after an action."""
        state = LoopState(
            user_input="x",
            max_iterations=3,
            last_step="action",
            last_function="getAllTodos",
            last_observation=[],
        )

        message = PromptBuilder([]).next_user_message(state)

        assert message == format_observation("getAllTodos", [])

    def test_custom_definition(self):
        """Test a hand-written definition without parameters."""
        definition = ToolDefinition(name="ping", description="Ping")

        assert format_signature(definition) == "- ping(): Ping"


class TestLoopState:
    """Test LoopState."""

    def test_exhausted(self):
        """Test the iteration budget check."""
        state = LoopState(user_input="x", max_iterations=2)
        assert not state.exhausted

        state.iteration = 2
        assert state.exhausted
