"""System prompt and per-turn messages for the todo agent.

This module contains the behavioral contract sent as the system
instruction and the templates used to feed plans and observations back
to the model.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Literal, Sequence

from todo_agent.llm.models import ToolDefinition


SYSTEM_PROMPT_HEADER = """You are an AI TO-DO list Assistant with START, PLAN, ACTION, OBSERVATION and OUTPUT states.
Wait for the user prompt and first PLAN using the available tools.
After planning, take the ACTION with the appropriate tool and wait for the OBSERVATION based on that action.
Once you have the observations, return the OUTPUT for the user based on the start prompt and the observations.

You can manage tasks by viewing, adding, searching and deleting them.
You must strictly follow the JSON output format.

TODO DB Schema:
- "id" integer PRIMARY KEY, assigned on insert
- "todo" text NOT NULL
- "created_at" timestamp
- "updated_at" timestamp"""

SYSTEM_PROMPT_FORMAT = """Always respond with valid JSON, one object per line, in one of these formats:
{"type": "plan", "plan": "your planning thoughts"}
{"type": "action", "action": {"function": "functionName", "input": {...}}}
{"type": "observation", "observation": "result from action"}
{"type": "output", "output": "your response to user"}

Never wrap the JSON in Markdown and never add text outside the JSON objects.
After an action, stop and wait for its observation before continuing."""

PROCEED_MESSAGE = "Proceed to next step."

OBSERVATION_TEMPLATE = """Here is the observation for {function}:
{observation}.
Based on this, decide the next step or provide final output."""


def _schema_type(schema: dict[str, Any]) -> str:
    kind = schema.get("type", "any")
    if kind == "array":
        return f"{_schema_type(schema.get('items', {}))}[]"
    return str(kind)


def format_signature(tool: ToolDefinition) -> str:
    """Render ``name(arg: type, ...): description`` for the prompt."""
    properties = tool.parameters.get("properties", {})
    args = ", ".join(f"{name}: {_schema_type(prop)}" for name, prop in properties.items())
    return f"- {tool.name}({args}): {tool.description}"


def format_available_tools(tools: Sequence[ToolDefinition]) -> str:
    """Format the tool list section of the system prompt."""
    if not tools:
        return "No tools currently available."
    return "\n".join(["Available tools:", *(format_signature(tool) for tool in tools)])


def format_observation(function: str, observation: Any) -> str:
    """Format an action's result as the next message to the model."""
    return OBSERVATION_TEMPLATE.format(
        function=function,
        observation=json.dumps(observation, indent=2, default=str),
    )


@dataclass
class LoopState:
    """Mutable state of one ``process_user_input`` call."""

    user_input: str
    max_iterations: int
    iteration: int = 0
    last_step: Literal["start", "plan", "action"] = "start"
    last_function: str | None = None
    last_observation: Any = None
    tool_calls: list[Any] = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        return self.iteration >= self.max_iterations


class PromptBuilder:
    """Builds the system instruction and the message for each iteration."""

    def __init__(self, tools: Sequence[ToolDefinition]):
        self._system_instruction = "\n\n".join(
            [SYSTEM_PROMPT_HEADER, format_available_tools(tools), SYSTEM_PROMPT_FORMAT]
        )

    def system_instruction(self) -> str:
        return self._system_instruction

    def next_user_message(self, state: LoopState) -> str:
        """Message to send on the coming iteration.

        The user's own words on the first iteration, a nudge after a
        plan, and the templated observation after an action.
        """
        if state.last_step == "action" and state.last_function is not None:
            return format_observation(state.last_function, state.last_observation)
        if state.last_step == "plan":
            return PROCEED_MESSAGE
        return state.user_input
