"""Agent loop for the todo assistant.

This module provides the plan -> action -> observation -> output state
machine, the envelope types it consumes, and the parser that produces
them from raw model text.
"""

from todo_agent.agent.core import (
    CANCELLED_MESSAGE,
    ERROR_MESSAGE,
    MAX_ITERATIONS_MESSAGE,
    AgentError,
    AgentReply,
    TodoAgent,
    ToolCallRecord,
)
from todo_agent.agent.envelopes import (
    ActionEnvelope,
    Envelope,
    ObservationEnvelope,
    OutputEnvelope,
    PlanEnvelope,
    UnrecognizedEnvelope,
)
from todo_agent.agent.history import ConversationHistory
from todo_agent.agent.parser import ResponseParser, parse_response
from todo_agent.agent.prompts import (
    OBSERVATION_TEMPLATE,
    PROCEED_MESSAGE,
    LoopState,
    PromptBuilder,
    format_observation,
)

__all__ = [
    # Core
    "TodoAgent",
    "AgentError",
    "AgentReply",
    "ToolCallRecord",
    "MAX_ITERATIONS_MESSAGE",
    "ERROR_MESSAGE",
    "CANCELLED_MESSAGE",
    # Envelopes
    "Envelope",
    "PlanEnvelope",
    "ActionEnvelope",
    "ObservationEnvelope",
    "OutputEnvelope",
    "UnrecognizedEnvelope",
    # Parsing
    "ResponseParser",
    "parse_response",
    # Prompts and state
    "PromptBuilder",
    "LoopState",
    "PROCEED_MESSAGE",
    "OBSERVATION_TEMPLATE",
    "format_observation",
    "ConversationHistory",
]
