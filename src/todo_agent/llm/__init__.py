"""Model gateways for the todo agent.

This module provides the provider-neutral gateway interface, its Ollama
and Gemini implementations, and the models exchanged with them.
"""

from todo_agent.llm.base import (
    ModelGateway,
    ProviderError,
    ProviderConnectionError,
    ProviderConfigurationError,
    ProviderModelNotFoundError,
    ProviderAPIError,
    ProviderResponseError,
)
from todo_agent.llm.factory import create_gateway
from todo_agent.llm.gemini import GeminiGateway
from todo_agent.llm.models import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    ConversationTurn,
    FunctionCall,
    RawModelResponse,
    ToolCall,
    ToolDefinition,
)
from todo_agent.llm.ollama import OllamaGateway
from todo_agent.llm.tools import create_tool_definition, pydantic_to_json_schema

__all__ = [
    # Gateways
    "ModelGateway",
    "OllamaGateway",
    "GeminiGateway",
    "create_gateway",
    # Errors
    "ProviderError",
    "ProviderConnectionError",
    "ProviderConfigurationError",
    "ProviderModelNotFoundError",
    "ProviderAPIError",
    "ProviderResponseError",
    # Models
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ConversationTurn",
    "FunctionCall",
    "RawModelResponse",
    "ToolCall",
    "ToolDefinition",
    # Schema helpers
    "create_tool_definition",
    "pydantic_to_json_schema",
]
