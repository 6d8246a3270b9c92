"""Pydantic models shared by the model gateways.

These models describe what flows into a gateway (conversation turns and
tool definitions) and what comes back (raw text plus an optional
structured function call), together with the Ollama wire format.
"""

import json
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Tool-related models
# =============================================================================


class ToolDefinition(BaseModel):
    """Provider-neutral description of a callable operation."""

    name: str = Field(..., description="Operation name as the model should emit it")
    description: str = Field(..., description="Human-readable description")
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON Schema for the operation input",
    )

    def to_ollama(self) -> dict[str, Any]:
        """Render in the OpenAI-style shape Ollama expects."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def to_gemini(self) -> dict[str, Any]:
        """Render as a Gemini function declaration."""
        return {
            "name": self.name,
            "description": self.description,
            "parametersJsonSchema": self.parameters,
        }


class FunctionCall(BaseModel):
    """A structured function call suggested by the model.

    Some providers send ``arguments`` as an object, others as a
    JSON-encoded string; both are kept as received.
    """

    name: str = Field(..., description="Name of the function to call")
    arguments: dict[str, Any] | str | None = Field(
        default=None,
        description="Arguments, possibly JSON-encoded",
    )


class ToolCall(BaseModel):
    """A tool call entry inside an Ollama assistant message."""

    id: str | None = Field(default=None, description="Unique identifier for this tool call")
    function: FunctionCall = Field(..., description="Function to call")
    type: Literal["function"] = Field(default="function", description="Type of tool call")


class RawModelResponse(BaseModel):
    """Uninterpreted output of one gateway call."""

    text: str = Field(default="", description="Free-form text produced by the model")
    function_call: FunctionCall | None = Field(
        default=None,
        description="Structured function call, when the provider returned one",
    )

    @property
    def has_function_call(self) -> bool:
        return self.function_call is not None


# =============================================================================
# Conversation models
# =============================================================================


class ConversationTurn(BaseModel):
    """One entry of a session's conversation history.

    ``tool`` turns carry the invoked function name and its result payload
    instead of text.
    """

    role: Literal["user", "model", "tool"] = Field(..., description="Who produced the turn")
    content: str = Field(default="", description="Text of user and model turns")
    name: str | None = Field(default=None, description="Function name (tool turns only)")
    result: Any = Field(default=None, description="Function result payload (tool turns only)")
    timestamp: datetime = Field(default_factory=datetime.now, description="When the turn was recorded")

    @classmethod
    def user(cls, content: str) -> "ConversationTurn":
        return cls(role="user", content=content)

    @classmethod
    def model(cls, content: str) -> "ConversationTurn":
        return cls(role="model", content=content)

    @classmethod
    def tool(cls, name: str, result: Any) -> "ConversationTurn":
        return cls(role="tool", name=name, result=result)

    def render_text(self) -> str:
        """Plain-text form used by providers without a native tool role."""
        if self.role == "tool":
            payload = json.dumps({"result": self.result}, default=str)
            return f"Result of {self.name}: {payload}"
        return self.content


# =============================================================================
# Ollama wire format
# =============================================================================


class ChatMessage(BaseModel):
    """A message in an Ollama chat request or response."""

    role: Literal["system", "user", "assistant", "tool"] = Field(
        ...,
        description="Role of the message sender",
    )
    content: str = Field(default="", description="Text content of the message")
    tool_calls: list[ToolCall] = Field(
        default_factory=list,
        description="Tool calls made by the assistant (only for assistant messages)",
    )
    tool_name: str | None = Field(
        default=None,
        description="Function whose result this message carries (tool messages only)",
    )

    @field_validator("tool_calls", mode="before")
    @classmethod
    def validate_tool_calls(cls, v: Any) -> list[Any]:
        """Ensure tool_calls is always a list."""
        if v is None:
            return []
        if isinstance(v, list):
            return v
        return [v]

    @field_validator("content", mode="before")
    @classmethod
    def validate_content(cls, v: Any) -> str:
        return v or ""

    def model_dump_ollama(self) -> dict[str, Any]:
        """Dump the message in Ollama API format."""
        result: dict[str, Any] = {
            "role": self.role,
            "content": self.content,
        }

        if self.tool_calls:
            result["tool_calls"] = [
                {
                    "function": {
                        "name": tc.function.name,
                        "arguments": tc.function.arguments or {},
                    }
                }
                for tc in self.tool_calls
            ]

        if self.tool_name:
            result["tool_name"] = self.tool_name

        return result

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(role="assistant", content=content)

    @classmethod
    def tool(cls, content: str, tool_name: str | None = None) -> "ChatMessage":
        return cls(role="tool", content=content, tool_name=tool_name)

    @classmethod
    def from_turn(cls, turn: ConversationTurn) -> "ChatMessage":
        """Convert a conversation turn to its Ollama message."""
        if turn.role == "tool":
            return cls.tool(turn.render_text(), tool_name=turn.name)
        if turn.role == "model":
            return cls.assistant(turn.content)
        return cls.user(turn.content)


class ChatRequest(BaseModel):
    """Request to the Ollama chat API."""

    model: str = Field(..., description="Model name to use")
    messages: list[ChatMessage] = Field(..., description="Conversation messages")
    tools: list[ToolDefinition] = Field(
        default_factory=list,
        description="Available tools for the LLM",
    )
    stream: bool = Field(default=False, description="Enable streaming responses")
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Model-specific options (temperature, etc.)",
    )

    def model_dump_ollama(self) -> dict[str, Any]:
        """Dump the request in Ollama API format."""
        result: dict[str, Any] = {
            "model": self.model,
            "messages": [msg.model_dump_ollama() for msg in self.messages],
            "stream": self.stream,
        }

        if self.tools:
            result["tools"] = [tool.to_ollama() for tool in self.tools]

        if self.options:
            result["options"] = self.options

        return result


class ChatResponse(BaseModel):
    """Response from the Ollama chat API."""

    model: str = Field(..., description="Model used for generation")
    message: ChatMessage = Field(..., description="Generated message")
    done: bool = Field(default=True, description="Whether generation is complete")
    created_at: datetime | None = Field(
        default=None,
        description="Timestamp of response creation",
    )
    total_duration: int | None = None
    eval_count: int | None = None
    eval_duration: int | None = None

    @property
    def has_tool_calls(self) -> bool:
        return len(self.message.tool_calls) > 0

    @property
    def tokens_per_second(self) -> float | None:
        """Calculate tokens per second for generation."""
        if self.eval_count and self.eval_duration and self.eval_duration > 0:
            return (self.eval_count / self.eval_duration) * 1_000_000_000
        return None

    def to_raw(self) -> RawModelResponse:
        """Reduce to the provider-neutral response; only the first tool call is kept."""
        function_call = self.message.tool_calls[0].function if self.has_tool_calls else None
        return RawModelResponse(text=self.message.content, function_call=function_call)
