"""Gateway abstraction over LLM providers.

A gateway submits one request (system instruction, tool definitions,
conversation history and the latest message) and hands back the raw
response. It never interprets the text; that is the parser's job.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from todo_agent.llm.models import ConversationTurn, RawModelResponse, ToolDefinition


# =============================================================================
# Exceptions
# =============================================================================


class ProviderError(Exception):
    """Base exception for failed model calls."""

    pass


class ProviderConnectionError(ProviderError):
    """Raised when the provider cannot be reached or times out."""

    pass


class ProviderConfigurationError(ProviderError):
    """Raised when a gateway is missing required configuration."""

    pass


class ProviderModelNotFoundError(ProviderError):
    """Raised when the requested model is not available."""

    pass


class ProviderAPIError(ProviderError):
    """Raised when the provider API returns an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderResponseError(ProviderError):
    """Raised when the provider answers with a body we cannot read."""

    pass


# =============================================================================
# Gateway
# =============================================================================


class ModelGateway(ABC):
    """One blocking call to an LLM provider per generate()."""

    #: Human-readable provider name, used in logs and the CLI
    provider: str = "unknown"

    model: str

    @abstractmethod
    async def generate(
        self,
        history: Sequence[ConversationTurn],
        tools: Sequence[ToolDefinition],
        system_instruction: str,
        latest_message: str,
    ) -> RawModelResponse:
        """Submit the conversation and return the model's raw response.

        Args:
            history: Session turns so far, oldest first
            tools: Operation descriptors the model may call
            system_instruction: Behavioral contract for the model
            latest_message: Message to send as the newest user input

        Returns:
            RawModelResponse: Text and optional structured function call

        Raises:
            ProviderError: If the call fails for any reason
        """

    @abstractmethod
    async def health_check(self) -> bool:
        """Check that the provider is reachable.

        Raises:
            ProviderError: If it is not
        """

    async def close(self) -> None:
        """Release network resources."""

    async def __aenter__(self) -> "ModelGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def request_turns(
    history: Sequence[ConversationTurn],
    latest_message: str,
) -> list[ConversationTurn]:
    """Build the turn list to send, ending with ``latest_message``.

    On the first iteration of a user turn the history already ends with
    that same user message; it is sent once, not twice.
    """
    turns = list(history)
    if turns and turns[-1].role == "user" and turns[-1].content == latest_message:
        return turns
    turns.append(ConversationTurn.user(latest_message))
    return turns
