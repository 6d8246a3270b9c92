"""Async gateway for the Ollama chat API.

This module wraps ``POST /api/chat`` with the tool definitions of the
todo agent and maps transport failures onto the ProviderError hierarchy.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from todo_agent.config import Settings, get_settings
from todo_agent.llm.base import (
    ModelGateway,
    ProviderAPIError,
    ProviderConnectionError,
    ProviderModelNotFoundError,
    ProviderResponseError,
    request_turns,
)
from todo_agent.llm.models import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    ConversationTurn,
    RawModelResponse,
    ToolDefinition,
)
from todo_agent.logging import AsyncTimer, get_logger

logger = get_logger("todo_agent.llm.ollama")


class OllamaGateway(ModelGateway):
    """Gateway to a local or remote Ollama server.

    Attributes:
        base_url: Base URL of the Ollama server
        model: Model name to use
        timeout: Request timeout in seconds
        temperature: Sampling temperature sent with every request
        max_retries: Extra attempts after a connection failure or timeout
    """

    provider = "ollama"

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        timeout: int | None = None,
        temperature: float | None = None,
        max_retries: int = 2,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the Ollama gateway.

        Args:
            base_url: Ollama server URL (defaults to settings)
            model: Model name (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
            temperature: Sampling temperature (defaults to settings)
            max_retries: Extra attempts on connection errors
            settings: Settings instance (uses global if not provided)
            http_client: Pre-built HTTP client, mainly for tests
        """
        self.settings = settings or get_settings()
        self.base_url = (base_url or self.settings.ollama_base_url).rstrip("/")
        self.model = model or self.settings.ollama_model
        self.timeout = timeout or self.settings.ollama_timeout
        self.temperature = self.settings.ollama_temperature if temperature is None else temperature
        self.max_retries = max_retries

        self._client: httpx.AsyncClient | None = http_client

    @asynccontextmanager
    async def _get_client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Get or create the HTTP client, translating httpx failures.

        Yields:
            httpx.AsyncClient: The HTTP client instance
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            )

        try:
            yield self._client
        except httpx.ConnectError as e:
            raise ProviderConnectionError(
                f"Failed to connect to Ollama at {self.base_url}. "
                f"Is Ollama running? Error: {e}"
            ) from e
        except httpx.TimeoutException as e:
            raise ProviderConnectionError(
                f"Request to Ollama timed out after {self.timeout}s. "
                f"Consider increasing OLLAMA_TIMEOUT. Error: {e}"
            ) from e
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise ProviderModelNotFoundError(
                    f"Model '{self.model}' not found. "
                    f"Run 'ollama pull {self.model}' to download it."
                ) from e
            raise ProviderAPIError(
                f"Ollama API error: {e.response.text}",
                status_code=e.response.status_code,
            ) from e
        except httpx.TransportError as e:
            raise ProviderConnectionError(f"Transport error talking to Ollama: {e}") from e

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception_type(ProviderConnectionError),
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        )

    async def health_check(self) -> bool:
        """Check if Ollama is running and accessible.

        Raises:
            ProviderConnectionError: If connection fails
        """
        async for attempt in self._retrying():
            with attempt:
                async with self._get_client() as client:
                    response = await client.get(f"{self.base_url}/api/tags")
                    response.raise_for_status()
        logger.info("Ollama health check passed", base_url=self.base_url)
        return True

    def build_request(
        self,
        history: Sequence[ConversationTurn],
        tools: Sequence[ToolDefinition],
        system_instruction: str,
        latest_message: str,
    ) -> ChatRequest:
        """Assemble the chat request for one model call."""
        messages = [ChatMessage.system(system_instruction)]
        messages.extend(
            ChatMessage.from_turn(turn) for turn in request_turns(history, latest_message)
        )
        return ChatRequest(
            model=self.model,
            messages=messages,
            tools=list(tools),
            stream=False,
            options={"temperature": self.temperature},
        )

    async def generate(
        self,
        history: Sequence[ConversationTurn],
        tools: Sequence[ToolDefinition],
        system_instruction: str,
        latest_message: str,
    ) -> RawModelResponse:
        """Send one chat request with tool definitions.

        Raises:
            ProviderConnectionError: If connection fails after retries
            ProviderModelNotFoundError: If the model is not pulled
            ProviderAPIError: If the API returns an error
            ProviderResponseError: If the body is not a chat response
        """
        request = self.build_request(history, tools, system_instruction, latest_message)
        request_json = request.model_dump_ollama()

        logger.debug(
            "generate() called",
            model=self.model,
            message_count=len(request.messages),
            tool_count=len(request.tools),
        )

        async with AsyncTimer(f"Ollama chat request ({self.model})", logger) as timer:
            async for attempt in self._retrying():
                with attempt:
                    data = await self._post_chat(request_json)

        try:
            chat_response = ChatResponse(**data)
        except (TypeError, ValidationError) as e:
            raise ProviderResponseError(f"Unexpected Ollama response: {e}") from e

        logger.debug(
            "generate() complete",
            elapsed_s=f"{timer.elapsed:.3f}",
            has_tool_calls=chat_response.has_tool_calls,
            response_chars=len(chat_response.message.content),
            tokens_per_s=f"{chat_response.tokens_per_second:.1f}"
            if chat_response.tokens_per_second
            else "unknown",
        )

        return chat_response.to_raw()

    async def _post_chat(self, request_json: dict[str, Any]) -> Any:
        async with self._get_client() as client:
            response = await client.post(f"{self.base_url}/api/chat", json=request_json)
            response.raise_for_status()
            try:
                return response.json()
            except ValueError as e:
                raise ProviderResponseError(f"Ollama returned invalid JSON: {e}") from e
