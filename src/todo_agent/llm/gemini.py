"""Async gateway for the Gemini generateContent REST API."""

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence

import httpx
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
    ProviderConfigurationError,
    ProviderConnectionError,
    ProviderModelNotFoundError,
    ProviderResponseError,
    request_turns,
)
from todo_agent.llm.models import (
    ConversationTurn,
    FunctionCall,
    RawModelResponse,
    ToolDefinition,
)
from todo_agent.logging import AsyncTimer, get_logger

logger = get_logger("todo_agent.llm.gemini")


class GeminiGateway(ModelGateway):
    """Gateway to Google's Gemini models over plain HTTPS.

    Tool turns are sent as user text, not ``functionResponse`` parts:
    the agent's actions arrive as JSON text rather than native function
    calls, so there is no matching ``functionCall`` for them to answer.
    """

    provider = "gemini"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: int | None = None,
        max_retries: int = 2,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize the Gemini gateway.

        Args:
            api_key: API key (defaults to settings)
            model: Model name (defaults to settings)
            base_url: REST base URL (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
            max_retries: Extra attempts on connection errors
            settings: Settings instance (uses global if not provided)
            http_client: Pre-built HTTP client, mainly for tests

        Raises:
            ProviderConfigurationError: If no API key is available
        """
        self.settings = settings or get_settings()
        self.api_key = api_key or self.settings.gemini_api_key
        if not self.api_key:
            raise ProviderConfigurationError(
                "GEMINI_API_KEY is not set. Add it to your environment or .env file."
            )
        self.model = model or self.settings.gemini_model
        self.base_url = (base_url or self.settings.gemini_base_url).rstrip("/")
        self.timeout = timeout or self.settings.gemini_timeout
        self.max_retries = max_retries

        self._client: httpx.AsyncClient | None = http_client

    @asynccontextmanager
    async def _get_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))

        try:
            yield self._client
        except httpx.TimeoutException as e:
            raise ProviderConnectionError(
                f"Request to Gemini timed out after {self.timeout}s: {e}"
            ) from e
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise ProviderModelNotFoundError(f"Gemini model '{self.model}' not found") from e
            raise ProviderAPIError(
                f"Gemini API error: {e.response.text}",
                status_code=e.response.status_code,
            ) from e
        except httpx.TransportError as e:
            raise ProviderConnectionError(f"Failed to reach Gemini at {self.base_url}: {e}") from e

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def _headers(self) -> dict[str, str]:
        return {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_exception_type(ProviderConnectionError),
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        )

    async def health_check(self) -> bool:
        """Fetch the model resource to confirm key and model are valid."""
        async for attempt in self._retrying():
            with attempt:
                async with self._get_client() as client:
                    response = await client.get(
                        f"{self.base_url}/models/{self.model}",
                        headers=self._headers,
                    )
                    response.raise_for_status()
        logger.info("Gemini health check passed", model=self.model)
        return True

    def build_payload(
        self,
        history: Sequence[ConversationTurn],
        tools: Sequence[ToolDefinition],
        system_instruction: str,
        latest_message: str,
    ) -> dict[str, Any]:
        """Assemble the generateContent body for one model call."""
        contents = [
            {
                "role": "model" if turn.role == "model" else "user",
                "parts": [{"text": turn.render_text()}],
            }
            for turn in request_turns(history, latest_message)
        ]

        payload: dict[str, Any] = {
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "contents": contents,
        }
        if tools:
            payload["tools"] = [{"functionDeclarations": [tool.to_gemini() for tool in tools]}]
        return payload

    async def generate(
        self,
        history: Sequence[ConversationTurn],
        tools: Sequence[ToolDefinition],
        system_instruction: str,
        latest_message: str,
    ) -> RawModelResponse:
        """Call generateContent and collect text and the first function call."""
        payload = self.build_payload(history, tools, system_instruction, latest_message)

        logger.debug(
            "generate() called",
            model=self.model,
            content_count=len(payload["contents"]),
            tool_count=len(tools),
        )

        async with AsyncTimer(f"Gemini generateContent ({self.model})", logger) as timer:
            async for attempt in self._retrying():
                with attempt:
                    data = await self._post(payload)

        raw = self.parse_response(data)
        logger.debug(
            "generate() complete",
            elapsed_s=f"{timer.elapsed:.3f}",
            response_chars=len(raw.text),
            has_function_call=raw.has_function_call,
        )
        return raw

    async def _post(self, payload: dict[str, Any]) -> Any:
        async with self._get_client() as client:
            response = await client.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                headers=self._headers,
                json=payload,
            )
            response.raise_for_status()
            try:
                return response.json()
            except ValueError as e:
                raise ProviderResponseError(f"Gemini returned invalid JSON: {e}") from e

    @staticmethod
    def parse_response(data: Any) -> RawModelResponse:
        """Extract text parts and the first functionCall part.

        A response without candidates (for example a blocked prompt) is
        returned as empty text.

        Raises:
            ProviderResponseError: If the body does not have the expected shape
        """
        if not isinstance(data, dict):
            raise ProviderResponseError(f"Unexpected Gemini response: {data!r}")

        candidates = data.get("candidates") or []
        if not candidates:
            logger.warning(
                "Gemini returned no candidates",
                prompt_feedback=json.dumps(data.get("promptFeedback", {})),
            )
            return RawModelResponse(text="")

        try:
            parts = (candidates[0].get("content") or {}).get("parts") or []
        except AttributeError as e:
            raise ProviderResponseError(f"Unexpected Gemini candidate: {candidates[0]!r}") from e

        texts: list[str] = []
        function_call: FunctionCall | None = None
        for part in parts:
            if "text" in part and part["text"]:
                texts.append(part["text"])
            elif "functionCall" in part and function_call is None:
                call = part["functionCall"]
                function_call = FunctionCall(name=call.get("name", ""), arguments=call.get("args"))

        return RawModelResponse(text="".join(texts), function_call=function_call)
