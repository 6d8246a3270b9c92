"""Tests for the Ollama gateway."""

import json

import httpx
import pytest

from todo_agent.llm import (
    ConversationTurn,
    OllamaGateway,
    ProviderAPIError,
    ProviderConnectionError,
    ProviderModelNotFoundError,
    ProviderResponseError,
    ToolDefinition,
)

TOOLS = [ToolDefinition(name="getAllTodos", description="Return all todos")]


def make_gateway(test_settings, handler, max_retries=0) -> OllamaGateway:
    return OllamaGateway(
        settings=test_settings,
        max_retries=max_retries,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def chat_reply(content="", tool_calls=None):
    message = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    return httpx.Response(200, json={"model": "qwen3:30b-a3b", "message": message, "done": True})


class TestOllamaGateway:
    """Test OllamaGateway."""

    @pytest.mark.asyncio
    async def test_generate_request_shape(self, test_settings):
        """Test the body sent to /api/chat."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return chat_reply('{"type": "output", "output": "hi"}')

        async with make_gateway(test_settings, handler) as gateway:
            raw = await gateway.generate([ConversationTurn.user("hello")], TOOLS, "SYSTEM", "hello")

        assert raw.text == '{"type": "output", "output": "hi"}'
        assert seen["url"] == "http://localhost:11434/api/chat"
        body = seen["body"]
        assert body["model"] == "qwen3:30b-a3b"
        assert body["stream"] is False
        assert body["messages"] == [
            {"role": "system", "content": "SYSTEM"},
            {"role": "user", "content": "hello"},
        ]
        assert body["tools"][0]["function"]["name"] == "getAllTodos"
        assert body["options"]["temperature"] == 0.0

    @pytest.mark.asyncio
    async def test_tool_turns_sent_as_tool_messages(self, test_settings):
        """Test how history with tool results is rendered."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return chat_reply("ok")

        history = [ConversationTurn.user("list"), ConversationTurn.tool("getAllTodos", [])]
        async with make_gateway(test_settings, handler) as gateway:
            await gateway.generate(history, TOOLS, "SYSTEM", "observation text")

        roles = [m["role"] for m in seen["body"]["messages"]]
        assert roles == ["system", "user", "tool", "user"]
        assert seen["body"]["messages"][2]["tool_name"] == "getAllTodos"

    @pytest.mark.asyncio
    async def test_generate_function_call(self, test_settings):
        """Test that native tool calls come back as a function call."""

        def handler(request: httpx.Request) -> httpx.Response:
            return chat_reply(tool_calls=[{"function": {"name": "getAllTodos", "arguments": {}}}])

        async with make_gateway(test_settings, handler) as gateway:
            raw = await gateway.generate([], TOOLS, "SYSTEM", "list")

        assert raw.has_function_call
        assert raw.function_call.name == "getAllTodos"

    @pytest.mark.asyncio
    async def test_model_not_found(self, test_settings):
        """Test that a 404 names the missing model."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "model not found"})

        async with make_gateway(test_settings, handler) as gateway:
            with pytest.raises(ProviderModelNotFoundError, match="ollama pull"):
                await gateway.generate([], TOOLS, "SYSTEM", "hi")

    @pytest.mark.asyncio
    async def test_api_error(self, test_settings):
        """Test that other HTTP errors keep their status code."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        async with make_gateway(test_settings, handler) as gateway:
            with pytest.raises(ProviderAPIError) as exc_info:
                await gateway.generate([], TOOLS, "SYSTEM", "hi")

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_malformed_response(self, test_settings):
        """Test that a body without a message is a response error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unexpected": True})

        async with make_gateway(test_settings, handler) as gateway:
            with pytest.raises(ProviderResponseError):
                await gateway.generate([], TOOLS, "SYSTEM", "hi")

    @pytest.mark.asyncio
    async def test_invalid_json(self, test_settings):
        """Test that a non-JSON body is a response error."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        async with make_gateway(test_settings, handler) as gateway:
            with pytest.raises(ProviderResponseError):
                await gateway.generate([], TOOLS, "SYSTEM", "hi")

    @pytest.mark.asyncio
    async def test_connection_error(self, test_settings):
        """Test that connection failures are mapped."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with make_gateway(test_settings, handler) as gateway:
            with pytest.raises(ProviderConnectionError, match="Is Ollama running"):
                await gateway.generate([], TOOLS, "SYSTEM", "hi")

    @pytest.mark.asyncio
    async def test_retries_connection_errors(self, test_settings, monkeypatch):
        """Test that a transient failure is retried."""
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("refused", request=request)
            return chat_reply("ok")

        gateway = make_gateway(test_settings, handler, max_retries=1)
        monkeypatch.setattr(
            "todo_agent.llm.ollama.wait_exponential",
            lambda **kwargs: (lambda retry_state: 0),
        )

        async with gateway:
            raw = await gateway.generate([], TOOLS, "SYSTEM", "hi")

        assert raw.text == "ok"
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_health_check(self, test_settings):
        """Test the health check endpoint."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/tags"
            return httpx.Response(200, json={"models": []})

        async with make_gateway(test_settings, handler) as gateway:
            assert await gateway.health_check() is True

    @pytest.mark.asyncio
    async def test_close_releases_client(self, test_settings):
        """Test that close drops the client."""
        gateway = make_gateway(test_settings, lambda request: chat_reply("ok"))

        await gateway.close()

        assert gateway._client is None
