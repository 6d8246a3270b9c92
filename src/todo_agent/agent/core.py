"""Core agent implementation: the plan → action → observation → output loop.

This module provides the TodoAgent class, which mediates between the
model's free-form output and the fixed set of todo operations.
"""

import asyncio
import time
from contextlib import nullcontext
from typing import TYPE_CHECKING, Any, Literal, NamedTuple

from todo_agent.agent.envelopes import (
    ActionEnvelope,
    Envelope,
    ObservationEnvelope,
    OutputEnvelope,
    PlanEnvelope,
    UnrecognizedEnvelope,
)
from todo_agent.agent.history import ConversationHistory
from todo_agent.agent.parser import ResponseParser
from todo_agent.agent.prompts import LoopState, PromptBuilder
from todo_agent.llm.base import ModelGateway, ProviderError
from todo_agent.logging import AsyncTimer, bind_turn, clear_turn, get_logger
from todo_agent.tools.base import ToolResult
from todo_agent.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from todo_agent.ui.console import TodoConsole

logger = get_logger("todo_agent.agent.core")

MAX_ITERATIONS_MESSAGE = "Reached maximum iterations without final output."
ERROR_MESSAGE = "An error occurred while processing your request."
CANCELLED_MESSAGE = "Request cancelled."

TerminationReason = Literal["output", "unrecognized", "max_iterations", "cancelled", "error"]


class AgentError(Exception):
    """Exception raised when the agent is misconfigured."""

    pass


class ToolCallRecord(NamedTuple):
    """Record of one dispatched action."""

    function: str
    input: Any
    result: ToolResult
    execution_time_ms: float | None = None


class AgentReply(NamedTuple):
    """Everything a caller may want to know about one user turn."""

    output: str
    terminated_by: TerminationReason
    iterations: int
    tool_calls: list[ToolCallRecord]


class TodoAgent:
    """Conversational agent over a fixed set of todo operations.

    For each user turn the agent repeatedly:
    1. Sends the history plus the next message to the model gateway
    2. Parses the raw response into envelopes
    3. Runs ``action`` envelopes through the tool registry and records
       the result as a ``tool`` turn
    4. Stops at the first ``output`` or ``unrecognized`` envelope, or
       when the iteration budget is spent

    One instance owns one session's history; use separate instances for
    separate conversations.
    """

    def __init__(
        self,
        gateway: ModelGateway,
        registry: ToolRegistry,
        console: "TodoConsole | None" = None,
        max_iterations: int = 50,
        parser: ResponseParser | None = None,
    ):
        """Initialize the agent.

        Args:
            gateway: Model gateway used for every iteration
            registry: Registry holding the todo operations
            console: Optional console to show plans and tool calls
            max_iterations: Maximum model round-trips per user turn
            parser: Response parser (a default one if None)

        Raises:
            AgentError: If max_iterations is below 1
        """
        if max_iterations < 1:
            raise AgentError(f"max_iterations must be at least 1, got {max_iterations}")

        self.gateway = gateway
        self.registry = registry
        self.console = console
        self.max_iterations = max_iterations
        self.parser = parser or ResponseParser()
        self.tools = registry.describe()
        self.prompts = PromptBuilder(self.tools)
        self.history = ConversationHistory()
        self._turn_count = 0

    async def process_user_input(
        self,
        user_input: str,
        cancel_event: asyncio.Event | None = None,
    ) -> AgentReply:
        """Run the loop for one user message.

        Always returns a reply: provider failures and unexpected errors are
        logged and turned into ERROR_MESSAGE.

        Args:
            user_input: What the user typed
            cancel_event: Checked between steps; when set the turn ends early

        Returns:
            AgentReply: Final text plus how the turn ended
        """
        self._turn_count += 1
        bind_turn(self._turn_count)
        run_start = time.perf_counter()
        state = LoopState(user_input=user_input, max_iterations=self.max_iterations)

        logger.info("process_user_input() started", user_message_preview=user_input[:100])
        self.history.append_user(user_input)

        try:
            reply = await self._run_loop(state, cancel_event)
        except ProviderError as e:
            logger.error("Model call failed", error=str(e), error_type=type(e).__name__)
            reply = self._reply(state, ERROR_MESSAGE, "error")
        except Exception as e:
            logger.exception("Unexpected error in agent loop", error=str(e))
            reply = self._reply(state, ERROR_MESSAGE, "error")
        finally:
            clear_turn()

        logger.info(
            "process_user_input() complete",
            terminated_by=reply.terminated_by,
            iterations=reply.iterations,
            tool_calls_count=len(reply.tool_calls),
            total_time_s=f"{time.perf_counter() - run_start:.3f}",
        )
        return reply

    async def ask(self, user_input: str) -> str:
        """Shortcut returning only the reply text."""
        return (await self.process_user_input(user_input)).output

    async def _run_loop(self, state: LoopState, cancel_event: asyncio.Event | None) -> AgentReply:
        system_instruction = self.prompts.system_instruction()

        while not state.exhausted:
            if cancel_event is not None and cancel_event.is_set():
                return self._reply(state, CANCELLED_MESSAGE, "cancelled")

            state.iteration += 1
            message = self.prompts.next_user_message(state)
            logger.debug(
                f"Iteration {state.iteration}/{state.max_iterations} starting",
                history_length=len(self.history),
            )

            spinner = (
                self.console.thinking(f"Thinking... (iteration {state.iteration})")
                if self.console
                else nullcontext()
            )
            with spinner:
                async with AsyncTimer(f"Model call (iteration {state.iteration})", logger):
                    response = await self.gateway.generate(
                        self.history.turns,
                        self.tools,
                        system_instruction,
                        message,
                    )

            envelopes = self.parser.parse(response.text)
            if response.function_call is not None and not any(
                isinstance(envelope, ActionEnvelope) for envelope in envelopes
            ):
                envelopes.append(self.parser.from_function_call(response.function_call))

            if not envelopes:
                logger.warning(
                    "No progress: model response held no envelopes",
                    iteration=state.iteration,
                )
                return self._reply(state, MAX_ITERATIONS_MESSAGE, "max_iterations")

            for envelope in envelopes:
                if cancel_event is not None and cancel_event.is_set():
                    return self._reply(state, CANCELLED_MESSAGE, "cancelled")

                reply = await self._handle(envelope, state)
                if reply is not None:
                    return reply

        logger.warning("Reached maximum iterations", max_iterations=state.max_iterations)
        return self._reply(state, MAX_ITERATIONS_MESSAGE, "max_iterations")

    async def _handle(self, envelope: Envelope, state: LoopState) -> AgentReply | None:
        """Apply one envelope; return a reply when it ends the turn."""
        if isinstance(envelope, PlanEnvelope):
            logger.info("PLAN", plan=envelope.text)
            if self.console:
                self.console.plan(envelope.text)
            state.last_step = "plan"
            return None

        if isinstance(envelope, ActionEnvelope):
            await self._dispatch(envelope, state)
            return None

        if isinstance(envelope, ObservationEnvelope):
            logger.info("OBSERVATION", observation=envelope.value)
            if self.console:
                self.console.observation(envelope.value)
            return None

        if isinstance(envelope, OutputEnvelope):
            self.history.append_model(envelope.text)
            return self._reply(state, envelope.text, "output")

        if isinstance(envelope, UnrecognizedEnvelope):
            logger.info("Returning unrecognized model output", raw_preview=envelope.raw_text[:200])
            return self._reply(state, envelope.raw_text, "unrecognized")

        logger.error("Unhandled envelope", envelope=repr(envelope))
        return self._reply(state, ERROR_MESSAGE, "error")

    async def _dispatch(self, action: ActionEnvelope, state: LoopState) -> None:
        """Invoke the action's operation and fold its result into history."""
        logger.info("ACTION", function=action.function, input=action.input)
        if self.console:
            self.console.tool_call(action.function, action.input)

        async with AsyncTimer(f"Operation {action.function}", logger) as timer:
            result = await self.registry.invoke(action.function, action.input)

        observation = result.observation()
        logger.info("OBSERVATION RESULT", function=action.function, success=result.success)
        if self.console:
            self.console.tool_result(action.function, observation, error=not result.success)

        self.history.append_tool(action.function, observation)
        state.tool_calls.append(
            ToolCallRecord(
                function=action.function,
                input=action.input,
                result=result,
                execution_time_ms=timer.elapsed_ms,
            )
        )
        state.last_step = "action"
        state.last_function = action.function
        state.last_observation = observation

    def _reply(self, state: LoopState, output: str, reason: TerminationReason) -> AgentReply:
        return AgentReply(
            output=output,
            terminated_by=reason,
            iterations=state.iteration,
            tool_calls=list(state.tool_calls),
        )
