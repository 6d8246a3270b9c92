"""Tool registry for the agent's fixed operation vocabulary.

This module provides the ToolRegistry class which holds the registered
operations, describes them for the model, and dispatches invocations by
name.
"""

from typing import Any, Iterator

from todo_agent.llm.models import ToolDefinition
from todo_agent.logging import AsyncTimer, get_logger
from todo_agent.store import TaskStore
from todo_agent.tools.base import BaseTool, ToolErrorKind, ToolResult
from todo_agent.tools.todos import TODO_TOOL_CLASSES

logger = get_logger("todo_agent.tools.registry")


def normalize_name(name: str) -> str:
    """Strip any namespace prefix: ``"todo.createTodo"`` -> ``"createTodo"``."""
    return name.strip().rsplit(".", 1)[-1]


class ToolRegistry:
    """Registry for the agent's operations.

    Registration order is preserved so that ``describe()`` is stable
    across calls.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register(GetAllTodosTool(store))
        >>> result = await registry.invoke("todo.getAllTodos", None)
    """

    def __init__(self):
        """Initialize an empty tool registry."""
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool instance.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            raise ValueError(
                f"Tool '{tool.name}' is already registered. "
                f"Use unregister() first or choose a different name."
            )

        self._tools[tool.name] = tool
        logger.debug("Registered tool", tool=tool.name)

    def unregister(self, name: str) -> None:
        """Unregister a tool by name.

        Raises:
            KeyError: If the tool is not registered
        """
        if name not in self._tools:
            raise KeyError(f"Tool '{name}' is not registered")

        del self._tools[name]
        logger.debug("Unregistered tool", tool=name)

    def get(self, name: str) -> BaseTool | None:
        """Get a tool by (possibly namespaced) name."""
        return self._tools.get(normalize_name(name))

    def get_tool_names(self) -> list[str]:
        return list(self._tools.keys())

    def describe(self) -> list[ToolDefinition]:
        """Describe every registered tool, in registration order."""
        return [tool.to_definition() for tool in self._tools.values()]

    async def invoke(self, name: str, tool_input: Any) -> ToolResult:
        """Dispatch one operation.

        Never raises for dispatch problems: an unknown name, rejected input
        or a failing store all come back as an error ToolResult.

        Args:
            name: Operation name, optionally dotted ("todo.deleteTodo")
            tool_input: The action's ``input`` value (object, scalar or None)

        Returns:
            ToolResult: Outcome of the operation
        """
        resolved = normalize_name(name)
        tool = self._tools.get(resolved)
        if tool is None:
            logger.warning(
                "Unknown operation requested",
                requested=name,
                available_tools=self.get_tool_names(),
            )
            return ToolResult.error_result(
                error=f"Function {name} not found",
                kind=ToolErrorKind.UNKNOWN_OPERATION,
                requested=name,
            )

        logger.info("Executing tool", tool=resolved, tool_input=tool_input)
        async with AsyncTimer(f"Tool.run({resolved})", logger):
            result = await tool.run(tool_input)
        result.metadata["tool"] = resolved

        if result.success:
            logger.info("Tool succeeded", tool=resolved, data_preview=str(result.data)[:200])
        else:
            logger.error(
                "Tool failed",
                tool=resolved,
                error_kind=str(result.error_kind),
                error=result.error,
            )
        return result

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return normalize_name(name) in self._tools

    def __iter__(self) -> Iterator[BaseTool]:
        return iter(self._tools.values())

    def __repr__(self) -> str:
        return f"<ToolRegistry: {len(self._tools)} tools ({', '.join(self._tools.keys())})>"


def create_todo_registry(store: TaskStore) -> ToolRegistry:
    """Build the registry holding the six todo operations bound to ``store``."""
    registry = ToolRegistry()
    for tool_class in TODO_TOOL_CLASSES:
        registry.register(tool_class(store))
    return registry
