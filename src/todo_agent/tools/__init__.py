"""Tool system for the todo agent.

This module provides the operations the model may request and the
registry that dispatches them.
"""

from todo_agent.tools.base import BaseTool, ToolErrorKind, ToolResult
from todo_agent.tools.registry import ToolRegistry, create_todo_registry, normalize_name
from todo_agent.tools.todos import (
    CreateTodoTool,
    DeleteAllTodosTool,
    DeleteManyTodosTool,
    DeleteTodoTool,
    GetAllTodosTool,
    SearchTodoTool,
)

__all__ = [
    # Base classes
    "BaseTool",
    "ToolErrorKind",
    "ToolResult",
    # Registry
    "ToolRegistry",
    "create_todo_registry",
    "normalize_name",
    # Todo operations
    "GetAllTodosTool",
    "CreateTodoTool",
    "DeleteTodoTool",
    "DeleteManyTodosTool",
    "DeleteAllTodosTool",
    "SearchTodoTool",
]
