"""Terminal output for todo-agent."""

from todo_agent.ui.console import TODO_THEME, TodoConsole, get_console

__all__ = ["TodoConsole", "TODO_THEME", "get_console"]
