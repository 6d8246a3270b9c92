"""Rich console wrapper for the todo agent.

Shows the conversation, the agent's intermediate steps and todo tables
with one consistent theme.
"""

import json
from contextlib import contextmanager
from typing import Any, Iterable

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from todo_agent import __version__
from todo_agent.store.models import TodoItem


TODO_THEME = Theme({
    "todo.primary": "cyan",
    "todo.accent": "magenta",

    "todo.success": "green",
    "todo.error": "red bold",
    "todo.warning": "yellow",
    "todo.info": "blue",

    "todo.user": "cyan bold",
    "todo.agent": "green bold",
    "todo.plan": "yellow italic",
    "todo.tool": "magenta",
    "todo.observation": "dim",

    "todo.header": "cyan bold",
    "todo.footer": "dim",
})

_MAX_RESULT_CHARS = 500


def _render(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, default=str)


class TodoConsole:
    """Rich console with todo-agent styling.

    Intermediate steps (plans, tool calls, observations) are printed
    only in verbose mode; the final answer and errors always are.

    Attributes:
        console: The underlying Rich Console instance
    """

    def __init__(self, no_color: bool = False, verbose: bool = False, console: Console | None = None):
        """Initialize the console.

        Args:
            no_color: Disable colored output
            verbose: Show the agent's intermediate steps
            console: Prebuilt Rich console, mostly for capturing output in tests
        """
        self.console = console or Console(
            theme=TODO_THEME,
            highlight=False,
            no_color=no_color,
        )
        self.verbose = verbose
        self.no_color = no_color

    def print(self, *args: Any, **kwargs: Any) -> None:
        self.console.print(*args, **kwargs)

    def welcome(self) -> None:
        """Display the welcome banner."""
        banner = Text()
        banner.append("todo-agent", style="todo.header")
        banner.append(" - manage your todo list in plain language", style="todo.primary")
        self.console.print(Panel(banner, border_style="todo.primary", expand=False))
        self.console.print(
            f"Version {__version__} | Type 'exit' or 'quit' to leave\n",
            style="todo.footer",
        )

    def agent_message(self, text: str) -> None:
        """Display the agent's final reply."""
        self.console.print("Agent: ", style="todo.agent", end="")
        self.console.print(text, markup=False)

    def plan(self, text: str) -> None:
        if self.verbose:
            self.console.print(f"PLAN: {text}", style="todo.plan", markup=False)

    def observation(self, value: Any) -> None:
        if self.verbose:
            self.console.print(f"OBSERVATION: {_render(value)}", style="todo.observation", markup=False)

    def tool_call(self, name: str, tool_input: Any = None) -> None:
        """Display that an operation is being invoked.

        Args:
            name: Operation name as the model wrote it
            tool_input: Input passed to the operation
        """
        if not self.verbose:
            return
        self.console.print(Text.assemble(("⚙ Calling: ", "todo.tool"), (name, "todo.tool bold")))
        if tool_input is not None:
            self.console.print(f"  Input: {_render(tool_input)}", style="todo.footer", markup=False)

    def tool_result(self, name: str, result: Any, error: bool = False) -> None:
        """Display an operation's result.

        Args:
            name: Operation name
            result: Value handed back to the model
            error: Whether the operation failed
        """
        if not self.verbose:
            return
        style = "todo.error" if error else "todo.tool"
        icon = "✗" if error else "✓"
        self.console.print(Text.assemble((f"{icon} Result: ", style), (name, f"{style} bold")))

        text = _render(result)
        if len(text) > _MAX_RESULT_CHARS:
            text = text[:_MAX_RESULT_CHARS] + "... (truncated)"
        self.console.print(Panel(Text(text), border_style=style, padding=(0, 1)))

    def error(self, message: str, exception: Exception | None = None) -> None:
        self.console.print(f"✗ Error: {message}", style="todo.error", markup=False)
        if exception and self.verbose:
            self.console.print_exception(show_locals=False)

    def warning(self, message: str) -> None:
        self.console.print(f"⚠ Warning: {message}", style="todo.warning", markup=False)

    def success(self, message: str) -> None:
        self.console.print(f"✓ {message}", style="todo.success", markup=False)

    def info(self, message: str) -> None:
        self.console.print(f"ℹ {message}", style="todo.info", markup=False)

    @contextmanager
    def thinking(self, message: str = "Thinking..."):
        """Show a spinner while the model is working.

        Yields:
            The Rich status object
        """
        with self.console.status(f"[todo.plan]{message}[/todo.plan]", spinner="dots") as status:
            yield status

    def show_todos(self, items: Iterable[TodoItem]) -> None:
        """Display todos as a table."""
        items = list(items)
        if not items:
            self.info("No todos yet.")
            return

        table = Table(title="Todos", show_header=True)
        table.add_column("ID", style="todo.primary", justify="right")
        table.add_column("Todo")
        table.add_column("Created", style="todo.footer")

        for item in items:
            table.add_row(str(item.id), Text(item.todo), item.created_at.strftime("%Y-%m-%d %H:%M"))

        self.console.print(table)

    def show_config(self, config_dict: dict[str, Any]) -> None:
        table = Table(title="todo-agent Configuration", show_header=True)
        table.add_column("Setting", style="todo.primary")
        table.add_column("Value", style="todo.info")

        for key, value in config_dict.items():
            table.add_row(key, Text(str(value)))

        self.console.print(table)


_console: TodoConsole | None = None


def get_console(no_color: bool = False, verbose: bool = False) -> TodoConsole:
    """Get the global console instance.

    Args:
        no_color: Disable colored output
        verbose: Show the agent's intermediate steps

    Returns:
        TodoConsole: The global console instance
    """
    global _console
    if _console is None:
        _console = TodoConsole(no_color=no_color, verbose=verbose)
    return _console
