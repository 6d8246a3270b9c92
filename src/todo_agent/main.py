"""Main entry point for the todo-agent CLI.

This module provides the command-line interface using Click: one-shot
prompts, the interactive chat loop and a few utility commands.
"""

import asyncio
import signal
import sys

import click

from todo_agent import __version__
from todo_agent.agent import TodoAgent
from todo_agent.config import Settings, get_settings
from todo_agent.llm import ProviderConfigurationError, ProviderError, create_gateway
from todo_agent.logging import get_logger, setup_logging
from todo_agent.store import DatabaseError, TodoStore
from todo_agent.tools import create_todo_registry
from todo_agent.ui.console import TodoConsole, get_console

logger = get_logger("todo_agent.main")

EXIT_COMMANDS = {"exit", "quit"}


class PromptGroup(click.Group):
    """Click group that treats a leading free-text argument as ``ask``.

    ``todo-agent "add buy milk"`` becomes ``todo-agent ask "add buy milk"``
    while real subcommand names keep working.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        for index, arg in enumerate(args):
            if arg.startswith("-"):
                continue
            if arg not in self.commands:
                args = [*args[:index], "ask", *args[index:]]
            break
        return super().parse_args(ctx, args)


def _configure(ctx: click.Context) -> tuple[TodoConsole, Settings]:
    """Set up logging and the console from the global options."""
    opts = ctx.obj or {}
    settings = get_settings()
    verbose = opts.get("verbose", False) or settings.agent_verbose
    debug = opts.get("debug", False)

    if debug:
        log_level = "DEBUG"
    elif opts.get("verbose", False):
        log_level = "INFO"
    else:
        log_level = settings.todo_log_level

    setup_logging(level=log_level, log_file=settings.todo_log_file)
    console = get_console(no_color=opts.get("no_color", False), verbose=verbose or debug)
    return console, settings


@click.group(cls=PromptGroup, invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Show plans and tool calls")
@click.option("--debug", "-d", is_flag=True, help="Enable debug mode (very detailed logging)")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool, no_color: bool):
    """todo-agent - manage your todo list in plain language.

    Run with a prompt for a one-shot answer, or without one for an
    interactive session.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["no_color"] = no_color

    if ctx.invoked_subcommand is None:
        ctx.invoke(chat)


@cli.command()
@click.pass_context
def chat(ctx: click.Context):
    """Start an interactive session (default command)."""
    console, settings = _configure(ctx)
    asyncio.run(run_chat_loop(console, settings))


@cli.command()
@click.argument("prompt", nargs=-1, required=True)
@click.pass_context
def ask(ctx: click.Context, prompt: tuple[str, ...]):
    """Answer a single PROMPT and exit."""
    console, settings = _configure(ctx)
    exit_code = asyncio.run(run_once(" ".join(prompt), console, settings))
    if exit_code:
        sys.exit(exit_code)


@cli.command(name="list")
@click.pass_context
def list_todos(ctx: click.Context):
    """Print the todo list straight from the database."""
    console, settings = _configure(ctx)

    async def _list():
        async with TodoStore(settings.todo_db_path) as store:
            return await store.list_all()

    try:
        items = asyncio.run(_list())
    except DatabaseError as e:
        console.error(str(e), exception=e)
        sys.exit(1)
    console.show_todos(items)


@cli.command()
@click.pass_context
def health(ctx: click.Context):
    """Check that the configured model backend is reachable."""
    console, settings = _configure(ctx)
    asyncio.run(check_health(console, settings))


@cli.command()
@click.pass_context
def config(ctx: click.Context):
    """Show current configuration."""
    console, settings = _configure(ctx)
    console.show_config(settings.model_dump_safe())

    if console.verbose:
        console.print("\n[dim]Configuration loaded from:[/dim]")
        console.print("  - Environment variables")
        console.print("  - .env file (if present)")


@cli.command()
def version():
    """Show version information."""
    click.echo(f"todo-agent version {__version__}")


async def _build_agent(settings: Settings, console: TodoConsole | None):
    """Create the store, gateway and agent for one CLI run."""
    store = TodoStore(settings.todo_db_path)
    await store.initialize()
    registry = create_todo_registry(store)
    gateway = create_gateway(settings)
    agent = TodoAgent(
        gateway=gateway,
        registry=registry,
        console=console,
        max_iterations=settings.agent_max_iterations,
    )
    return agent, gateway


async def run_once(prompt: str, console: TodoConsole, settings: Settings) -> int:
    """Answer one prompt and print ``Agent: <output>``.

    Returns:
        int: Process exit code
    """
    try:
        agent, gateway = await _build_agent(settings, console if console.verbose else None)
    except (ProviderConfigurationError, DatabaseError) as e:
        console.error(str(e), exception=e)
        return 1

    logger.debug("One-shot prompt", prompt_preview=prompt[:100])
    async with gateway:
        reply = await agent.process_user_input(prompt)

    click.echo(f"Agent: {reply.output}")
    return 1 if reply.terminated_by == "error" else 0


async def run_chat_loop(console: TodoConsole, settings: Settings) -> None:
    """Run the interactive chat loop.

    Ctrl+C while the agent works cancels that request only; Ctrl+D or
    "exit" leaves.
    """
    try:
        agent, gateway = await _build_agent(settings, console)
    except (ProviderConfigurationError, DatabaseError) as e:
        console.error(str(e), exception=e)
        sys.exit(1)

    console.welcome()
    console.info(f"Using {gateway.provider} model: {gateway.model}")
    console.info(f"Todo database: {settings.todo_db_path}\n")

    # Plain KeyboardInterrupt at the prompt; requests install their own handler.
    signal.signal(signal.SIGINT, signal.default_int_handler)
    loop = asyncio.get_running_loop()

    async with gateway:
        while True:
            try:
                user_input = console.console.input("\n[todo.user]You:[/todo.user] ")
            except KeyboardInterrupt:
                console.print()
                console.warning("Type 'exit' or press Ctrl+D to quit.")
                continue
            except EOFError:
                console.print()
                console.success("Goodbye!")
                break

            if not user_input.strip():
                continue
            if user_input.strip().lower() in EXIT_COMMANDS:
                console.success("Goodbye!")
                break

            cancel_event = asyncio.Event()
            task = asyncio.create_task(agent.process_user_input(user_input, cancel_event))

            def _cancel() -> None:
                cancel_event.set()
                task.cancel()

            try:
                loop.add_signal_handler(signal.SIGINT, _cancel)
                handler_installed = True
            except (NotImplementedError, RuntimeError):
                handler_installed = False

            try:
                reply = await task
            except asyncio.CancelledError:
                logger.info("Request cancelled by user")
                console.print()
                console.warning("Request cancelled. Type 'exit' to quit.")
                continue
            finally:
                if handler_installed:
                    loop.remove_signal_handler(signal.SIGINT)

            console.agent_message(reply.output)


async def check_health(console: TodoConsole, settings: Settings) -> None:
    """Check the configured backend and exit non-zero when it is down."""
    try:
        gateway = create_gateway(settings)
    except ProviderConfigurationError as e:
        console.error(str(e), exception=e)
        sys.exit(1)

    console.info(f"Checking {gateway.provider} ({gateway.model})...")

    try:
        async with gateway:
            with console.thinking("Testing connection..."):
                await gateway.health_check()
    except ProviderError as e:
        console.error(f"{gateway.provider} is not reachable: {e}", exception=e)
        if gateway.provider == "ollama":
            console.print("\n[todo.warning]Troubleshooting tips:[/todo.warning]")
            console.print("  1. Make sure Ollama is running")
            console.print("  2. Check OLLAMA_HOST in your .env file")
            console.print(f"\n  Current host: {settings.ollama_host}")
        sys.exit(1)

    console.success(f"{gateway.provider} is running and model '{gateway.model}' is available")


def main():
    cli()


if __name__ == "__main__":
    main()
