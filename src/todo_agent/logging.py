"""Logging configuration for the todo agent with structlog."""

import logging
import sys
import time
from pathlib import Path
from typing import Any

import structlog


def setup_logging(
    level: str | None = "WARNING",
    log_file: Path | None = None,
    show_timestamps: bool = True,
) -> None:
    """Configure structlog for console or file output.

    Console output goes to stderr so that one-shot answers printed on
    stdout stay clean.

    Args:
        level: Log level name, or None to use WARNING
        log_file: Optional file path; when set, records are written as JSON lines
        show_timestamps: Include timestamps in the output
    """
    level = level or "WARNING"
    log_level = getattr(logging, level.upper(), logging.WARNING)

    handlers: list[logging.Handler] = []
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        handlers.append(file_handler)
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        handlers.append(console_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        format="%(message)s",
        force=True,
    )

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
    ]

    if show_timestamps:
        processors.append(structlog.processors.TimeStamper(fmt="iso" if log_file else "%H:%M:%S"))

    if log_file:
        processors.extend(
            [
                structlog.processors.dict_tracebacks,
                structlog.processors.JSONRenderer(),
            ]
        )
    else:
        processors.extend(
            [
                structlog.dev.set_exc_info,
                structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
            ]
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger for a module.

    Args:
        name: Module name (e.g., "todo_agent.agent.core")

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def bind_turn(turn: int) -> None:
    """Tag every log record emitted during the current user turn."""
    structlog.contextvars.bind_contextvars(turn=turn)


def clear_turn() -> None:
    """Drop the turn tag bound by bind_turn()."""
    structlog.contextvars.unbind_contextvars("turn")


class AsyncTimer:
    """Async context manager for timing awaited operations.

    Usage:
        async with AsyncTimer("createTodo", logger) as timer:
            await tool.run(...)
        print(f"Took {timer.elapsed:.3f}s")
    """

    def __init__(self, name: str, logger: Any | None = None):
        self.name = name
        self.logger = logger or get_logger("todo_agent.timer")
        self.start_time: float = 0
        self.elapsed: float = 0

    async def __aenter__(self) -> "AsyncTimer":
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting: {self.name}")
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.elapsed = time.perf_counter() - self.start_time
        self.logger.debug(f"Completed: {self.name}", elapsed_s=f"{self.elapsed:.3f}")

    @property
    def elapsed_ms(self) -> float:
        """Elapsed time in milliseconds."""
        return self.elapsed * 1000
