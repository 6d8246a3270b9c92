"""Persistence for todo items.

This module provides the async SQLite store behind the agent's tools and
the protocol the tools depend on.
"""

from todo_agent.store.exceptions import DatabaseError, InvalidArgumentError, StoreError
from todo_agent.store.models import OperationStatus, TodoItem
from todo_agent.store.store import TaskStore, TodoStore

__all__ = [
    # Store
    "TaskStore",
    "TodoStore",
    # Models
    "TodoItem",
    "OperationStatus",
    # Exceptions
    "StoreError",
    "DatabaseError",
    "InvalidArgumentError",
]
