"""Async SQLite-backed todo storage.

This module provides the persistence collaborator the agent's tools talk
to: a narrow ``TaskStore`` protocol and ``TodoStore``, its aiosqlite
implementation.
"""

from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable

import aiosqlite

from todo_agent.config import get_settings
from todo_agent.logging import get_logger
from todo_agent.store.exceptions import DatabaseError, InvalidArgumentError
from todo_agent.store.models import OperationStatus, TodoItem

logger = get_logger("todo_agent.store")


@runtime_checkable
class TaskStore(Protocol):
    """Capabilities the todo tools need from a persistence layer."""

    async def list_all(self) -> list[TodoItem]: ...

    async def create(self, text: str) -> TodoItem: ...

    async def delete_one(self, todo_id: int) -> OperationStatus: ...

    async def delete_many(self, ids: Sequence[int]) -> OperationStatus: ...

    async def delete_all(self) -> OperationStatus: ...

    async def search(self, pattern: str) -> list[TodoItem]: ...


def _escape_like(pattern: str) -> str:
    """Escape LIKE wildcards so the pattern matches literally."""
    return pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TodoStore:
    """Async SQLite todo storage.

    Each operation opens its own connection, so a store instance can be
    shared by several agents without coordinating cursors.

    Usage:
        store = TodoStore(db_path)
        await store.initialize()

        item = await store.create("buy milk")
        await store.delete_one(item.id)
    """

    def __init__(self, db_path: Path | None = None):
        """Initialize the todo store.

        Args:
            db_path: Path to SQLite database file. If None, uses config default.
        """
        self.db_path = db_path or get_settings().todo_db_path
        self._initialized = False

        logger.debug("TodoStore initialized", db_path=str(self.db_path))

    async def initialize(self) -> None:
        """Create the database file and apply schema.sql.

        Raises:
            DatabaseError: If database initialization fails
        """
        if self._initialized:
            return

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            schema_path = Path(__file__).parent / "schema.sql"
            schema_sql = schema_path.read_text(encoding="utf-8")

            async with aiosqlite.connect(self.db_path) as db:
                await db.executescript(schema_sql)
                await db.commit()

            self._initialized = True
            logger.info("Todo database initialized", db_path=str(self.db_path))

        except Exception as e:
            logger.error("Failed to initialize database", error=str(e))
            raise DatabaseError(f"Failed to initialize database: {e}") from e

    async def close(self) -> None:
        """Release the store.

        Connections are opened per operation, so there is nothing to tear
        down; kept for symmetry with initialize().
        """
        logger.debug("TodoStore closed")

    async def __aenter__(self) -> "TodoStore":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ========================================================================
    # Reads
    # ========================================================================

    async def list_all(self) -> list[TodoItem]:
        """Return every todo ordered by id."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                async with db.execute("SELECT * FROM todos ORDER BY id") as cursor:
                    rows = await cursor.fetchall()
                    return [self._row_to_item(row) for row in rows]

        except Exception as e:
            logger.error("Failed to list todos", error=str(e))
            raise DatabaseError(f"Failed to list todos: {e}") from e

    async def search(self, pattern: str) -> list[TodoItem]:
        """Find todos whose text contains ``pattern``, ignoring case.

        Args:
            pattern: Substring to look for

        Returns:
            list[TodoItem]: Matching todos ordered by id
        """
        like = f"%{_escape_like(pattern.casefold())}%"
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                # SQLite's lower() only folds ASCII
                await db.create_function("casefold", 1, str.casefold, deterministic=True)
                async with db.execute(
                    "SELECT * FROM todos WHERE casefold(todo) LIKE ? ESCAPE '\\' ORDER BY id",
                    (like,),
                ) as cursor:
                    rows = await cursor.fetchall()
                    return [self._row_to_item(row) for row in rows]

        except Exception as e:
            logger.error("Failed to search todos", pattern=pattern, error=str(e))
            raise DatabaseError(f"Failed to search todos: {e}") from e

    async def get(self, todo_id: int) -> TodoItem | None:
        """Get a todo by id, or None if it does not exist."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                async with db.execute("SELECT * FROM todos WHERE id = ?", (todo_id,)) as cursor:
                    row = await cursor.fetchone()
                    return self._row_to_item(row) if row is not None else None

        except Exception as e:
            logger.error("Failed to get todo", todo_id=todo_id, error=str(e))
            raise DatabaseError(f"Failed to get todo: {e}") from e

    # ========================================================================
    # Writes
    # ========================================================================

    async def create(self, text: str) -> TodoItem:
        """Insert a new todo.

        Args:
            text: Todo text, must not be blank

        Returns:
            TodoItem: The stored todo with its assigned id

        Raises:
            InvalidArgumentError: If the text is blank
            DatabaseError: If the insert fails
        """
        if not text or not text.strip():
            raise InvalidArgumentError("Todo text must not be empty.")

        text = text.strip()
        now = datetime.now(UTC)

        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute(
                    "INSERT INTO todos (todo, created_at, updated_at) VALUES (?, ?, NULL)",
                    (text, now.isoformat()),
                )
                await db.commit()
                todo_id = cursor.lastrowid

            logger.info("Todo created", todo_id=todo_id)
            return TodoItem(id=todo_id, todo=text, created_at=now, updated_at=None)

        except Exception as e:
            logger.error("Failed to create todo", error=str(e))
            raise DatabaseError(f"Failed to create todo: {e}") from e

    async def delete_one(self, todo_id: int) -> OperationStatus:
        """Delete a todo by id.

        A missing id is reported through the status rather than raised.
        """
        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute("DELETE FROM todos WHERE id = ?", (todo_id,))
                await db.commit()
                deleted = cursor.rowcount

        except Exception as e:
            logger.error("Failed to delete todo", todo_id=todo_id, error=str(e))
            raise DatabaseError(f"Failed to delete todo: {e}") from e

        if deleted == 0:
            logger.info("Todo not found for delete", todo_id=todo_id)
            return OperationStatus(success=False, message=f"Todo {todo_id} not found")

        logger.info("Todo deleted", todo_id=todo_id)
        return OperationStatus(success=True, message=f"Todo {todo_id} deleted successfully")

    async def delete_many(self, ids: Sequence[int]) -> OperationStatus:
        """Delete several todos at once.

        The message lists exactly the ids requested, whether or not each
        of them existed.

        Raises:
            InvalidArgumentError: If ``ids`` is empty
            DatabaseError: If the delete fails
        """
        ids = list(ids)
        if not ids:
            raise InvalidArgumentError("Please provide a non-empty array of todo IDs to delete.")

        placeholders = ", ".join("?" for _ in ids)
        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute(
                    f"DELETE FROM todos WHERE id IN ({placeholders})",
                    ids,
                )
                await db.commit()
                deleted = cursor.rowcount

        except Exception as e:
            logger.error("Failed to delete todos", ids=ids, error=str(e))
            raise DatabaseError(f"Failed to delete todos: {e}") from e

        logger.info("Todos deleted", requested=len(ids), deleted=deleted)
        return OperationStatus(
            success=True,
            message=f"Deleted todos with ids: [{', '.join(str(i) for i in ids)}]",
        )

    async def delete_all(self) -> OperationStatus:
        """Delete every todo."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute("DELETE FROM todos")
                await db.commit()
                deleted = cursor.rowcount

        except Exception as e:
            logger.error("Failed to delete all todos", error=str(e))
            raise DatabaseError(f"Failed to delete all todos: {e}") from e

        logger.info("All todos deleted", deleted=deleted)
        return OperationStatus(success=True, message="All todos deleted successfully.")

    def _row_to_item(self, row: aiosqlite.Row) -> TodoItem:
        """Convert a database row to a TodoItem model."""
        return TodoItem(
            id=row["id"],
            todo=row["todo"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None,
        )
