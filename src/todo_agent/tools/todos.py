"""The six todo operations the model may request.

Each tool validates its input with a Pydantic model and forwards to a
``TaskStore``; results are returned as plain JSON-compatible data.
"""

from typing import Any

from pydantic import BaseModel, Field

from todo_agent.store import TaskStore
from todo_agent.tools.base import BaseTool


class NoParams(BaseModel):
    """Parameters for tools that take none."""


class CreateTodoParams(BaseModel):
    todo: str = Field(..., min_length=1, description="Todo text")


class DeleteTodoParams(BaseModel):
    id: int = Field(..., description="Todo id")


class DeleteManyTodosParams(BaseModel):
    ids: list[int] = Field(..., description="Array of todo IDs to delete")


class SearchTodoParams(BaseModel):
    search: str = Field(..., description="Search pattern string")


class TodoTool(BaseTool):
    """Base for tools bound to a task store."""

    def __init__(self, store: TaskStore):
        super().__init__()
        self.store = store


class GetAllTodosTool(TodoTool):
    name = "getAllTodos"
    description = "Return all todos from the database"
    parameters_schema = NoParams

    async def execute(self, params: NoParams) -> list[dict[str, Any]]:
        return [item.model_dump(mode="json") for item in await self.store.list_all()]


class CreateTodoTool(TodoTool):
    name = "createTodo"
    description = "Create a new todo, returns the item with its id"
    parameters_schema = CreateTodoParams

    async def execute(self, params: CreateTodoParams) -> dict[str, Any]:
        item = await self.store.create(params.todo)
        return item.model_dump(mode="json")


class DeleteTodoTool(TodoTool):
    name = "deleteTodo"
    description = "Delete a todo by id"
    parameters_schema = DeleteTodoParams

    async def execute(self, params: DeleteTodoParams) -> dict[str, Any]:
        status = await self.store.delete_one(params.id)
        return status.model_dump()


class DeleteManyTodosTool(TodoTool):
    name = "deleteManyTodos"
    description = "Delete multiple todos by their IDs"
    parameters_schema = DeleteManyTodosParams

    async def execute(self, params: DeleteManyTodosParams) -> dict[str, Any]:
        status = await self.store.delete_many(params.ids)
        return status.model_dump()


class DeleteAllTodosTool(TodoTool):
    name = "deleteAllTodos"
    description = "Delete all todos from the database"
    parameters_schema = NoParams

    async def execute(self, params: NoParams) -> dict[str, Any]:
        status = await self.store.delete_all()
        return status.model_dump()


class SearchTodoTool(TodoTool):
    name = "searchTodo"
    description = "Search todos using case-insensitive pattern matching"
    parameters_schema = SearchTodoParams

    async def execute(self, params: SearchTodoParams) -> list[dict[str, Any]]:
        return [item.model_dump(mode="json") for item in await self.store.search(params.search)]


TODO_TOOL_CLASSES: tuple[type[TodoTool], ...] = (
    GetAllTodosTool,
    CreateTodoTool,
    DeleteTodoTool,
    DeleteManyTodosTool,
    DeleteAllTodosTool,
    SearchTodoTool,
)
