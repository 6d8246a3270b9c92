"""Pydantic models for todo items and store operation results."""

from datetime import datetime

from pydantic import BaseModel, Field


class TodoItem(BaseModel):
    """A single persisted todo item.

    Timestamps are owned by the store; the agent only relays them.
    """

    id: int = Field(..., description="Identifier assigned by the store")
    todo: str = Field(..., min_length=1, description="Todo text")
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp (UTC)")


class OperationStatus(BaseModel):
    """Outcome of a delete operation."""

    success: bool = Field(..., description="Whether the operation did what was asked")
    message: str = Field(..., description="Human-readable summary")
