"""Base infrastructure for the agent's tools.

This module provides the foundational classes for the operations the
model may request: structured results, error classification and
parameter validation.
"""

import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, ValidationError

from todo_agent.llm.models import ToolDefinition
from todo_agent.llm.tools import create_tool_definition
from todo_agent.store.exceptions import InvalidArgumentError


# Type variable for tool parameters
TParams = TypeVar("TParams", bound=BaseModel)


class ToolErrorKind(str, Enum):
    """Why a tool invocation did not succeed."""

    UNKNOWN_OPERATION = "unknown_operation"  # name not in the registry
    INVALID_ARGUMENT = "invalid_argument"  # input rejected before or by the store
    OPERATION_FAILED = "operation_failed"  # the store raised

    def __str__(self) -> str:
        return self.value


class ToolResult(BaseModel):
    """Result from tool execution.

    Failures are data, not exceptions: the agent hands them back to the
    model as the observation for the action.
    """

    success: bool = Field(..., description="Whether the tool executed successfully")
    data: Any = Field(default=None, description="JSON-compatible result data")
    error: str | None = Field(default=None, description="Error message if failed")
    error_kind: ToolErrorKind | None = Field(default=None, description="Failure class if failed")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Execution metadata (time, resolved name, etc.)",
    )

    @classmethod
    def success_result(cls, data: Any, **metadata: Any) -> "ToolResult":
        return cls(success=True, data=data, error=None, metadata=metadata)

    @classmethod
    def error_result(cls, error: str, kind: ToolErrorKind, **metadata: Any) -> "ToolResult":
        return cls(success=False, data=None, error=error, error_kind=kind, metadata=metadata)

    def observation(self) -> Any:
        """Payload relayed to the model for this result."""
        if self.success:
            return self.data
        return {"error": self.error}

    def __str__(self) -> str:
        if self.success:
            return f"Success: {self.data}"
        return f"Error ({self.error_kind}): {self.error}"


class BaseTool(ABC, Generic[TParams]):
    """Abstract base class for the agent's operations.

    Subclasses set ``name``, ``description`` and ``parameters_schema`` and
    implement ``execute()``.

    Type Parameters:
        TParams: Pydantic model defining the tool's parameters
    """

    name: str
    description: str
    parameters_schema: type[BaseModel]

    def __init__(self):
        required_attrs = ["name", "description", "parameters_schema"]
        for attr in required_attrs:
            if not hasattr(self, attr):
                raise ValueError(
                    f"Tool must define '{attr}' class attribute. "
                    f"Subclass {self.__class__.__name__} is missing it."
                )

        if not issubclass(self.parameters_schema, BaseModel):
            raise ValueError(
                f"parameters_schema must be a Pydantic BaseModel subclass, "
                f"got {type(self.parameters_schema)}"
            )

    @abstractmethod
    async def execute(self, params: TParams) -> Any:
        """Execute the tool with validated parameters.

        Returns:
            Any: JSON-compatible result data

        Raises:
            Exception: Store exceptions propagate to run()
        """

    @property
    def required_fields(self) -> list[str]:
        return [
            name for name, field in self.parameters_schema.model_fields.items() if field.is_required()
        ]

    def coerce_input(self, raw_input: Any) -> dict[str, Any]:
        """Turn the model's ``input`` value into keyword parameters.

        ``None`` means no parameters, and tools without parameters ignore
        whatever they are given. A bare scalar or list is bound to the
        single required field when there is exactly one.

        Raises:
            InvalidArgumentError: If the input cannot be mapped
        """
        if raw_input is None or not self.parameters_schema.model_fields:
            return {}
        if isinstance(raw_input, dict):
            return raw_input

        required = self.required_fields
        if len(required) == 1:
            return {required[0]: raw_input}

        raise InvalidArgumentError(
            f"Tool '{self.name}' expects an object input, got {type(raw_input).__name__}"
        )

    def validate_params(self, raw_params: dict[str, Any]) -> BaseModel:
        """Parse and validate raw parameters.

        Raises:
            ValidationError: If parameters are invalid
        """
        return self.parameters_schema.model_validate(raw_params)

    def to_definition(self) -> ToolDefinition:
        """Describe this tool for a model gateway."""
        return create_tool_definition(
            name=self.name,
            description=self.description,
            parameters_model=self.parameters_schema,
        )

    async def run(self, raw_input: Any, track_time: bool = True) -> ToolResult:
        """Run the tool with input coercion, validation and error capture.

        Args:
            raw_input: The ``input`` value from an action envelope
            track_time: Whether to record execution time in metadata

        Returns:
            ToolResult: Execution result; never raises for tool failures
        """
        start_time = time.perf_counter() if track_time else None

        def elapsed() -> float | None:
            return time.perf_counter() - start_time if start_time is not None else None

        try:
            params = self.validate_params(self.coerce_input(raw_input))
            data = await self.execute(params)

        except ValidationError as e:
            return ToolResult.error_result(
                error=f"Invalid input for {self.name}: {e.errors(include_url=False)}",
                kind=ToolErrorKind.INVALID_ARGUMENT,
                execution_time=elapsed(),
            )

        except InvalidArgumentError as e:
            return ToolResult.error_result(
                error=str(e),
                kind=ToolErrorKind.INVALID_ARGUMENT,
                execution_time=elapsed(),
            )

        except Exception as e:
            return ToolResult.error_result(
                error=f"{type(e).__name__}: {e}",
                kind=ToolErrorKind.OPERATION_FAILED,
                execution_time=elapsed(),
            )

        return ToolResult.success_result(data=data, execution_time=elapsed())

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name='{self.name}'>"
