"""Utilities for converting Pydantic models to tool schemas.

This module turns the parameter models of the todo tools into the JSON
Schema that both gateways send to the model.
"""

from typing import Any, Type

from pydantic import BaseModel

from todo_agent.llm.models import ToolDefinition


def _strip_titles(schema: Any) -> Any:
    """Remove the ``title`` keys Pydantic adds; providers don't need them."""
    if isinstance(schema, dict):
        return {
            key: _strip_titles(value)
            for key, value in schema.items()
            if not (key == "title" and isinstance(value, str))
        }
    if isinstance(schema, list):
        return [_strip_titles(item) for item in schema]
    return schema


def pydantic_to_json_schema(model: Type[BaseModel]) -> dict[str, Any]:
    """Convert a Pydantic model to JSON Schema format.

    Args:
        model: Pydantic model class

    Returns:
        dict: JSON Schema representation of the model
    """
    schema = _strip_titles(model.model_json_schema())
    schema.setdefault("properties", {})
    return schema


def create_tool_definition(
    name: str,
    description: str,
    parameters_model: Type[BaseModel] | None = None,
    parameters_schema: dict[str, Any] | None = None,
) -> ToolDefinition:
    """Create a provider-neutral tool definition.

    Args:
        name: Name of the tool/function
        description: Human-readable description of what the tool does
        parameters_model: Pydantic model defining the parameters (optional)
        parameters_schema: Pre-built JSON schema for parameters (optional)

    Returns:
        ToolDefinition: Tool definition ready for a gateway
    """
    if parameters_model is not None:
        parameters = pydantic_to_json_schema(parameters_model)
    elif parameters_schema is not None:
        parameters = parameters_schema
    else:
        parameters = {"type": "object", "properties": {}}

    return ToolDefinition(name=name, description=description, parameters=parameters)
