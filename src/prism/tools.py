"""Canonical tool contract shared by every provider adapter.

Tools come in as ``{"type": "function", "function": {name, description,
parameters: {properties, required}}}`` and calls go out as ``FunctionCall``
with JSON-encoded arguments. Adapters translate to and from their wire format;
nothing else in Prism sees a provider's shape.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from prism.errors import ConfigurationError


class FunctionParameters(BaseModel):
    """JSON-schema object describing a function's arguments."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: Literal["object"] = "object"
    properties: dict[str, Any] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)


class FunctionSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    description: str = ""
    parameters: FunctionParameters = Field(default_factory=FunctionParameters)


class CanonicalTool(BaseModel):
    """A tool definition in Prism's canonical (OpenAI-style) shape."""

    model_config = ConfigDict(frozen=True)

    type: Literal["function"] = "function"
    function: FunctionSpec

    @property
    def name(self) -> str:
        return self.function.name

    @property
    def description(self) -> str:
        return self.function.description


ToolInput = CanonicalTool | Mapping[str, Any]


def coerce_tools(tools: Sequence[ToolInput] | None) -> list[CanonicalTool]:
    """Validate tool dicts into ``CanonicalTool`` instances.

    Raises:
        ConfigurationError: When a tool does not match the canonical shape.
    """
    if not tools:
        return []
    if isinstance(tools, (str, bytes, Mapping)):
        raise ConfigurationError(
            "tools must be a list of tool definitions",
            hint='Pass [{"type": "function", "function": {...}}].',
        )

    coerced: list[CanonicalTool] = []
    for idx, tool in enumerate(tools):
        if isinstance(tool, CanonicalTool):
            coerced.append(tool)
            continue
        try:
            coerced.append(CanonicalTool.model_validate(tool))
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid tool definition at index {idx}: {e.errors()[0]['msg']}",
                hint=(
                    'Tools use {"type": "function", "function": {"name", '
                    '"description", "parameters": {"properties", "required"}}}.'
                ),
            ) from e
    return coerced


@dataclass(frozen=True)
class FunctionCall:
    """A function call requested by the model, in canonical form."""

    id: str
    name: str
    #: Always a JSON-encoded string, whatever the provider returned.
    arguments: str

    def parsed_arguments(self) -> dict[str, Any]:
        """Decode ``arguments``; non-object payloads come back as ``{}``."""
        try:
            value = json.loads(self.arguments)
        except (TypeError, ValueError):
            return {}
        return value if isinstance(value, dict) else {}


def encode_arguments(arguments: Any) -> str:
    """Encode provider call arguments as the canonical JSON string."""
    if arguments is None:
        return "{}"
    if isinstance(arguments, str):
        return arguments or "{}"
    if isinstance(arguments, Mapping):
        arguments = dict(arguments)
    return json.dumps(arguments)
