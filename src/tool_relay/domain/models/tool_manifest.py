"""Tool manifest and function-calling models.

These dataclasses describe the tools advertised by an MCP server and the
function-calling shape a chat model expects:

- ToolManifestEntry: provider-neutral tool as discovered via tools/list
- FunctionToolSpec: strict function tool handed to the selector model
- ToolInvocationRequest: a tool call proposed by the selector model
"""

from dataclasses import dataclass, field
from typing import Any, Union
from uuid import uuid4

# Opaque argument bag emitted by the model and validated only by the remote tool
ToolArgumentValue = Union[str, int, float, bool, None, list["ToolArgumentValue"], dict[str, "ToolArgumentValue"]]


@dataclass(frozen=True)
class ToolManifestEntry:
    """A tool advertised by the MCP server.

    Attributes:
        name: Unique tool name
        description: Human-readable description
        parameter_schema: Free-form JSON Schema for the tool's input (untrusted shape)
    """

    name: str
    description: str = ""
    parameter_schema: Any = field(default_factory=dict)


@dataclass(frozen=True)
class PropertySpec:
    """A single parameter of a function tool.

    Attributes:
        type: JSON Schema type name ("" when the source did not provide one)
        description: Parameter description ("" when missing)
        enum: Allowed string values, or None when the source declared no enum
    """

    type: str = ""
    description: str = ""
    enum: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "type": self.type,
            "description": self.description,
        }
        if self.enum:
            result["enum"] = list(self.enum)
        return result


@dataclass(frozen=True)
class ParameterSchema:
    """Parameters object of a function tool.

    Attributes:
        type: Schema type, usually "object"
        required: Names of required parameters, in declaration order
        properties: Parameter name to PropertySpec
    """

    type: str = ""
    required: list[str] = field(default_factory=list)
    properties: dict[str, PropertySpec] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "required": list(self.required),
            "properties": {name: prop.to_dict() for name, prop in self.properties.items()},
        }


@dataclass(frozen=True)
class FunctionDefinition:
    """Function part of a function tool."""

    name: str
    description: str
    parameters: ParameterSchema = field(default_factory=ParameterSchema)


@dataclass(frozen=True)
class FunctionToolSpec:
    """A tool in the function-calling format understood by the chat model.

    Serializes to:
        {"type": "function", "function": {"name", "description", "parameters"}}
    """

    function: FunctionDefinition
    kind: str = "function"

    @property
    def name(self) -> str:
        return self.function.name

    def to_dict(self) -> dict[str, Any]:
        """Convert to the Ollama function calling format."""
        return {
            "type": self.kind,
            "function": {
                "name": self.function.name,
                "description": self.function.description,
                "parameters": self.function.parameters.to_dict(),
            },
        }


@dataclass(frozen=True)
class ToolInvocationRequest:
    """A tool call proposed by the selector model.

    Attributes:
        tool_name: Name of the tool to call
        arguments: Arguments to pass verbatim to the tool
        call_id: Identifier used to correlate logs and traces
    """

    tool_name: str
    arguments: dict[str, ToolArgumentValue] = field(default_factory=dict)
    call_id: str = field(default_factory=lambda: str(uuid4()))
