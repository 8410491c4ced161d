"""Domain models for tool manifests and tool invocations."""

from .tool_manifest import (
    FunctionDefinition,
    FunctionToolSpec,
    ParameterSchema,
    PropertySpec,
    ToolArgumentValue,
    ToolInvocationRequest,
    ToolManifestEntry,
)

__all__ = [
    "FunctionDefinition",
    "FunctionToolSpec",
    "ParameterSchema",
    "PropertySpec",
    "ToolArgumentValue",
    "ToolInvocationRequest",
    "ToolManifestEntry",
]
