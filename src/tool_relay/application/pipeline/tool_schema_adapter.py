"""Tool schema adapter.

Translates the tool manifest advertised by the MCP server into the
function-calling tool specs handed to the selector model.

The manifest's parameter schemas are free-form JSON and are not trusted:
translation never fails. Values of the wrong shape degrade to empty
defaults and properties that are not objects are dropped.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from tool_relay.domain.models import (
    FunctionDefinition,
    FunctionToolSpec,
    ParameterSchema,
    PropertySpec,
    ToolManifestEntry,
)


def _get_string(mapping: Mapping[str, Any], key: str) -> str:
    value = mapping.get(key)
    return value if isinstance(value, str) else ""


def _get_string_list(value: Any) -> list[str]:
    """Keep the string elements of a list or tuple, in order."""
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str)]


def _translate_property(raw: Any) -> PropertySpec | None:
    if not isinstance(raw, Mapping):
        return None

    enum = None
    if isinstance(raw.get("enum"), (list, tuple)):
        enum = _get_string_list(raw["enum"])

    return PropertySpec(
        type=_get_string(raw, "type"),
        description=_get_string(raw, "description"),
        enum=enum,
    )


def translate_parameters(schema: Any) -> ParameterSchema:
    """Translate one free-form input schema into a ParameterSchema."""
    if not isinstance(schema, Mapping):
        return ParameterSchema()

    raw_properties = schema.get("properties")
    properties: dict[str, PropertySpec] = {}
    if isinstance(raw_properties, Mapping):
        for name, raw in raw_properties.items():
            prop = _translate_property(raw)
            if prop is not None:
                properties[str(name)] = prop

    return ParameterSchema(
        type=_get_string(schema, "type"),
        required=_get_string_list(schema.get("required")),
        properties=properties,
    )


def translate_tool(entry: ToolManifestEntry) -> FunctionToolSpec:
    """Translate one manifest entry into a function tool spec."""
    return FunctionToolSpec(
        function=FunctionDefinition(
            name=entry.name,
            description=entry.description if isinstance(entry.description, str) else "",
            parameters=translate_parameters(entry.parameter_schema),
        )
    )


def translate(manifest: Sequence[ToolManifestEntry]) -> list[FunctionToolSpec]:
    """Translate a tool manifest into function tool specs.

    The result has one spec per manifest entry, in manifest order.
    """
    return [translate_tool(entry) for entry in manifest]
