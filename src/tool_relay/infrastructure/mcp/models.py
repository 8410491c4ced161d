"""MCP wire models.

JSON-RPC 2.0 envelopes plus the handful of MCP payloads tool-relay reads:
the initialize result, the tools/list entries and the tools/call result.
Parsing is lenient: servers are third-party processes, so a field of the
wrong shape falls back to a neutral value instead of raising.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from tool_relay.domain.models import ToolManifestEntry

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


class McpContentType(str, Enum):
    """Block types a tools/call result may carry."""

    TEXT = "text"
    IMAGE = "image"
    RESOURCE = "resource"


@dataclass
class McpRequest:
    """A JSON-RPC call expecting a response with the same id."""

    id: int | str
    method: str
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"jsonrpc": JSONRPC_VERSION, "id": self.id, "method": self.method, "params": self.params}


@dataclass
class McpNotification:
    """A JSON-RPC message without id; the server never answers it."""

    method: str
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"jsonrpc": JSONRPC_VERSION, "method": self.method, "params": self.params}


@dataclass
class McpError:
    """The `error` member of a JSON-RPC response."""

    code: int
    message: str
    data: Any = None

    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpError":
        return cls(
            code=data.get("code", cls.INTERNAL_ERROR),
            message=str(data.get("message", "")),
            data=data.get("data"),
        )


@dataclass
class McpResponse:
    """A JSON-RPC response.

    `result` is kept exactly as received; the transport checks that it is
    an object before handing it to a payload parser.
    """

    id: int | str | None
    result: Any = None
    error: McpError | None = None

    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpResponse":
        raw_error = data.get("error")
        return cls(
            id=data.get("id"),
            result=data.get("result"),
            error=McpError.from_dict(raw_error) if isinstance(raw_error, dict) else None,
        )


@dataclass
class McpContent:
    """One block of a tool result. Only text blocks are usable by the pipeline."""

    type: str
    text: str | None = None
    data: str | None = None
    mime_type: str | None = None

    @property
    def is_text(self) -> bool:
        return self.type == McpContentType.TEXT.value and isinstance(self.text, str)

    @classmethod
    def from_dict(cls, data: Any) -> "McpContent":
        # A non-object block keeps its position as "unknown"
        if not isinstance(data, dict):
            return cls(type="unknown")
        return cls(
            type=str(data.get("type", McpContentType.TEXT.value)),
            text=data.get("text"),
            data=data.get("data"),
            mime_type=data.get("mimeType"),
        )


@dataclass
class McpToolCall:
    """Parameters of a tools/call request."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    def to_params(self) -> dict[str, Any]:
        return {"name": self.name, "arguments": self.arguments}


@dataclass
class McpToolResult:
    """Result of tools/call: content blocks in server order plus the isError flag."""

    content: list[McpContent] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpToolResult":
        blocks = data.get("content")
        return cls(
            content=[McpContent.from_dict(block) for block in blocks] if isinstance(blocks, list) else [],
            is_error=bool(data.get("isError", False)),
        )


@dataclass
class McpToolDefinition:
    """One entry of tools/list. `input_schema` is not validated here."""

    name: str
    description: str = ""
    input_schema: Any = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpToolDefinition":
        return cls(
            name=str(data.get("name", "")),
            description=data.get("description") or "",
            input_schema=data.get("inputSchema", {}),
        )

    def get_properties(self) -> dict[str, Any]:
        return _as_dict(_as_dict(self.input_schema).get("properties"))

    def to_manifest_entry(self) -> ToolManifestEntry:
        return ToolManifestEntry(name=self.name, description=self.description, parameter_schema=self.input_schema)


@dataclass
class McpServerInfo:
    """Identity announced by the server in its initialize result."""

    name: str
    version: str
    protocol_version: str = PROTOCOL_VERSION

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "McpServerInfo":
        server = _as_dict(data.get("serverInfo"))
        return cls(
            name=str(server.get("name", "unknown")),
            version=str(server.get("version", "unknown")),
            protocol_version=str(data.get("protocolVersion", PROTOCOL_VERSION)),
        )
