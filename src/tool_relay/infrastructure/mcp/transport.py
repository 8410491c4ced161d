"""Client-side MCP transport contract and its error family.

The pipeline only needs four operations from a tool server connection:
open it (handshake included), list the tools, call one tool, close it.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import McpServerInfo, McpToolDefinition, McpToolResult


class McpTransportError(Exception):
    """Root of every failure reported by an MCP transport.

    Attributes:
        cause: The lower-level exception (OS error, JSON error, ...) if any
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class McpConnectionError(McpTransportError):
    """The server could not be started, or the pipe to it broke."""


class McpProtocolError(McpTransportError):
    """The server answered, but with a JSON-RPC error or an unusable message."""


class McpTimeoutError(McpTransportError):
    """The server did not answer a request in time."""


class IMcpTransport(ABC):
    """Connection to one MCP tool server.

    A transport is used by a single run at a time: connect, any number of
    list/call requests, then disconnect.
    """

    @abstractmethod
    async def connect(self) -> "McpServerInfo":
        """Open the connection and complete the initialize handshake.

        Raises:
            McpTransportError: On spawn, handshake or timeout failures
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection. Must be safe to call when never connected."""
        ...

    @abstractmethod
    async def list_tools(self) -> list["McpToolDefinition"]:
        """Return the server's tool manifest (tools/list)."""
        ...

    @abstractmethod
    async def call_tool(
        self,
        tool_name: str,
        arguments: dict[str, Any],
        timeout: float | None = None,
    ) -> "McpToolResult":
        """Invoke one tool (tools/call); timeout overrides the transport default."""
        ...
