"""MCP (Model Context Protocol) infrastructure layer.

This package provides the client side of the MCP stdio transport used to
reach the tool server. It includes:

- The transport abstraction and its stdio implementation
- MCP protocol message models
"""

from .models import (
    PROTOCOL_VERSION,
    McpContent,
    McpContentType,
    McpError,
    McpNotification,
    McpRequest,
    McpResponse,
    McpServerInfo,
    McpToolCall,
    McpToolDefinition,
    McpToolResult,
)
from .stdio_transport import StdioTransport
from .transport import IMcpTransport, McpConnectionError, McpProtocolError, McpTimeoutError, McpTransportError

__all__ = [
    # Transport interface
    "IMcpTransport",
    "McpTransportError",
    "McpConnectionError",
    "McpProtocolError",
    "McpTimeoutError",
    # Transport implementations
    "StdioTransport",
    # Protocol models
    "PROTOCOL_VERSION",
    "McpRequest",
    "McpResponse",
    "McpNotification",
    "McpError",
    "McpServerInfo",
    "McpToolCall",
    "McpToolDefinition",
    "McpToolResult",
    "McpContent",
    "McpContentType",
]
