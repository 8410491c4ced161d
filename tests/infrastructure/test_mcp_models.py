"""Tests for MCP protocol models.

Tests cover:
- JSON-RPC request/notification serialization
- Response and error parsing
- Tool result parsing, including malformed content
- Tool definitions and their manifest entries
"""

from tool_relay.infrastructure.mcp import (
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


class TestMcpRequest:
    """Test McpRequest model."""

    def test_request_to_dict(self) -> None:
        """Test serializing request to JSON-RPC format."""
        request = McpRequest(id=42, method="tools/call", params={"name": "use_curl"})

        assert request.to_dict() == {
            "jsonrpc": "2.0",
            "id": 42,
            "method": "tools/call",
            "params": {"name": "use_curl"},
        }


class TestMcpNotification:
    """Test McpNotification model."""

    def test_notification_has_no_id(self) -> None:
        serialized = McpNotification(method="notifications/initialized").to_dict()

        assert "id" not in serialized
        assert serialized["method"] == "notifications/initialized"


class TestMcpResponse:
    """Test McpResponse model."""

    def test_success_response_from_dict(self) -> None:
        response = McpResponse.from_dict({"jsonrpc": "2.0", "id": 1, "result": {"tools": []}})

        assert response.id == 1
        assert response.result == {"tools": []}
        assert not response.is_error()

    def test_error_response_from_dict(self) -> None:
        """Test parsing an error response."""
        response = McpResponse.from_dict({"jsonrpc": "2.0", "id": 2, "error": {"code": -32601, "message": "Method not found"}})

        assert response.is_error()
        assert response.error == McpError(code=McpError.METHOD_NOT_FOUND, message="Method not found")

    def test_result_is_kept_as_received(self) -> None:
        response = McpResponse.from_dict({"jsonrpc": "2.0", "id": 4, "result": "done"})

        assert response.result == "done"
        assert not response.is_error()

    def test_malformed_error_is_ignored(self) -> None:
        response = McpResponse.from_dict({"jsonrpc": "2.0", "id": 3, "error": "oops", "result": {}})

        assert not response.is_error()


class TestMcpToolResult:
    """Test McpToolResult model."""

    def test_text_result_from_dict(self) -> None:
        result = McpToolResult.from_dict({"content": [{"type": "text", "text": "package main"}], "isError": False})

        assert len(result.content) == 1
        assert result.content[0].is_text
        assert result.content[0].text == "package main"
        assert result.is_error is False

    def test_content_order_is_preserved(self) -> None:
        result = McpToolResult.from_dict(
            {
                "content": [
                    {"type": "image", "data": "iVBORw0KGgo=", "mimeType": "image/png"},
                    {"type": "text", "text": "caption"},
                ]
            }
        )

        assert [c.type for c in result.content] == ["image", "text"]
        assert not result.content[0].is_text
        assert result.content[0].mime_type == "image/png"

    def test_malformed_content(self) -> None:
        """Non-list content is empty, non-object blocks keep their position as unknown."""
        assert McpToolResult.from_dict({"content": "text"}).content == []
        assert McpToolResult.from_dict({}).content == []

        result = McpToolResult.from_dict({"content": ["raw", {"type": "text", "text": "ok"}]})

        assert result.content[0].type == "unknown"
        assert result.content[1].text == "ok"

    def test_block_type_is_a_string(self) -> None:
        content = McpContent.from_dict({"type": "text", "text": "hello"})

        assert content.type == McpContentType.TEXT.value
        assert content.is_text

    def test_text_block_without_string_text(self) -> None:
        assert not McpContent.from_dict({"type": "text", "text": 42}).is_text


class TestMcpToolCall:
    """Test McpToolCall model."""

    def test_to_params(self) -> None:
        call = McpToolCall(name="use_curl", arguments={"url": "https://example.com"})

        assert call.to_params() == {"name": "use_curl", "arguments": {"url": "https://example.com"}}


class TestMcpToolDefinition:
    """Test McpToolDefinition model."""

    def test_from_dict(self) -> None:
        definition = McpToolDefinition.from_dict(
            {
                "name": "use_curl",
                "description": "fetch this webpage",
                "inputSchema": {"type": "object", "properties": {"url": {"type": "string"}}},
            }
        )

        assert definition.name == "use_curl"
        assert definition.get_properties() == {"url": {"type": "string"}}

    def test_null_description(self) -> None:
        assert McpToolDefinition.from_dict({"name": "x", "description": None}).description == ""

    def test_schema_is_kept_as_received(self) -> None:
        """Malformed schemas are not rejected here, the schema adapter deals with them."""
        definition = McpToolDefinition.from_dict({"name": "odd", "inputSchema": ["not", "an", "object"]})

        assert definition.get_properties() == {}
        assert definition.to_manifest_entry().parameter_schema == ["not", "an", "object"]

    def test_to_manifest_entry(self) -> None:
        entry = McpToolDefinition(name="use_curl", description="fetch", input_schema={"type": "object"}).to_manifest_entry()

        assert entry.name == "use_curl"
        assert entry.description == "fetch"
        assert entry.parameter_schema == {"type": "object"}


class TestMcpServerInfo:
    """Test McpServerInfo model."""

    def test_from_initialize_result(self) -> None:
        info = McpServerInfo.from_dict({"protocolVersion": "2024-11-05", "serverInfo": {"name": "mcp-curl", "version": "1.0.0"}})

        assert info == McpServerInfo(name="mcp-curl", version="1.0.0", protocol_version="2024-11-05")

    def test_missing_server_info(self) -> None:
        info = McpServerInfo.from_dict({})

        assert info.name == "unknown"
        assert info.protocol_version == PROTOCOL_VERSION

    def test_server_info_that_is_not_an_object(self) -> None:
        info = McpServerInfo.from_dict({"protocolVersion": "2024-11-05", "serverInfo": "mcp-curl"})

        assert info == McpServerInfo(name="unknown", version="unknown", protocol_version="2024-11-05")
