"""Tests for the tool execution cycle.

Tests cover:
- No-op on zero invocations
- Sequential execution and accumulation in invocation order
- Arguments passed through untouched
- Fatal handling of non-text results and transport errors
"""

from unittest.mock import call

import pytest

from tests.fixtures.factories import create_image_result, create_mock_transport, create_text_result
from tool_relay.application.pipeline import ExecutionFailure, PipelineState, ToolExecutionCycle
from tool_relay.domain.models import ToolInvocationRequest
from tool_relay.infrastructure.mcp import McpProtocolError, McpTimeoutError, McpToolResult


class TestToolExecutionCycle:
    """Test ToolExecutionCycle.execute."""

    @pytest.mark.asyncio
    async def test_no_invocations_is_a_no_op(self) -> None:
        """Zero invocations: no tool call and an empty accumulator."""
        transport = create_mock_transport(results=[])

        accumulator = await ToolExecutionCycle(transport).execute([])

        assert accumulator == ""
        transport.call_tool.assert_not_called()

    @pytest.mark.asyncio
    async def test_single_invocation(self) -> None:
        transport = create_mock_transport(results=[create_text_result("package main")])
        invocation = ToolInvocationRequest(tool_name="use_curl", arguments={"url": "https://example.com/main.go"})

        accumulator = await ToolExecutionCycle(transport).execute([invocation])

        assert accumulator == "package main"
        transport.call_tool.assert_awaited_once_with(
            tool_name="use_curl",
            arguments={"url": "https://example.com/main.go"},
            timeout=None,
        )

    @pytest.mark.asyncio
    async def test_results_are_concatenated_in_invocation_order(self) -> None:
        """Texts are appended in order, without separators."""
        transport = create_mock_transport(results=[create_text_result("first;"), create_text_result("second;"), create_text_result("third")])
        invocations = [ToolInvocationRequest(tool_name=name, arguments={"n": i}) for i, name in enumerate(["a", "b", "c"])]

        accumulator = await ToolExecutionCycle(transport, timeout=12.0).execute(invocations)

        assert accumulator == "first;second;third"
        assert transport.call_tool.await_args_list == [
            call(tool_name="a", arguments={"n": 0}, timeout=12.0),
            call(tool_name="b", arguments={"n": 1}, timeout=12.0),
            call(tool_name="c", arguments={"n": 2}, timeout=12.0),
        ]

    @pytest.mark.asyncio
    async def test_arguments_are_passed_verbatim(self) -> None:
        """No validation against the advertised schema."""
        transport = create_mock_transport(results=[create_text_result("ok")])
        arguments = {"unexpected": {"nested": [1, "two", None]}, "flag": True}

        await ToolExecutionCycle(transport).execute([ToolInvocationRequest(tool_name="use_curl", arguments=arguments)])

        assert transport.call_tool.await_args.kwargs["arguments"] == arguments

    @pytest.mark.asyncio
    async def test_only_first_content_block_is_used(self) -> None:
        result = McpToolResult(content=[create_text_result("head").content[0], create_text_result("tail").content[0]])
        transport = create_mock_transport(results=[result])

        accumulator = await ToolExecutionCycle(transport).execute([ToolInvocationRequest(tool_name="use_curl")])

        assert accumulator == "head"

    @pytest.mark.asyncio
    async def test_error_result_is_passed_on(self) -> None:
        """is_error results are not validated, their text is accumulated."""
        transport = create_mock_transport(results=[create_text_result("curl: (6) Could not resolve host", is_error=True)])

        accumulator = await ToolExecutionCycle(transport).execute([ToolInvocationRequest(tool_name="use_curl")])

        assert accumulator == "curl: (6) Could not resolve host"


class TestToolExecutionCycleFailures:
    """Test fatal conditions of the execution cycle."""

    @pytest.mark.asyncio
    async def test_non_text_result_is_fatal(self) -> None:
        """An image as first content block aborts the cycle."""
        transport = create_mock_transport(results=[create_image_result(), create_text_result("never")])
        invocations = [ToolInvocationRequest(tool_name="snapshot"), ToolInvocationRequest(tool_name="use_curl")]

        with pytest.raises(ExecutionFailure, match="image") as exc_info:
            await ToolExecutionCycle(transport).execute(invocations)

        assert exc_info.value.phase == PipelineState.EXECUTE.value
        assert exc_info.value.details["tool_name"] == "snapshot"
        assert transport.call_tool.await_count == 1

    @pytest.mark.asyncio
    async def test_empty_content_is_fatal(self) -> None:
        transport = create_mock_transport(results=[McpToolResult(content=[])])

        with pytest.raises(ExecutionFailure, match="no content"):
            await ToolExecutionCycle(transport).execute([ToolInvocationRequest(tool_name="use_curl")])

    @pytest.mark.asyncio
    async def test_text_block_without_text_is_fatal(self) -> None:
        result = McpToolResult.from_dict({"content": [{"type": "text", "text": 42}]})
        transport = create_mock_transport(results=[result])

        with pytest.raises(ExecutionFailure):
            await ToolExecutionCycle(transport).execute([ToolInvocationRequest(tool_name="use_curl")])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [McpProtocolError("MCP error (-32602): Unknown tool"), McpTimeoutError("no answer")])
    async def test_transport_error_is_fatal(self, error: Exception) -> None:
        """Transport errors become ExecutionFailure with the original as cause."""
        transport = create_mock_transport(results=[error])

        with pytest.raises(ExecutionFailure) as exc_info:
            await ToolExecutionCycle(transport).execute([ToolInvocationRequest(tool_name="use_curl")])

        assert exc_info.value.__cause__ is error
        assert exc_info.value.error_code == "execution_failure"

    @pytest.mark.asyncio
    async def test_failure_stops_remaining_invocations(self) -> None:
        """No retry and no skipping: the first failure ends the cycle."""
        transport = create_mock_transport(results=[create_text_result("ok"), McpProtocolError("boom"), create_text_result("never")])
        invocations = [ToolInvocationRequest(tool_name=f"tool_{i}") for i in range(3)]

        with pytest.raises(ExecutionFailure):
            await ToolExecutionCycle(transport).execute(invocations)

        assert transport.call_tool.await_count == 2
