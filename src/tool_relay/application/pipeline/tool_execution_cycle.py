"""Tool execution cycle.

Runs the tool calls proposed by the selector model against the MCP server,
one after the other, and concatenates their text output into the
accumulator handed to the analyst model.
"""

import logging
import time
from collections.abc import Sequence

from opentelemetry import trace

from tool_relay.domain.models import ToolInvocationRequest
from tool_relay.infrastructure.mcp import IMcpTransport, McpToolResult, McpTransportError
from tool_relay.observability import tool_call_errors, tool_call_time, tool_calls

from .errors import ExecutionFailure
from .pipeline_run import PipelineState

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class ToolExecutionCycle:
    """Executes tool invocations sequentially through an MCP transport.

    Every result must start with a text content block; its text is appended
    to the accumulator. Anything else is fatal: there is no retry and no
    skipping of a failed call.

    Usage:
        cycle = ToolExecutionCycle(transport)
        accumulator = await cycle.execute(invocations)
    """

    def __init__(self, transport: IMcpTransport, timeout: float | None = None):
        """Initialize the execution cycle.

        Args:
            transport: Connected MCP transport
            timeout: Optional per-call timeout (seconds), transport default when None
        """
        self._transport = transport
        self._timeout = timeout

    async def execute(self, invocations: Sequence[ToolInvocationRequest]) -> str:
        """Execute the invocations in order and return the concatenated text.

        Returns:
            The accumulator ("" when there is nothing to execute)

        Raises:
            ExecutionFailure: If a call fails or its first content block is not text
        """
        accumulator = ""
        for index, invocation in enumerate(invocations):
            accumulator += await self.execute_one(invocation, index=index)
        return accumulator

    async def execute_one(self, invocation: ToolInvocationRequest, index: int = 0) -> str:
        """Execute a single invocation and return the text of its first content block."""
        start_time = time.time()

        with tracer.start_as_current_span("mcp.call_tool") as span:
            span.set_attribute("tool.name", invocation.tool_name)
            span.set_attribute("tool.call_id", invocation.call_id)
            span.set_attribute("tool.index", index)

            logger.info(f"Calling tool '{invocation.tool_name}' with arguments: {invocation.arguments}")
            try:
                result = await self._transport.call_tool(
                    tool_name=invocation.tool_name,
                    arguments=dict(invocation.arguments),
                    timeout=self._timeout,
                )
            except McpTransportError as e:
                span.set_attribute("error", True)
                span.set_attribute("error.message", str(e))
                tool_call_errors.add(1, {"tool_name": invocation.tool_name, "reason": type(e).__name__})
                logger.error(f"Tool '{invocation.tool_name}' failed: {e}")
                raise ExecutionFailure(
                    message=f"Tool '{invocation.tool_name}' failed: {e}",
                    phase=PipelineState.EXECUTE.value,
                    is_retryable=False,
                    details={"tool_name": invocation.tool_name, "call_id": invocation.call_id, "index": index},
                ) from e

            execution_time_ms = (time.time() - start_time) * 1000
            tool_calls.add(1, {"tool_name": invocation.tool_name})
            tool_call_time.record(execution_time_ms, {"tool_name": invocation.tool_name})
            span.set_attribute("mcp.execution_time_ms", execution_time_ms)
            span.set_attribute("mcp.content_count", len(result.content))
            span.set_attribute("mcp.is_error", result.is_error)

            if result.is_error:
                logger.warning(f"Tool '{invocation.tool_name}' reported an error result, passing it on unchanged")

            text = self._first_text(invocation, result, index)
            logger.info(f"Tool '{invocation.tool_name}' returned {len(text)} characters ({execution_time_ms:.2f}ms)")
            return text

    def _first_text(self, invocation: ToolInvocationRequest, result: McpToolResult, index: int) -> str:
        if not result.content:
            reason = "no content"
        elif not result.content[0].is_text:
            reason = f"first content block is of type '{result.content[0].type}'"
        else:
            return result.content[0].text or ""

        tool_call_errors.add(1, {"tool_name": invocation.tool_name, "reason": "non_text_result"})
        logger.error(f"Tool '{invocation.tool_name}' returned an unusable result: {reason}")
        raise ExecutionFailure(
            message=f"Tool '{invocation.tool_name}' returned an unusable result: {reason}",
            phase=PipelineState.EXECUTE.value,
            details={"tool_name": invocation.tool_name, "call_id": invocation.call_id, "index": index},
        )
