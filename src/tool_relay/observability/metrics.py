"""Business metrics for tool-relay.

Defines OpenTelemetry metrics for:
- LLM: Request count, latency, tool calls proposed by the selector
- Tools: Discovery, execution count, latency, errors
- Pipeline: Runs by final state
"""

from opentelemetry import metrics

meter = metrics.get_meter("tool_relay")

# =============================================================================
# LLM METRICS
# =============================================================================

llm_request_count = meter.create_counter(
    name="tool_relay.llm.request_count",
    description="Total LLM requests made",
    unit="1",
)

llm_request_time = meter.create_histogram(
    name="tool_relay.llm.request_time",
    description="Time for LLM requests (request sent to last token)",
    unit="ms",
)

llm_tool_calls = meter.create_counter(
    name="tool_relay.llm.tool_calls",
    description="Total tool calls proposed by the LLM",
    unit="1",
)

# =============================================================================
# TOOL METRICS
# =============================================================================

tools_discovered = meter.create_counter(
    name="tool_relay.tools.discovered",
    description="Total tools listed by the MCP server",
    unit="1",
)

tool_calls = meter.create_counter(
    name="tool_relay.tools.calls",
    description="Total tool executions through the MCP server",
    unit="1",
)

tool_call_time = meter.create_histogram(
    name="tool_relay.tools.call_time",
    description="Time to execute a tool through the MCP server",
    unit="ms",
)

tool_call_errors = meter.create_counter(
    name="tool_relay.tools.call_errors",
    description="Total tool executions that failed",
    unit="1",
)

# =============================================================================
# PIPELINE METRICS
# =============================================================================

pipeline_runs = meter.create_counter(
    name="tool_relay.pipeline.runs",
    description="Total pipeline runs, by final state",
    unit="1",
)
