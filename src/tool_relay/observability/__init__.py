"""Observability utilities and metrics for tool-relay."""

from .metrics import (
    llm_request_count,
    llm_request_time,
    llm_tool_calls,
    pipeline_runs,
    tool_call_errors,
    tool_call_time,
    tool_calls,
    tools_discovered,
)

__all__ = [
    # LLM metrics
    "llm_request_count",
    "llm_request_time",
    "llm_tool_calls",
    # Tool metrics
    "tools_discovered",
    "tool_calls",
    "tool_call_time",
    "tool_call_errors",
    # Pipeline metrics
    "pipeline_runs",
]
